"""
ledgerpost - FastAPI Backend

Double-entry posting engine for invoices, bills and payments.

Run Instructions:
-----------------
1. Install dependencies:
   pip install -e .

2. Point the engine at the accounting-data service and run with uvicorn:
   DATA_API_URL=http://localhost:5000/api uvicorn main:app --host 0.0.0.0 --port 8000 --reload

3. Test /health endpoint:
   curl http://localhost:8000/health

4. Post an invoice:
   curl -X POST http://localhost:8000/invoices/<invoice-id>/post -H "X-User-Id: alice"
"""
import time

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ledgerpost import __version__
from ledgerpost.api.posting import router as posting_router
from ledgerpost.di.container import container
from ledgerpost.services.errors import LedgerPostError, to_http_exception
from ledgerpost.services.logging import log_error, log_request
from ledgerpost.services.metrics import get_metrics, record_error, record_request

app = FastAPI(
    title="ledgerpost API",
    description="""
    Automated double-entry posting for invoices, bills and payments.

    ## Posting
    - Post an invoice (DR Accounts Receivable / CR Revenue) or a bill (DR Expense / CR Accounts Payable)
    - A document is posted at most once

    ## Voiding
    - Writes a reversing entry; original entries are never edited or deleted

    ## Payments
    - Records customer and vendor payments and applies them to open documents

    ## Acting user
    Send `X-User-Id` to attribute entries; defaults to `DEFAULT_ACTING_USER`.
    """,
    version=__version__,
)

app.include_router(posting_router)


# Add request logging middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and record metrics."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        acting_user = request.headers.get("X-User-Id")

        try:
            response = await call_next(request)
        except Exception as e:
            record_error("exception", request.url.path)
            log_error("request_exception", str(e), {"path": request.url.path, "method": request.method})
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            acting_user=acting_user,
        )
        record_request(request.method, request.url.path, response.status_code, duration_ms)
        if response.status_code >= 400:
            record_error(f"http_{response.status_code}", request.url.path)
        return response


app.add_middleware(RequestLoggingMiddleware)


# Errors raised outside a router's own handling
@app.exception_handler(LedgerPostError)
async def ledgerpost_exception_handler(request: Request, exc: LedgerPostError):
    log_error(exc.code.value, str(exc), exc.context)
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.on_event("shutdown")
def shutdown_event():
    container.reset()


@app.get(
    "/health",
    tags=["System"],
    summary="Health Check",
    description="Check API health and version",
)
def health():
    settings = container.settings()
    return {
        "status": "healthy",
        "version": __version__,
        "data_api_url": settings.data_api_url,
        "revenue_account_policy": settings.revenue_account_policy.value,
    }


@app.get(
    "/metrics",
    tags=["System"],
    summary="Get Metrics",
    description="Request, error and posting counters",
)
def metrics_endpoint():
    try:
        return get_metrics()
    except Exception as e:
        log_error("metrics_error", str(e))
        raise HTTPException(status_code=500, detail=f"Failed to get metrics: {str(e)}")
