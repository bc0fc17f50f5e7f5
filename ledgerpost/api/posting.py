"""Posting, voiding and payment endpoints."""
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import Field

from ledgerpost.api.deps import (
    get_account_resolver,
    get_acting_user,
    get_payment_recorder,
    get_posting_service,
    get_reversal_service,
)
from ledgerpost.models.account_defaults import AccountType
from ledgerpost.models.base import LPBaseModel
from ledgerpost.services.account_defaults import AccountDefaultResolver
from ledgerpost.services.errors import LedgerPostError, ValidationError, to_http_exception
from ledgerpost.services.metrics import record_error, record_posting
from ledgerpost.services.payments import PaymentRecorder
from ledgerpost.services.posting import DocumentPostingService
from ledgerpost.services.reversal import ReversalService

router = APIRouter(tags=["Posting"])


class AccountDefaultUpdate(LPBaseModel):
    account_id: str = Field(alias="accountId", min_length=1)
    description: Optional[str] = None


def _run(operation: str, path: str, call: Callable[[], Any]) -> Dict[str, Any]:
    try:
        result = call()
    except LedgerPostError as e:
        record_posting(operation, "error")
        record_error(e.code.value, path)
        raise to_http_exception(e)
    record_posting(operation, "success")
    return result.to_response()


@router.post("/invoices/{invoice_id}/post")
def post_invoice(
    invoice_id: str,
    acting_user: str = Depends(get_acting_user),
    posting: DocumentPostingService = Depends(get_posting_service),
):
    return _run("post_invoice", "/invoices/post", lambda: posting.post_invoice(invoice_id, acting_user))


@router.post("/bills/{bill_id}/post")
def post_bill(
    bill_id: str,
    acting_user: str = Depends(get_acting_user),
    posting: DocumentPostingService = Depends(get_posting_service),
):
    return _run("post_bill", "/bills/post", lambda: posting.post_bill(bill_id, acting_user))


@router.post("/invoices/{invoice_id}/void")
def void_invoice(
    invoice_id: str,
    acting_user: str = Depends(get_acting_user),
    reversal: ReversalService = Depends(get_reversal_service),
):
    return _run("void_invoice", "/invoices/void", lambda: reversal.void_invoice(invoice_id, acting_user))


@router.post("/bills/{bill_id}/void")
def void_bill(
    bill_id: str,
    acting_user: str = Depends(get_acting_user),
    reversal: ReversalService = Depends(get_reversal_service),
):
    return _run("void_bill", "/bills/void", lambda: reversal.void_bill(bill_id, acting_user))


@router.post("/payments")
def record_invoice_payment(
    payload: Dict[str, Any] = Body(...),
    acting_user: str = Depends(get_acting_user),
    payments: PaymentRecorder = Depends(get_payment_recorder),
):
    # Raw body so missing fields are reported by the recorder, all at once
    return _run("record_invoice_payment", "/payments", lambda: payments.record_invoice_payment(payload, acting_user))


@router.post("/bill-payments")
def record_bill_payment(
    payload: Dict[str, Any] = Body(...),
    acting_user: str = Depends(get_acting_user),
    payments: PaymentRecorder = Depends(get_payment_recorder),
):
    return _run("record_bill_payment", "/bill-payments", lambda: payments.record_bill_payment(payload, acting_user))


# ---------------------------------------------------------------------- #
# Account defaults
# ---------------------------------------------------------------------- #
@router.get("/account-defaults")
def list_account_defaults(resolver: AccountDefaultResolver = Depends(get_account_resolver)):
    try:
        defaults = resolver.get_account_defaults()
    except LedgerPostError as e:
        record_error(e.code.value, "/account-defaults")
        raise to_http_exception(e)
    return {
        account_type.value: {
            "accountId": resolved.account_id,
            "description": resolved.description,
            "defaultId": resolved.default_id,
        }
        for account_type, resolved in defaults.items()
    }


@router.put("/account-defaults/{account_type}")
def set_account_default(
    account_type: str,
    payload: AccountDefaultUpdate,
    resolver: AccountDefaultResolver = Depends(get_account_resolver),
):
    try:
        parsed = AccountType.parse(account_type)
        if parsed is None:
            allowed = ", ".join(t.value for t in AccountType)
            raise ValidationError(f"Unknown account type '{account_type}'. Expected one of: {allowed}")
        return resolver.set_account_default(parsed, payload.account_id, payload.description)
    except LedgerPostError as e:
        record_error(e.code.value, "/account-defaults")
        raise to_http_exception(e)


@router.post("/account-defaults/refresh")
def refresh_account_defaults(resolver: AccountDefaultResolver = Depends(get_account_resolver)):
    resolver.clear_cache()
    return {"status": "cleared"}
