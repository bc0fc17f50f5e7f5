"""Accounting-data service client.

Thin wrapper over the Data API Builder style REST surface that holds every
record this engine reads or writes:

- single records:  GET/PATCH  /{resource}/Id/{id}
- collections:     GET        /{resource}?$filter=Field eq 'value'
- creates:         POST       /{resource}

Collections come back as {"value": [...]}. Any transport failure or non-2xx
status is raised as RemoteServiceError; 409/412 on a conditional write is a
ConflictError.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ledgerpost.services.errors import ConflictError, RemoteServiceError

logger = logging.getLogger(__name__)


def odata_eq(field: str, value: str) -> str:
    """Build an OData equality filter, escaping embedded quotes."""
    escaped = str(value).replace("'", "''")
    return f"{field} eq '{escaped}'"


class AccountingDataClient:
    """
    Synchronous client for the accounting-data service.

    Pass `http_client` to reuse a connection pool or to swap the transport
    (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def get_record(self, resource: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one record by id. Returns None when it does not exist."""
        url = self._record_url(resource, record_id)
        body = self._request("GET", url, operation=f"read {resource} {record_id}", allow_not_found=True)
        if not body:
            return None
        # Some deployments wrap single reads in a one-element collection
        if isinstance(body, dict) and "value" in body and isinstance(body["value"], list):
            return body["value"][0] if body["value"] else None
        return body

    def list_records(
        self,
        resource: str,
        filter: Optional[str] = None,
        orderby: Optional[str] = None,
        top: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if filter:
            params["$filter"] = filter
        if orderby:
            params["$orderby"] = orderby
        if top is not None:
            params["$top"] = top
        body = self._request("GET", f"{self.base_url}/{resource}", params=params, operation=f"list {resource}")
        if not isinstance(body, dict):
            return []
        return list(body.get("value") or [])

    def create_record(self, resource: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = self._request("POST", f"{self.base_url}/{resource}", json=payload, operation=f"create {resource}")
        return body if isinstance(body, dict) else {}

    def update_record(
        self,
        resource: str,
        record_id: str,
        payload: Dict[str, Any],
        if_match: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"If-Match": if_match} if if_match else None
        body = self._request(
            "PATCH",
            self._record_url(resource, record_id),
            json=payload,
            headers=headers,
            operation=f"update {resource} {record_id}",
        )
        return body if isinstance(body, dict) else {}

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #
    def _record_url(self, resource: str, record_id: str) -> str:
        return f"{self.base_url}/{resource}/Id/{quote(str(record_id), safe='')}"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        allow_not_found: bool = False,
    ) -> Any:
        request_headers = self._headers()
        if headers:
            request_headers.update(headers)

        try:
            resp = self._client.request(
                method, url, params=params, json=json, headers=request_headers, timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {url} failed: {exc}")
            raise RemoteServiceError(operation=operation, detail=str(exc), cause=exc) from exc

        if allow_not_found and resp.status_code == 404:
            return None

        if resp.status_code in (409, 412) and method != "GET":
            raise ConflictError(operation=operation, detail=_error_text(resp), status_code=resp.status_code)

        if resp.is_error:
            raise RemoteServiceError(
                operation=operation,
                detail=_error_text(resp),
                status_code=resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteServiceError(
                operation=operation,
                detail=f"Invalid JSON response: {resp.text[:200]}",
                status_code=resp.status_code,
                cause=exc,
            ) from exc


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"HTTP {resp.status_code}: {error['message']}"
    return f"HTTP {resp.status_code}: {body}"
