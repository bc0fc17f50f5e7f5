"""
Shared fixtures: an in-memory accounting-data service behind httpx.MockTransport.

FakeDataService speaks the small slice of the Data API Builder REST surface the
engine uses (GET/PATCH /{resource}/Id/{id}, GET /{resource}?$filter=..., POST
/{resource}) and records every call so tests can assert on what was written.
"""
import json
import re
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from ledgerpost.integrations.data_service import AccountingDataClient
from ledgerpost.services.account_defaults import AccountDefaultResolver, TTLCache
from ledgerpost.services.documents import DocumentRepository
from ledgerpost.services.journal_entries import JournalEntryWriter
from ledgerpost.services.locks import DocumentLocks
from ledgerpost.services.metrics import reset_metrics
from ledgerpost.services.payments import PaymentRecorder
from ledgerpost.services.posting import DocumentPostingService
from ledgerpost.services.reversal import ReversalService

BASE_URL = "http://dataservice.test/api"

# Write-side views share storage with their read-side resource
RESOURCE_ALIASES = {
    "invoices_write": "invoices",
    "bills_write": "bills",
}

_FILTER = re.compile(r"^(\w+) eq '((?:[^']|'')*)'$")


class FakeDataService:
    def __init__(self) -> None:
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[Dict[str, Any]] = []
        self._failures: List[Dict[str, Any]] = []
        self._after_get: Dict[Any, Any] = {}

    # -- seeding ---------------------------------------------------------
    def add(self, resource: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(record)
        record.setdefault("Id", str(uuid.uuid4()))
        self.tables.setdefault(resource, {})[str(record["Id"])] = record
        return record

    def get(self, resource: str, record_id: str) -> Optional[Dict[str, Any]]:
        return self.tables.get(resource, {}).get(record_id)

    def rows(self, resource: str) -> List[Dict[str, Any]]:
        return list(self.tables.get(resource, {}).values())

    def fail(self, method: str, resource: str, status: int = 500, skip: int = 0, body: Any = None) -> None:
        """Make the (skip + 1)th matching call return `status`."""
        self._failures.append(
            {"method": method, "resource": resource, "status": status, "skip": skip, "body": body}
        )

    def after_get(self, resource: str, record_id: str, callback) -> None:
        """Run `callback` right after a single-record read (simulates a concurrent writer)."""
        self._after_get[(resource, record_id)] = callback

    def raise_transport_error(self, method: str, resource: str) -> None:
        self._failures.append({"method": method, "resource": resource, "status": None, "skip": 0})

    # -- assertions helpers ----------------------------------------------
    def calls_to(self, method: str, resource: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["resource"] == resource]

    def entry_lines(self, entry_id: str) -> List[Dict[str, Any]]:
        return [row for row in self.rows("journalentrylines") if row.get("JournalEntryId") == entry_id]

    # -- transport -------------------------------------------------------
    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        prefix = httpx.URL(BASE_URL).path
        parts = [p for p in path[len(prefix):].split("/") if p]
        resource = parts[0]
        record_id = parts[2] if len(parts) >= 3 and parts[1] == "Id" else None
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            {
                "method": request.method,
                "resource": resource,
                "id": record_id,
                "body": body,
                "params": dict(request.url.params),
                "headers": dict(request.headers),
            }
        )

        failure = self._take_failure(request.method, resource)
        if failure is not None:
            if failure["status"] is None:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(
                failure["status"], json=failure["body"] or {"error": {"message": "injected failure"}}
            )

        table = self.tables.setdefault(RESOURCE_ALIASES.get(resource, resource), {})

        if request.method == "GET" and record_id is None:
            rows = list(table.values())
            raw_filter = request.url.params.get("$filter")
            if raw_filter:
                match = _FILTER.match(raw_filter)
                assert match, f"unsupported filter {raw_filter!r}"
                field, value = match.group(1), match.group(2).replace("''", "'")
                rows = [row for row in rows if str(row.get(field)) == value]
            return httpx.Response(200, json={"value": rows})

        if request.method == "GET":
            record = table.get(record_id)
            if record is None:
                return httpx.Response(404, json={"error": {"message": "Not Found"}})
            response = httpx.Response(200, json=dict(record))
            callback = self._after_get.pop((resource, record_id), None)
            if callback:
                callback(record)
            return response

        if request.method == "POST":
            record = dict(body or {})
            record.setdefault("Id", str(uuid.uuid4()))
            table[str(record["Id"])] = record
            return httpx.Response(201, json=record)

        if request.method == "PATCH":
            record = table.get(record_id)
            if record is None:
                return httpx.Response(404, json={"error": {"message": "Not Found"}})
            if_match = request.headers.get("If-Match")
            etag = record.get("@odata.etag")
            if if_match and etag and if_match != etag:
                return httpx.Response(412, json={"error": {"message": "Precondition Failed"}})
            record.update(body or {})
            if etag:
                record["@odata.etag"] = f"W/\"{uuid.uuid4().hex[:8]}\""
            return httpx.Response(200, json=record)

        return httpx.Response(405)

    def _take_failure(self, method: str, resource: str) -> Optional[Dict[str, Any]]:
        for failure in self._failures:
            if failure["method"] == method and failure["resource"] == resource:
                if failure["skip"] > 0:
                    failure["skip"] -= 1
                    return None
                self._failures.remove(failure)
                return failure
        return None


def seed_account_defaults(fake: FakeDataService, **overrides: Optional[str]) -> None:
    """Seed the standard chart mapping; pass Type=None to leave one out."""
    defaults = {
        "AccountsReceivable": "ar-123",
        "AccountsPayable": "ap-789",
        "DefaultRevenue": "rev-456",
        "DefaultCash": "cash-001",
    }
    defaults.update(overrides)
    for account_type, account_id in defaults.items():
        if account_id:
            fake.add(
                "accountdefaults",
                {"AccountType": account_type, "AccountId": account_id, "IsActive": True},
            )


def seed_invoice(fake: FakeDataService, invoice_id: str = "inv-1", lines=(600, 400), **fields: Any) -> Dict[str, Any]:
    record = {
        "Id": invoice_id,
        "InvoiceNumber": "INV-001",
        "CustomerId": "cust-1",
        "CustomerName": "Acme Corp",
        "IssueDate": "2024-01-10",
        "TotalAmount": sum(lines),
        "AmountPaid": 0,
        "Status": "Open",
        "JournalEntryId": None,
    }
    record.update(fields)
    fake.add("invoices", record)
    for index, amount in enumerate(lines):
        fake.add(
            "invoicelines",
            {
                "Id": f"{invoice_id}-line-{index + 1}",
                "InvoiceId": invoice_id,
                "Description": f"Service {index + 1}",
                "Amount": amount,
            },
        )
    return record


def seed_bill(fake: FakeDataService, bill_id: str = "bill-1", lines=(("exp-1", 250), ("exp-2", 150)), **fields: Any) -> Dict[str, Any]:
    record = {
        "Id": bill_id,
        "BillNumber": "BILL-001",
        "VendorId": "vend-1",
        "VendorName": "Office Supplies Co",
        "BillDate": "2024-01-12",
        "TotalAmount": sum(amount for _, amount in lines),
        "AmountPaid": 0,
        "Status": "Open",
        "JournalEntryId": None,
    }
    record.update(fields)
    fake.add("bills", record)
    for index, (account_id, amount) in enumerate(lines):
        fake.add(
            "billlines",
            {
                "Id": f"{bill_id}-line-{index + 1}",
                "BillId": bill_id,
                "Description": f"Expense {index + 1}",
                "AccountId": account_id,
                "Amount": amount,
            },
        )
    return record


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def fake_service() -> FakeDataService:
    return FakeDataService()


@pytest.fixture
def data_client(fake_service):
    http_client = httpx.Client(transport=httpx.MockTransport(fake_service.handler))
    client = AccountingDataClient(BASE_URL, http_client=http_client)
    yield client
    client.close()


@pytest.fixture
def resolver(data_client):
    return AccountDefaultResolver(data_client, cache=TTLCache(ttl_seconds=60))


@pytest.fixture
def repository(data_client):
    return DocumentRepository(data_client)


@pytest.fixture
def writer(data_client):
    return JournalEntryWriter(data_client)


@pytest.fixture
def locks():
    return DocumentLocks()


@pytest.fixture
def posting(repository, resolver, writer, locks):
    return DocumentPostingService(repository, resolver, writer, locks=locks, today=lambda: "2024-02-01")


@pytest.fixture
def reversal(repository, writer, locks):
    return ReversalService(repository, writer, locks=locks, today=lambda: "2024-03-01")


@pytest.fixture
def payments(data_client, repository, resolver, writer, locks):
    return PaymentRecorder(
        data_client,
        repository,
        resolver,
        writer,
        locks=locks,
        number_factory=lambda prefix: f"{prefix}-1700000000000",
    )
