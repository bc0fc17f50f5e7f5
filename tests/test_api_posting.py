"""
Tests for the HTTP surface.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import seed_account_defaults, seed_bill, seed_invoice
from ledgerpost.api.deps import (
    get_account_resolver,
    get_payment_recorder,
    get_posting_service,
    get_reversal_service,
)
from ledgerpost.services.metrics import get_metrics
from main import app


@pytest.fixture
def api(posting, reversal, payments, resolver):
    app.dependency_overrides[get_posting_service] = lambda: posting
    app.dependency_overrides[get_reversal_service] = lambda: reversal
    app.dependency_overrides[get_payment_recorder] = lambda: payments
    app.dependency_overrides[get_account_resolver] = lambda: resolver
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSystemEndpoints:

    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics_counts_postings(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_invoice(fake_service, "inv-1")

        api.post("/invoices/inv-1/post")
        api.post("/invoices/inv-1/post")

        data = api.get("/metrics").json()
        assert data["postings"]["post_invoice:success"] == 1
        assert data["postings"]["post_invoice:error"] == 1
        assert data["errors"]["by_code"]["ALREADY_POSTED"] == 1


class TestPostingEndpoints:

    def test_post_invoice(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_invoice(fake_service, "inv-1")

        response = api.post("/invoices/inv-1/post", headers={"X-User-Id": "alice"})

        assert response.status_code == 200
        data = response.json()
        assert data["invoiceId"] == "inv-1"
        assert data["totalAmount"] == 1000.0
        assert data["linesCount"] == 2
        entry = fake_service.get("journalentries", data["journalEntryId"])
        assert entry["CreatedBy"] == "alice"

    def test_post_twice_is_conflict(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_invoice(fake_service, "inv-1")

        api.post("/invoices/inv-1/post")
        response = api.post("/invoices/inv-1/post")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ALREADY_POSTED"

    def test_post_missing_invoice(self, api, fake_service):
        response = api.post("/invoices/nope/post")

        assert response.status_code == 404
        assert response.json()["detail"]["message"] == "Invoice nope not found"

    def test_post_bill_missing_line_account(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_bill(fake_service, "bill-1", lines=((None, 100),))

        response = api.post("/bills/bill-1/post")

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "MISSING_LINE_ACCOUNT"

    def test_missing_configuration(self, api, fake_service):
        seed_invoice(fake_service, "inv-1")

        response = api.post("/invoices/inv-1/post")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "INVALID_CONFIG"

    def test_remote_failure(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_invoice(fake_service, "inv-1")
        fake_service.fail("POST", "journalentries", status=500)

        response = api.post("/invoices/inv-1/post")

        assert response.status_code == 502
        assert response.json()["detail"]["context"]["step"] == "create_entry"

    def test_post_and_void_bill(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_bill(fake_service, "bill-1")

        posted = api.post("/bills/bill-1/post").json()
        response = api.post("/bills/bill-1/void")

        assert response.status_code == 200
        data = response.json()
        assert data["billId"] == "bill-1"
        assert data["originalJournalEntryId"] == posted["journalEntryId"]

    def test_void_unposted_invoice(self, api, fake_service):
        seed_invoice(fake_service, "inv-1")

        response = api.post("/invoices/inv-1/void")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "NOT_POSTED"


class TestPaymentEndpoints:

    def test_record_payment(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_invoice(fake_service, "inv-1", lines=(500,), JournalEntryId="je-1", Status="Posted")

        response = api.post(
            "/payments",
            json={
                "customerId": "cust-1",
                "paymentDate": "2024-01-15",
                "totalAmount": 500,
                "applications": [{"invoiceId": "inv-1", "amountApplied": 500}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["paymentNumber"].startswith("PMT-")
        assert data["applicationsCount"] == 1

    def test_record_payment_missing_fields(self, api):
        response = api.post("/payments", json={"customerId": "cust-1"})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "MISSING_FIELD"
        assert detail["message"] == "Missing required payment fields: paymentDate, totalAmount"

    def test_record_bill_payment(self, api, fake_service):
        seed_account_defaults(fake_service)
        seed_bill(fake_service, "bill-1", JournalEntryId="je-1", Status="Posted")

        response = api.post(
            "/bill-payments",
            json={"vendorId": "vend-1", "paymentDate": "2024-01-20", "totalAmount": 400,
                  "applications": [{"billId": "bill-1", "amountApplied": 400}]},
        )

        assert response.status_code == 200
        assert "billPaymentId" in response.json()


class TestAccountDefaultEndpoints:

    def test_list_and_set_defaults(self, api, fake_service):
        seed_account_defaults(fake_service)

        listed = api.get("/account-defaults").json()
        assert listed["AccountsReceivable"]["accountId"] == "ar-123"
        assert "SalesTaxPayable" not in listed

        response = api.put("/account-defaults/SalesTaxPayable", json={"accountId": "tax-1"})
        assert response.status_code == 200
        assert response.json()["updated"] is False

        listed = api.get("/account-defaults").json()
        assert listed["SalesTaxPayable"]["accountId"] == "tax-1"

    def test_set_unknown_type(self, api):
        response = api.put("/account-defaults/Bogus", json={"accountId": "x"})

        assert response.status_code == 422
        assert "Unknown account type" in response.json()["detail"]["message"]

    def test_refresh(self, api, fake_service):
        seed_account_defaults(fake_service)
        api.get("/account-defaults")
        api.post("/account-defaults/refresh")
        api.get("/account-defaults")

        assert len(fake_service.calls_to("GET", "accountdefaults")) == 2
