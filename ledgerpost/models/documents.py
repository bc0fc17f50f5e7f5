"""Source documents (invoices and bills) as read from the data service."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from ledgerpost.models.account_defaults import AccountType
from ledgerpost.models.money import ZERO, to_money


class DocumentStatus(str, Enum):
    DRAFT = "Draft"
    OPEN = "Open"
    POSTED = "Posted"
    PARTIAL = "Partial"
    PAID = "Paid"
    VOIDED = "Voided"


@dataclass(frozen=True)
class DocumentKind:
    """
    Where a document type lives in the data service and how it posts.

    Invoices debit the receivable control account and credit revenue;
    bills debit expense and credit the payable control account.
    """
    name: str
    slug: str
    read_resource: str
    write_resource: str
    lines_resource: str
    parent_key: str
    number_field: str
    date_field: str
    counterparty_id_field: str
    counterparty_name_field: str
    counterparty_fallback: str
    line_account_field: str
    line_account_role: str
    control_account: AccountType
    control_prefix: str
    result_key: str


INVOICE = DocumentKind(
    name="Invoice",
    slug="invoice",
    read_resource="invoices",
    write_resource="invoices_write",
    lines_resource="invoicelines",
    parent_key="InvoiceId",
    number_field="InvoiceNumber",
    date_field="IssueDate",
    counterparty_id_field="CustomerId",
    counterparty_name_field="CustomerName",
    counterparty_fallback="Customer",
    line_account_field="RevenueAccountId",
    line_account_role="revenue",
    control_account=AccountType.ACCOUNTS_RECEIVABLE,
    control_prefix="AR",
    result_key="invoiceId",
)

BILL = DocumentKind(
    name="Bill",
    slug="bill",
    read_resource="bills",
    write_resource="bills_write",
    lines_resource="billlines",
    parent_key="BillId",
    number_field="BillNumber",
    date_field="BillDate",
    counterparty_id_field="VendorId",
    counterparty_name_field="VendorName",
    counterparty_fallback="Vendor",
    line_account_field="AccountId",
    line_account_role="expense",
    control_account=AccountType.ACCOUNTS_PAYABLE,
    control_prefix="AP",
    result_key="billId",
)


@dataclass
class Document:
    kind: DocumentKind
    id: str
    number: Optional[str] = None
    total_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    amount_paid: Decimal = ZERO
    counterparty_id: Optional[str] = None
    counterparty_name: Optional[str] = None
    status: Optional[str] = None
    journal_entry_id: Optional[str] = None
    transaction_date: Optional[str] = None
    project_id: Optional[str] = None
    class_id: Optional[str] = None
    etag: Optional[str] = None

    @classmethod
    def from_record(cls, kind: DocumentKind, record: Dict[str, Any]) -> "Document":
        return cls(
            kind=kind,
            id=str(record.get("Id")),
            number=record.get(kind.number_field),
            total_amount=to_money(record.get("TotalAmount")),
            tax_amount=to_money(record.get("TaxAmount")),
            amount_paid=to_money(record.get("AmountPaid")),
            counterparty_id=record.get(kind.counterparty_id_field),
            counterparty_name=record.get(kind.counterparty_name_field),
            status=record.get("Status"),
            journal_entry_id=record.get("JournalEntryId") or None,
            transaction_date=record.get(kind.date_field),
            project_id=record.get("ProjectId"),
            class_id=record.get("ClassId"),
            etag=record.get("@odata.etag"),
        )

    @property
    def is_posted(self) -> bool:
        return bool(self.journal_entry_id)

    @property
    def is_voided(self) -> bool:
        return self.status == DocumentStatus.VOIDED.value

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.amount_paid

    @property
    def display_number(self) -> str:
        return self.number or self.id

    @property
    def display_counterparty(self) -> str:
        return self.counterparty_name or self.kind.counterparty_fallback


@dataclass
class DocumentLine:
    id: Optional[str]
    amount: Decimal
    description: Optional[str] = None
    account_id: Optional[str] = None
    project_id: Optional[str] = None
    class_id: Optional[str] = None

    @classmethod
    def from_record(cls, kind: DocumentKind, record: Dict[str, Any]) -> "DocumentLine":
        return cls(
            id=record.get("Id"),
            amount=to_money(record.get("Amount")),
            description=record.get("Description"),
            account_id=record.get(kind.line_account_field) or None,
            project_id=record.get("ProjectId"),
            class_id=record.get("ClassId"),
        )
