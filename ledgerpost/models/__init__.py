from ledgerpost.models.base import LPBaseModel, RemoteRecord
from ledgerpost.models.account_defaults import AccountDefault, AccountType, ResolvedAccount
from ledgerpost.models.documents import BILL, INVOICE, Document, DocumentKind, DocumentLine, DocumentStatus
from ledgerpost.models.journal_entries import JournalEntryDraft, JournalEntryLineRecord, JournalLineDraft
from ledgerpost.models.payments import (
    BillApplication,
    BillPaymentInput,
    InvoiceApplication,
    InvoicePaymentInput,
)
from ledgerpost.models.results import PaymentResult, PostingResult, VoidResult

__all__ = [
    "AccountDefault",
    "AccountType",
    "BILL",
    "BillApplication",
    "BillPaymentInput",
    "Document",
    "DocumentKind",
    "DocumentLine",
    "DocumentStatus",
    "INVOICE",
    "InvoiceApplication",
    "InvoicePaymentInput",
    "JournalEntryDraft",
    "JournalEntryLineRecord",
    "JournalLineDraft",
    "LPBaseModel",
    "PaymentResult",
    "PostingResult",
    "RemoteRecord",
    "ResolvedAccount",
    "VoidResult",
]
