"""Operation results returned to callers."""
from decimal import Decimal
from typing import Any, Dict

from ledgerpost.models.base import LPBaseModel


class PostingResult(LPBaseModel):
    document_kind: str
    document_id: str
    journal_entry_id: str
    total_amount: Decimal
    lines_count: int
    result_key: str = "documentId"

    def to_response(self) -> Dict[str, Any]:
        return {
            self.result_key: self.document_id,
            "journalEntryId": self.journal_entry_id,
            "totalAmount": float(self.total_amount),
            "linesCount": self.lines_count,
        }


class VoidResult(LPBaseModel):
    document_kind: str
    document_id: str
    original_journal_entry_id: str
    reversing_journal_entry_id: str
    result_key: str = "documentId"

    def to_response(self) -> Dict[str, Any]:
        return {
            self.result_key: self.document_id,
            "originalJournalEntryId": self.original_journal_entry_id,
            "reversingJournalEntryId": self.reversing_journal_entry_id,
        }


class PaymentResult(LPBaseModel):
    payment_id: str
    payment_number: str
    journal_entry_id: str
    total_amount: Decimal
    applications_count: int
    result_key: str = "paymentId"

    def to_response(self) -> Dict[str, Any]:
        return {
            self.result_key: self.payment_id,
            "paymentNumber": self.payment_number,
            "journalEntryId": self.journal_entry_id,
            "totalAmount": float(self.total_amount),
            "applicationsCount": self.applications_count,
        }
