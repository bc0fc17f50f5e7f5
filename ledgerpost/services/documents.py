"""Reads and status write-backs for invoices and bills."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ledgerpost.integrations.data_service import AccountingDataClient, odata_eq
from ledgerpost.models.documents import Document, DocumentKind, DocumentLine, DocumentStatus
from ledgerpost.models.money import to_wire
from ledgerpost.services.errors import NotFoundError, RemoteServiceError


class DocumentRepository:
    def __init__(self, client: AccountingDataClient) -> None:
        self.client = client

    def get(self, kind: DocumentKind, document_id: str) -> Document:
        record = self.client.get_record(kind.read_resource, document_id)
        if not record:
            raise NotFoundError(kind.name, document_id)
        record.setdefault("Id", document_id)
        try:
            return Document.from_record(kind, record)
        except ValueError as exc:
            raise RemoteServiceError(
                operation=f"read {kind.read_resource} {document_id}",
                detail=f"Malformed {kind.name} record: {exc}",
                cause=exc,
            ) from exc

    def lines(self, kind: DocumentKind, document_id: str) -> List[DocumentLine]:
        rows = self.client.list_records(kind.lines_resource, filter=odata_eq(kind.parent_key, document_id))
        try:
            return [DocumentLine.from_record(kind, row) for row in rows]
        except ValueError as exc:
            raise RemoteServiceError(
                operation=f"list {kind.lines_resource}",
                detail=f"Malformed {kind.name} line: {exc}",
                cause=exc,
            ) from exc

    def mark_posted(self, document: Document, journal_entry_id: str, acting_user: str) -> None:
        self._update(
            document,
            {
                "JournalEntryId": journal_entry_id,
                "PostedAt": datetime.now(timezone.utc).isoformat(),
                "PostedBy": acting_user,
                "Status": DocumentStatus.POSTED.value,
            },
        )

    def mark_voided(self, document: Document, reversing_entry_id: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"Status": DocumentStatus.VOIDED.value}
        if reversing_entry_id:
            payload["ReversingJournalEntryId"] = reversing_entry_id
        self._update(document, payload)

    def apply_payment(self, document: Document, amount: Decimal) -> Dict[str, Any]:
        """Add `amount` to AmountPaid and move the document to Partial or Paid."""
        new_paid = document.amount_paid + amount
        status = DocumentStatus.PAID if new_paid >= document.total_amount else DocumentStatus.PARTIAL
        payload = {"AmountPaid": to_wire(new_paid), "Status": status.value}
        self._update(document, payload)
        return payload

    def _update(self, document: Document, payload: Dict[str, Any]) -> None:
        self.client.update_record(
            document.kind.write_resource,
            document.id,
            payload,
            if_match=document.etag,
        )
