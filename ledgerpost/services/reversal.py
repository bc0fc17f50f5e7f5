"""
Voiding posted documents

A void never edits or deletes the original journal entry lines. It writes a
reversing entry that mirrors every original line with debit and credit
swapped, then marks the document Voided.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ledgerpost.models.documents import BILL, INVOICE, DocumentKind
from ledgerpost.models.results import VoidResult
from ledgerpost.services.documents import DocumentRepository
from ledgerpost.services.errors import AlreadyVoidedError, NotFoundError, NotPostedError
from ledgerpost.services.journal_builder import JournalEntryBuilder
from ledgerpost.services.journal_entries import JournalEntryWriter
from ledgerpost.services.locks import DocumentLocks
from ledgerpost.services.logging import log_posting_event
from ledgerpost.services.operations import OperationLog, Step

logger = logging.getLogger(__name__)


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class ReversalService:
    def __init__(
        self,
        repository: DocumentRepository,
        writer: JournalEntryWriter,
        locks: Optional[DocumentLocks] = None,
        void_marks_original_entry: bool = True,
        record_reversing_entry_id: bool = False,
        today: Callable[[], str] = _today,
    ) -> None:
        self.repository = repository
        self.writer = writer
        self.locks = locks or DocumentLocks()
        self.void_marks_original_entry = void_marks_original_entry
        self.record_reversing_entry_id = record_reversing_entry_id
        self._today = today

    def void_invoice(self, invoice_id: str, acting_user: str = "system") -> VoidResult:
        return self._void(INVOICE, invoice_id, acting_user)

    def void_bill(self, bill_id: str, acting_user: str = "system") -> VoidResult:
        return self._void(BILL, bill_id, acting_user)

    def _void(self, kind: DocumentKind, document_id: str, acting_user: str) -> VoidResult:
        with self.locks.hold(kind.slug, document_id):
            ops = OperationLog(f"void_{kind.slug}", document_id)

            with ops.step(Step.FETCH_DOCUMENT):
                document = self.repository.get(kind, document_id)

            if not document.is_posted:
                raise NotPostedError(kind.name, document_id)
            if document.is_voided:
                raise AlreadyVoidedError(kind.name, document_id)

            original_id = document.journal_entry_id
            with ops.step(Step.FETCH_ORIGINAL_LINES):
                original_lines = self.writer.fetch_lines(original_id)
            if not original_lines:
                raise NotFoundError("Journal entry", original_id, detail="Original journal entry has no lines")
            logger.debug(f"Reversing {len(original_lines)} lines of journal entry {original_id}")

            draft = JournalEntryBuilder.reversal_of(
                original_lines,
                description=f"VOID: {kind.name} {document.display_number}",
                transaction_date=self._today(),
                created_by=acting_user,
                reference=f"VOID-{document.display_number}",
            ).build()

            reversing_id = self.writer.submit(draft, ops)

            if self.void_marks_original_entry:
                with ops.step(Step.VOID_ORIGINAL_ENTRY):
                    self.writer.mark_void(original_id)
                    ops.record(original_entry_voided=original_id)

            with ops.step(Step.UPDATE_DOCUMENT):
                self.repository.mark_voided(
                    document,
                    reversing_entry_id=reversing_id if self.record_reversing_entry_id else None,
                )

        log_posting_event(
            f"void_{kind.slug}",
            document_id,
            journal_entry_id=reversing_id,
            acting_user=acting_user,
            original_journal_entry_id=original_id,
        )
        return VoidResult(
            document_kind=kind.name,
            document_id=document_id,
            original_journal_entry_id=original_id,
            reversing_journal_entry_id=reversing_id,
            result_key=kind.result_key,
        )
