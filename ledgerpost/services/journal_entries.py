"""
Journal entry submission.

Entries are written header first, then one line per call in draft order so
debit/credit pairs keep their order for audit.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from ledgerpost.integrations.data_service import AccountingDataClient, odata_eq
from ledgerpost.models.journal_entries import JournalEntryDraft, JournalEntryLineRecord
from ledgerpost.models.money import to_wire
from ledgerpost.services.errors import RemoteServiceError
from ledgerpost.services.operations import OperationLog, Step

logger = logging.getLogger(__name__)

JOURNAL_ENTRIES_RESOURCE = "journalentries"
JOURNAL_ENTRY_LINES_RESOURCE = "journalentrylines"


class JournalEntryWriter:
    def __init__(self, client: AccountingDataClient) -> None:
        self.client = client

    def submit(self, draft: JournalEntryDraft, ops: OperationLog) -> str:
        """Create the entry and its lines. Returns the new entry id."""
        entry_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()

        with ops.step(Step.CREATE_ENTRY):
            self.client.create_record(
                JOURNAL_ENTRIES_RESOURCE,
                {
                    "Id": entry_id,
                    "TransactionDate": draft.transaction_date,
                    "Description": draft.description,
                    "Reference": draft.reference,
                    "Status": draft.status,
                    "CreatedBy": draft.created_by,
                    "PostedAt": now,
                    "PostedBy": draft.created_by,
                },
            )
            ops.record(journal_entry_id=entry_id)

        with ops.step(Step.CREATE_ENTRY_LINES):
            for index, line in enumerate(draft.lines):
                self.client.create_record(
                    JOURNAL_ENTRY_LINES_RESOURCE,
                    {
                        "JournalEntryId": entry_id,
                        "AccountId": line.account_id,
                        "Description": line.description,
                        "Debit": to_wire(line.debit),
                        "Credit": to_wire(line.credit),
                        "ProjectId": line.project_id,
                        "ClassId": line.class_id,
                    },
                )
                ops.record(journal_entry_lines_written=index + 1)

        logger.debug(f"Created journal entry {entry_id} with {len(draft.lines)} lines")
        return entry_id

    def fetch_lines(self, entry_id: str) -> List[JournalEntryLineRecord]:
        rows = self.client.list_records(
            JOURNAL_ENTRY_LINES_RESOURCE, filter=odata_eq("JournalEntryId", entry_id)
        )
        try:
            return [JournalEntryLineRecord.model_validate(row) for row in rows]
        except ValueError as exc:
            raise RemoteServiceError(
                operation=f"list {JOURNAL_ENTRY_LINES_RESOURCE}",
                detail=f"Malformed journal entry line: {exc}",
                cause=exc,
            ) from exc

    def mark_void(self, entry_id: str) -> None:
        self.client.update_record(JOURNAL_ENTRIES_RESOURCE, entry_id, {"Status": "Void"})
