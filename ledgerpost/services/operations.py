"""
Step tracking for multi-call operations.

The data service has no transaction spanning documents, entries and lines,
so a failure part-way leaves partial state behind. OperationLog records each
completed step and every id written, and stamps that onto any
RemoteServiceError raised inside a step so an operator can reconcile.
"""
from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List

from ledgerpost.services.errors import RemoteServiceError
from ledgerpost.services.logging import log_error


class Step(str, Enum):
    FETCH_DOCUMENT = "fetch_document"
    FETCH_LINES = "fetch_lines"
    RESOLVE_ACCOUNTS = "resolve_accounts"
    FETCH_ORIGINAL_LINES = "fetch_original_lines"
    FETCH_TARGETS = "fetch_targets"
    CREATE_PAYMENT = "create_payment"
    CREATE_ENTRY = "create_entry"
    CREATE_ENTRY_LINES = "create_entry_lines"
    LINK_PAYMENT_ENTRY = "link_payment_entry"
    VOID_ORIGINAL_ENTRY = "void_original_entry"
    UPDATE_DOCUMENT = "update_document"
    APPLY_PAYMENT = "apply_payment"


class OperationLog:
    def __init__(self, operation: str, subject_id: str) -> None:
        self.operation = operation
        self.subject_id = subject_id
        self.completed: List[str] = []
        self.written: Dict[str, Any] = {}

    @property
    def has_written(self) -> bool:
        return bool(self.written)

    def record(self, **refs: Any) -> None:
        self.written.update(refs)

    @contextmanager
    def step(self, step: Step) -> Iterator[None]:
        try:
            yield
        except RemoteServiceError as exc:
            exc.attach_step(step.value, list(self.completed), dict(self.written))
            if self.has_written:
                # Partial state left in the data service; needs manual repair
                log_error(
                    "partial_write",
                    f"{self.operation} {self.subject_id} failed at {step.value} after writes",
                    context={
                        "operation": self.operation,
                        "subject_id": self.subject_id,
                        "step": step.value,
                        "completed_steps": list(self.completed),
                        "written": dict(self.written),
                        "detail": exc.detail,
                    },
                )
            raise
        self.completed.append(step.value)
