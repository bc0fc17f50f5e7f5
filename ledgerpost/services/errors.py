"""
Ledger posting error handling

Specific error types with operator-friendly messages and reconciliation context.
"""
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for client handling."""
    # Lifecycle (409)
    ALREADY_POSTED = "ALREADY_POSTED"
    ALREADY_VOIDED = "ALREADY_VOIDED"
    NOT_POSTED = "NOT_POSTED"
    CONFLICT = "CONFLICT"

    # Lookup (404)
    NOT_FOUND = "NOT_FOUND"

    # Structural / input (422)
    NO_LINES = "NO_LINES"
    MISSING_LINE_ACCOUNT = "MISSING_LINE_ACCOUNT"
    MISSING_FIELD = "MISSING_FIELD"
    UNBALANCED_ENTRY = "UNBALANCED_ENTRY"

    # Setup (500)
    INVALID_CONFIG = "INVALID_CONFIG"

    # External service (502)
    REMOTE_SERVICE_ERROR = "REMOTE_SERVICE_ERROR"


class LedgerPostError(Exception):
    """Base exception with structured error info."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        result = {
            "error": self.code.value,
            "message": self.message
        }
        if self.detail:
            result["detail"] = self.detail
        if self.context:
            result["context"] = self.context
        return result


class NotFoundError(LedgerPostError):
    """Referenced document or journal entry does not exist."""

    def __init__(self, entity: str, entity_id: str, detail: Optional[str] = None):
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{entity} {entity_id} not found",
            detail=detail,
            context={"entity": entity, "id": entity_id}
        )


class AlreadyPostedError(LedgerPostError):

    def __init__(self, entity: str, entity_id: str, journal_entry_id: Optional[str] = None):
        super().__init__(
            code=ErrorCode.ALREADY_POSTED,
            message=f"{entity} {entity_id} is already posted",
            context={"entity": entity, "id": entity_id, "journal_entry_id": journal_entry_id}
        )


class AlreadyVoidedError(LedgerPostError):

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            code=ErrorCode.ALREADY_VOIDED,
            message=f"{entity} {entity_id} is already voided",
            context={"entity": entity, "id": entity_id}
        )


class NotPostedError(LedgerPostError):

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            code=ErrorCode.NOT_POSTED,
            message=f"{entity} {entity_id} is not posted",
            context={"entity": entity, "id": entity_id}
        )


class NoLinesError(LedgerPostError):

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            code=ErrorCode.NO_LINES,
            message=f"{entity} {entity_id} has no lines",
            context={"entity": entity, "id": entity_id}
        )


class MissingLineAccountError(LedgerPostError):
    """A document line has no ledger account to post to."""

    def __init__(self, entity: str, document_id: str, line_id: Optional[str], role: str):
        super().__init__(
            code=ErrorCode.MISSING_LINE_ACCOUNT,
            message=f"{entity} line {line_id} is missing {'an' if role[:1] in 'aeiou' else 'a'} {role} account",
            context={"entity": entity, "document_id": document_id, "line_id": line_id}
        )


class ConfigurationError(LedgerPostError):
    """Required account default missing or inactive."""

    def __init__(self, message: str, account_type: Optional[str] = None):
        super().__init__(
            code=ErrorCode.INVALID_CONFIG,
            message=message,
            context={"account_type": account_type} if account_type else None
        )


class ValidationError(LedgerPostError):
    """Request input is incomplete or inconsistent."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(
            code=ErrorCode.MISSING_FIELD,
            message=message,
            context={"missing_fields": missing_fields} if missing_fields else None
        )

    @classmethod
    def missing(cls, fields: List[str]) -> "ValidationError":
        return cls(f"Missing required payment fields: {', '.join(fields)}", missing_fields=fields)


class UnbalancedEntryError(LedgerPostError):
    """Journal entry failed the debit/credit checks."""

    def __init__(self, message: str, **context: Any):
        super().__init__(
            code=ErrorCode.UNBALANCED_ENTRY,
            message=message,
            context={k: v for k, v in context.items() if v is not None}
        )


class RemoteServiceError(LedgerPostError):
    """The accounting-data service failed (transport or HTTP status)."""

    def __init__(
        self,
        operation: str,
        detail: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            code=ErrorCode.REMOTE_SERVICE_ERROR,
            message=f"Accounting data service error during {operation}",
            detail=detail,
            context={"operation": operation, "status_code": status_code}
        )
        self.operation = operation
        self.status_code = status_code
        self.cause = cause
        self.step: Optional[str] = None

    def attach_step(self, step: str, completed: List[str], written: Dict[str, Any]) -> None:
        """Record which orchestrator step failed and what had already been written."""
        self.step = step
        self.context["step"] = step
        self.context["completed_steps"] = completed
        if written:
            self.context["written"] = written
        self.message = f"{self.message} (step: {step})"
        self.args = (self.message,)


class ConflictError(RemoteServiceError):
    """A conditional write was rejected by the data service."""

    def __init__(self, operation: str, detail: str, status_code: Optional[int] = None):
        super().__init__(operation=operation, detail=detail, status_code=status_code)
        self.code = ErrorCode.CONFLICT
        self.message = f"Concurrent update rejected during {operation}"
        self.args = (self.message,)


def to_http_exception(error: LedgerPostError) -> HTTPException:
    """Convert LedgerPostError to HTTPException."""
    # Map error codes to HTTP status codes
    status_map = {
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.ALREADY_POSTED: 409,
        ErrorCode.ALREADY_VOIDED: 409,
        ErrorCode.NOT_POSTED: 409,
        ErrorCode.CONFLICT: 409,
        ErrorCode.NO_LINES: 422,
        ErrorCode.MISSING_LINE_ACCOUNT: 422,
        ErrorCode.MISSING_FIELD: 422,
        ErrorCode.UNBALANCED_ENTRY: 422,
        ErrorCode.INVALID_CONFIG: 500,
        ErrorCode.REMOTE_SERVICE_ERROR: 502,
    }

    return HTTPException(
        status_code=status_map.get(error.code, 500),
        detail=error.to_dict()
    )
