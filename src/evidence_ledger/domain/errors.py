"""Errors raised inside the ledger domain.

Service functions translate these into failed ``ActionResult`` values; they are
never meant to reach a caller of the service layer.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for expected, user-facing ledger failures."""

    code = "LEDGER_ERROR"


class ValidationFailed(LedgerError):
    code = "VALIDATION_FAILED"


class RecordNotFound(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class WorkItemTypeMismatch(LedgerError):
    code = "TYPE_MISMATCH"


class ImmutableRecordError(LedgerError):
    code = "IMMUTABLE_RECORD"


class InvalidTransition(LedgerError):
    code = "INVALID_TRANSITION"


class ConcurrentModification(LedgerError):
    code = "CONCURRENT_MODIFICATION"


class DuplicateRecord(LedgerError):
    code = "DUPLICATE"


class ExportFailed(LedgerError):
    code = "EXPORT_FAILED"
