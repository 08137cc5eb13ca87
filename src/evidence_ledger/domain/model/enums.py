"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class DatasetType(StrEnum):
    SUPPLIER_MASTER = "SUPPLIER_MASTER"
    BOM = "BOM"
    INVOICE = "INVOICE"
    ERP_SYNC = "ERP_SYNC"
    TEST_REPORT = "TEST_REPORT"


class IngestionMethod(StrEnum):
    FILE_UPLOAD = "FILE_UPLOAD"
    API_PUSH = "API_PUSH"
    ERP_API = "ERP_API"
    MANUAL_ENTRY = "MANUAL_ENTRY"


class SealedStatus(StrEnum):
    INGESTED = "INGESTED"
    SEALED = "SEALED"
    QUARANTINED = "QUARANTINED"


class DraftStatus(StrEnum):
    DRAFT = "DRAFT"
    READY_TO_SEAL = "READY_TO_SEAL"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    QUARANTINED = "QUARANTINED"
    SUBMITTED_FOR_REVIEW = "SUBMITTED_FOR_REVIEW"
    SEALED = "SEALED"

    @classmethod
    def _missing_(cls, value: object) -> DraftStatus | None:
        # legacy spelling used by the sealing backend
        if value == "READY_FOR_SEAL":
            return cls.READY_TO_SEAL
        return None


class ReconciliationStatus(StrEnum):
    BOUND = "BOUND"
    UNBOUND = "UNBOUND"


class EntityType(StrEnum):
    SUPPLIER = "SUPPLIER"
    SKU = "SKU"
    BOM = "BOM"


class MappingStatus(StrEnum):
    MAPPED = "MAPPED"
    UNMAPPED = "UNMAPPED"
    PENDING = "PENDING"


class Readiness(StrEnum):
    READY = "READY"
    READY_WITH_GAPS = "READY_WITH_GAPS"
    PENDING_MATCH = "PENDING_MATCH"
    NOT_READY = "NOT_READY"


class WorkItemType(StrEnum):
    REVIEW = "REVIEW"
    EXTRACTION = "EXTRACTION"
    MAPPING = "MAPPING"
    CONFLICT = "CONFLICT"
    BLOCKED = "BLOCKED"
    FOLLOW_UP = "FOLLOW_UP"


class WorkItemStatus(StrEnum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    REJECTED = "REJECTED"

    @classmethod
    def _missing_(cls, value: object) -> WorkItemStatus | None:
        if value == "DONE":
            return cls.RESOLVED
        return None

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {WorkItemStatus.RESOLVED, WorkItemStatus.CLOSED, WorkItemStatus.REJECTED}
)


class Priority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Sort rank, CRITICAL first."""
        return _PRIORITY_RANK[self]

    def escalated(self) -> Priority:
        """One step up, LOW is left alone and CRITICAL is the ceiling."""
        if self is Priority.MEDIUM:
            return Priority.HIGH
        if self is Priority.HIGH:
            return Priority.CRITICAL
        return self


_PRIORITY_RANK = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 2,
    Priority.MEDIUM: 3,
    Priority.LOW: 4,
}


class DecisionType(StrEnum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CONFLICT_RESOLVE = "CONFLICT_RESOLVE"
    MAP_APPROVE = "MAP_APPROVE"
    MAP_REJECT = "MAP_REJECT"
    DATA_QUALITY_VERIFIED = "DATA_QUALITY_VERIFIED"
    EXTRACTION_VERIFIED = "EXTRACTION_VERIFIED"


class ResolutionStrategy(StrEnum):
    PREFER_SOURCE_A = "PREFER_SOURCE_A"
    PREFER_SOURCE_B = "PREFER_SOURCE_B"
    PREFER_TRUSTED_SYSTEM = "PREFER_TRUSTED_SYSTEM"
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"


class AuditEventType(StrEnum):
    EVIDENCE_INGESTED = "EVIDENCE_INGESTED"
    EVIDENCE_SEALED = "EVIDENCE_SEALED"
    EVIDENCE_QUARANTINED = "EVIDENCE_QUARANTINED"
    DRAFT_STATE_TRANSITION = "DRAFT_STATE_TRANSITION"
    WORK_ITEM_CREATED = "WORK_ITEM_CREATED"
    WORK_ITEM_STATUS_CHANGED = "WORK_ITEM_STATUS_CHANGED"
    DECISION_LOGGED = "DECISION_LOGGED"
    PACKAGE_EXPORTED = "PACKAGE_EXPORTED"
    HASH_VERIFICATION = "HASH_VERIFICATION"


class AuditObjectType(StrEnum):
    EVIDENCE = "EVIDENCE"
    EVIDENCE_DRAFT = "EVIDENCE_DRAFT"
    WORK_ITEM = "WORK_ITEM"
    DECISION = "DECISION"
    MAPPING_SUGGESTION = "MAPPING_SUGGESTION"


class SuggestionType(StrEnum):
    EXACT_MATCH = "EXACT_MATCH"
    FUZZY_MATCH = "FUZZY_MATCH"


class SuggestionStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
