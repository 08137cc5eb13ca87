"""Public domain model surface."""

from __future__ import annotations

from evidence_ledger.domain.model.audit import AuditEvent
from evidence_ledger.domain.model.canonical import (
    CanonicalEntity,
    IdempotencyKey,
    MappingSuggestion,
)
from evidence_ledger.domain.model.decision import Decision
from evidence_ledger.domain.model.enums import (
    AuditEventType,
    AuditObjectType,
    DatasetType,
    DecisionType,
    DraftStatus,
    EntityType,
    IngestionMethod,
    MappingStatus,
    Priority,
    Readiness,
    ReconciliationStatus,
    ResolutionStrategy,
    SealedStatus,
    SuggestionStatus,
    SuggestionType,
    WorkItemStatus,
    WorkItemType,
)
from evidence_ledger.domain.model.evidence import (
    SCOPE_BINDING_ISSUE,
    EvidenceDraft,
    EvidenceRecord,
    metadata_document,
)
from evidence_ledger.domain.model.primitives import (
    Actor,
    ConflictSource,
    EntityRef,
    JsonObject,
    JsonScalar,
    ReasonCode,
    TenantId,
)
from evidence_ledger.domain.model.work_item import DEFAULT_SLA_HOURS, UNASSIGNED, WorkItem

__all__ = [  # noqa: RUF022
    # evidence
    "EvidenceRecord",
    "EvidenceDraft",
    "SCOPE_BINDING_ISSUE",
    "metadata_document",
    # work items
    "WorkItem",
    "UNASSIGNED",
    "DEFAULT_SLA_HOURS",
    # decisions / audit
    "Decision",
    "AuditEvent",
    # canonical
    "CanonicalEntity",
    "MappingSuggestion",
    "IdempotencyKey",
    # enums
    "AuditEventType",
    "AuditObjectType",
    "DatasetType",
    "DecisionType",
    "DraftStatus",
    "EntityType",
    "IngestionMethod",
    "MappingStatus",
    "Priority",
    "Readiness",
    "ReconciliationStatus",
    "ResolutionStrategy",
    "SealedStatus",
    "SuggestionStatus",
    "SuggestionType",
    "WorkItemStatus",
    "WorkItemType",
    # primitives
    "Actor",
    "ConflictSource",
    "EntityRef",
    "JsonObject",
    "JsonScalar",
    "ReasonCode",
    "TenantId",
]
