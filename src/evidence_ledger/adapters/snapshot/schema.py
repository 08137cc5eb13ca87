"""Pydantic models describing the ledger's JSON snapshot document.

The document uses camelCase keys. Snake-case keys are accepted as well, and a
handful of older spellings (``recordId``, ``ingestedAtUtc``, ``draftPayload``,
``payloadHashSha256`` ...) are folded onto the current names before validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime  # noqa: TC003
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from evidence_ledger.domain.model import (
    AuditEventType,
    AuditObjectType,
    DatasetType,
    DecisionType,
    DraftStatus,
    EntityType,
    IngestionMethod,
    MappingStatus,
    Priority,
    ReconciliationStatus,
    SealedStatus,
    SuggestionStatus,
    SuggestionType,
    WorkItemStatus,
    WorkItemType,
)

FORMAT_VERSION = 1

# grouped entity documents key their lists by these names
_ENTITY_GROUPS = {
    "suppliers": EntityType.SUPPLIER,
    "skus": EntityType.SKU,
    "boms": EntityType.BOM,
}


def _rename_keys(value: object, renames: Mapping[str, str]) -> object:
    if not isinstance(value, Mapping):
        return value
    data: dict[str, object] = dict(cast(Mapping[str, object], value))
    for old, new in renames.items():
        if old in data and new not in data:
            data[new] = data.pop(old)
    return data


class SnapshotModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class EntityRefPayload(SnapshotModel):
    entity_type: EntityType
    entity_id: str


class ConflictSourcePayload(SnapshotModel):
    evidence_id: str
    display_id: str | None = None
    value: Any = None
    source_system: str = ""
    trust_rank: int = 0


class EvidencePayload(SnapshotModel):
    id: str
    tenant_id: str | None = None
    display_id: str
    dataset_type: DatasetType
    ingestion_method: IngestionMethod
    source_system: str
    ingested_by: str
    ingested_at: datetime
    retention_end: datetime | None = None
    sealed_status: SealedStatus = SealedStatus.INGESTED
    quarantine_reason: str | None = None
    payload_hash: str = ""
    metadata_hash: str = ""
    canonical_payload: dict[str, Any] = Field(default_factory=dict[str, Any])
    source_metadata: dict[str, Any] = Field(default_factory=dict[str, Any])
    linked_entities: list[EntityRefPayload] = Field(default_factory=list[EntityRefPayload])
    reconciliation_status: ReconciliationStatus | None = None
    blocking_issues: list[str] = Field(default_factory=list[str])
    sealed_at: datetime | None = None
    draft_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_keys(cls, value: object) -> object:
        return _rename_keys(
            value,
            {
                "recordId": "id",
                "record_id": "id",
                "ingestedAtUtc": "ingestedAt",
                "retentionEndsUtc": "retentionEnd",
                "payloadHashSha256": "payloadHash",
                "metadataHashSha256": "metadataHash",
                "linkedEntityRefs": "linkedEntities",
            },
        )


class EvidenceDraftPayload(SnapshotModel):
    id: str
    tenant_id: str | None = None
    display_id: str
    dataset_type: DatasetType
    ingestion_method: IngestionMethod
    source_system: str
    status: DraftStatus = DraftStatus.DRAFT
    created_by: str
    created_at: datetime
    updated_at: datetime | None = None
    payload: dict[str, Any] = Field(default_factory=dict[str, Any])
    source_metadata: dict[str, Any] = Field(default_factory=dict[str, Any])
    linked_entity: EntityRefPayload | None = None
    validation_errors: list[str] = Field(default_factory=list[str])
    sealed_record_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_keys(cls, value: object) -> object:
        return _rename_keys(
            value,
            {
                "draftId": "id",
                "draftPayload": "payload",
                "linkedEntityRef": "linkedEntity",
            },
        )


class WorkItemPayload(SnapshotModel):
    """A work item as the dashboard stores it.

    Conflict data, the free-text reason and the financial exposure all live in
    ``details``; the translator lifts them onto typed domain fields.
    """

    id: str
    tenant_id: str | None = None
    item_type: WorkItemType = Field(alias="type")
    status: WorkItemStatus = WorkItemStatus.OPEN
    priority: Priority = Priority.MEDIUM
    owner: str = "Unassigned"
    created_at: datetime
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None
    sla_hours: int = 48
    linked_evidence_id: str | None = None
    linked_entity_ref: EntityRefPayload | None = None
    dataset_type: DatasetType | None = None
    parent_id: str | None = None
    assignment_reason: str | None = None
    routing_rule: str | None = None
    details: dict[str, Any] = Field(default_factory=dict[str, Any])

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_keys(cls, value: object) -> object:
        return _rename_keys(value, {"workItemId": "id", "parentWorkItemId": "parentId"})


class EntityPayload(SnapshotModel):
    """Canonical entity; keys outside the known fields are kept as attributes."""

    entity_id: str
    tenant_id: str | None = None
    entity_type: EntityType
    name: str = ""
    canonical_fields: dict[str, Any] = Field(default_factory=dict[str, Any])
    mapping_status: MappingStatus = MappingStatus.UNMAPPED
    conflict_count: int = 0
    evidence_count: int = 0
    quarantined_evidence_count: int = 0
    missing_required_fields: list[str] = Field(default_factory=list[str])
    attributes: dict[str, Any] = Field(default_factory=dict[str, Any])

    @model_validator(mode="before")
    @classmethod
    def _collect_attributes(cls, value: object) -> object:
        value = _rename_keys(value, {"id": "entityId", "legalName": "name"})
        if not isinstance(value, dict):
            return value
        data = cast(dict[str, object], value)
        known = set(cls.model_fields) | {to_camel(name) for name in cls.model_fields}
        extras = {key: data.pop(key) for key in list(data) if key not in known}
        if extras:
            attributes = data.get("attributes")
            merged = dict(cast(Mapping[str, object], attributes)) if isinstance(attributes, Mapping) else {}
            data["attributes"] = {**extras, **merged}
        return data


class MappingSuggestionPayload(SnapshotModel):
    id: str
    tenant_id: str | None = None
    entity_ref: EntityRefPayload
    proposed_target_ref: EntityRefPayload
    confidence: int
    suggestion_type: SuggestionType
    model_reason: str = ""
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: datetime
    decided_at: datetime | None = None
    decided_by: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence_percent(cls, value: object) -> object:
        # fractional scores (0.95) are read as percentages
        if isinstance(value, float) and 0 <= value <= 1:
            return round(value * 100)
        return value


class DecisionPayload(SnapshotModel):
    id: str
    tenant_id: str | None = None
    decision_type: DecisionType
    reason_code: str
    actor: str
    created_at: datetime
    work_item_id: str | None = None
    entity_ref: EntityRefPayload | None = None
    evidence_id: str | None = None
    comment: str | None = None
    supersedes_decision_id: str | None = None
    context: dict[str, Any] = Field(default_factory=dict[str, Any])

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_keys(cls, value: object) -> object:
        return _rename_keys(value, {"createdBy": "actor", "created_by": "actor"})


class AuditEventPayload(SnapshotModel):
    id: str
    tenant_id: str | None = None
    event_type: AuditEventType
    object_type: AuditObjectType
    object_id: str
    actor: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict[str, Any])


class IdempotencyKeyPayload(SnapshotModel):
    key: str
    tenant_id: str | None = None
    work_item_id: str
    created_at: datetime


class Snapshot(SnapshotModel):
    """The whole ledger of one or more tenants as a single JSON document."""

    format_version: int = FORMAT_VERSION
    tenant_id: str | None = None
    exported_at: datetime | None = None
    evidence: list[EvidencePayload] = Field(default_factory=list[EvidencePayload])
    evidence_drafts: list[EvidenceDraftPayload] = Field(default_factory=list[EvidenceDraftPayload])
    work_items: list[WorkItemPayload] = Field(default_factory=list[WorkItemPayload])
    entities: list[EntityPayload] = Field(default_factory=list[EntityPayload])
    mapping_suggestions: list[MappingSuggestionPayload] = Field(
        default_factory=list[MappingSuggestionPayload]
    )
    decisions: list[DecisionPayload] = Field(default_factory=list[DecisionPayload])
    audit_events: list[AuditEventPayload] = Field(default_factory=list[AuditEventPayload])
    idempotency_keys: list[IdempotencyKeyPayload] = Field(
        default_factory=list[IdempotencyKeyPayload]
    )

    @field_validator("entities", mode="before")
    @classmethod
    def _flatten_entity_groups(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        flattened: list[object] = []
        for group, items in cast(Mapping[str, object], value).items():
            entity_type = _ENTITY_GROUPS.get(group)
            if entity_type is None:
                raise ValueError(f"Unknown entity group: {group}")
            if not isinstance(items, list):
                raise ValueError(f"Entity group {group} must be a list")
            for item in cast(list[object], items):
                if isinstance(item, Mapping):
                    entry = dict(cast(Mapping[str, object], item))
                    entry.setdefault("entityType", str(entity_type))
                    flattened.append(entry)
                else:
                    flattened.append(item)
        return flattened
