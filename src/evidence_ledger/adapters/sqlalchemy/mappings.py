"""SQLAlchemy mapping metadata for the evidence ledger domain model."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from evidence_ledger.domain.model import (
    AuditEvent,
    AuditEventType,
    AuditObjectType,
    CanonicalEntity,
    ConflictSource,
    DatasetType,
    Decision,
    DecisionType,
    DraftStatus,
    EntityRef,
    EntityType,
    EvidenceDraft,
    EvidenceRecord,
    IdempotencyKey,
    IngestionMethod,
    MappingStatus,
    MappingSuggestion,
    Priority,
    ReconciliationStatus,
    SealedStatus,
    SuggestionStatus,
    SuggestionType,
    WorkItem,
    WorkItemStatus,
    WorkItemType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _load_json_list(value: str | None) -> list[Any]:
    if value is None:
        return []
    loaded = json.loads(value)
    if not isinstance(loaded, list):
        return []
    return cast(list[Any], loaded)


class EntityRefType(TypeDecorator[EntityRef]):
    """Single optional entity reference stored as a JSON object."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: EntityRef | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.as_dict(), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> EntityRef | None:
        _ = dialect
        if value is None:
            return None
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return None
        return EntityRef.from_dict(cast(dict[str, Any], loaded))


class EntityRefListType(TypeDecorator[list[EntityRef]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[EntityRef] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps([ref.as_dict() for ref in value])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[EntityRef]:
        _ = dialect
        return [
            EntityRef.from_dict(cast(dict[str, Any], item))
            for item in _load_json_list(value)
            if isinstance(item, dict)
        ]


class ConflictSourceListType(TypeDecorator[list[ConflictSource]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: list[ConflictSource] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps([source.as_dict() for source in value])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[ConflictSource]:
        _ = dialect
        return [
            ConflictSource.from_dict(cast(dict[str, Any], item))
            for item in _load_json_list(value)
            if isinstance(item, dict)
        ]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _tenant_key() -> tuple[Column[str], Column[str]]:
    return (
        Column("tenant_id", String(64), primary_key=True),
        Column("id", String(64), primary_key=True),
    )


# Evidence ---------------------------------------------------------------------

evidence_table = Table(
    "evidence_record",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("display_id", String(64), nullable=False),
    Column("dataset_type", Enum(DatasetType, native_enum=False), nullable=False),
    Column("ingestion_method", Enum(IngestionMethod, native_enum=False), nullable=False),
    Column("source_system", String, nullable=False),
    Column("ingested_by", String, nullable=False),
    Column("ingested_at", UTCDateTime(), nullable=False),
    Column("retention_end", UTCDateTime(), nullable=True),
    Column("sealed_status", Enum(SealedStatus, native_enum=False), nullable=False),
    Column("quarantine_reason", String, nullable=True),
    Column("payload_hash", String(64), nullable=False, default=""),
    Column("metadata_hash", String(64), nullable=False, default=""),
    Column("canonical_payload", JSON, nullable=False),
    Column("source_metadata", JSON, nullable=False),
    Column("linked_entities", EntityRefListType(), nullable=False),
    Column(
        "reconciliation_status",
        Enum(ReconciliationStatus, native_enum=False),
        nullable=False,
    ),
    Column("blocking_issues", JSON, nullable=False),
    Column("sealed_at", UTCDateTime(), nullable=True),
    Column("draft_id", String(64), nullable=True),
    UniqueConstraint("tenant_id", "display_id"),
)

evidence_draft_table = Table(
    "evidence_draft",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("display_id", String(64), nullable=False),
    Column("dataset_type", Enum(DatasetType, native_enum=False), nullable=False),
    Column("ingestion_method", Enum(IngestionMethod, native_enum=False), nullable=False),
    Column("source_system", String, nullable=False),
    Column("created_by", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("status", Enum(DraftStatus, native_enum=False), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("source_metadata", JSON, nullable=False),
    Column("linked_entity", EntityRefType(), nullable=True),
    Column("validation_errors", JSON, nullable=False),
    Column("sealed_record_id", String(64), nullable=True),
)

# Work items / decisions / audit -----------------------------------------------

work_item_table = Table(
    "work_item",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("item_type", Enum(WorkItemType, native_enum=False), nullable=False),
    Column("status", Enum(WorkItemStatus, native_enum=False), nullable=False),
    Column("priority", Enum(Priority, native_enum=False), nullable=False),
    Column("owner", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("created_by", String, nullable=True),
    Column("updated_by", String, nullable=True),
    Column("sla_hours", Integer, nullable=False),
    Column("linked_evidence_id", String(64), nullable=True),
    Column("linked_entity_type", Enum(EntityType, native_enum=False), nullable=True),
    Column("linked_entity_id", String(64), nullable=True),
    Column("dataset_type", Enum(DatasetType, native_enum=False), nullable=True),
    Column("parent_id", String(64), nullable=True),
    Column("reason", Text, nullable=True),
    Column("conflict_field", String, nullable=True),
    Column("conflict_sources", ConflictSourceListType(), nullable=False),
    Column("details", JSON, nullable=False),
    Column("assignment_reason", Text, nullable=True),
    Column("routing_rule", String, nullable=True),
    Column("version", Integer, nullable=False),
    Index("ix_work_item_parent", "tenant_id", "parent_id"),
)

decision_table = Table(
    "decision",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("work_item_id", String(64), nullable=True),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=True),
    Column("entity_id", String(64), nullable=True),
    Column("evidence_id", String(64), nullable=True),
    Column("decision_type", Enum(DecisionType, native_enum=False), nullable=False),
    Column("reason_code", String, nullable=False),
    Column("comment", Text, nullable=True),
    Column("actor", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("supersedes_decision_id", String(64), nullable=True),
    Column("context", JSON, nullable=False),
    Index("ix_decision_work_item", "tenant_id", "work_item_id"),
)

audit_event_table = Table(
    "audit_event",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("event_type", Enum(AuditEventType, native_enum=False), nullable=False),
    Column("object_type", Enum(AuditObjectType, native_enum=False), nullable=False),
    Column("object_id", String(64), nullable=False),
    Column("actor", String, nullable=False),
    Column("timestamp", UTCDateTime(), nullable=False),
    Column("details", JSON, nullable=False),
    Index("ix_audit_event_object", "tenant_id", "object_type", "object_id"),
)

# Canonical entities -----------------------------------------------------------

canonical_entity_table = Table(
    "canonical_entity",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("name", String, nullable=False),
    Column("canonical_fields", JSON, nullable=False),
    Column("mapping_status", Enum(MappingStatus, native_enum=False), nullable=False),
    Column("conflict_count", Integer, nullable=False),
    Column("evidence_count", Integer, nullable=False),
    Column("quarantined_evidence_count", Integer, nullable=False),
    Column("missing_required_fields", JSON, nullable=False),
    Column("attributes", JSON, nullable=False),
    Column("version", Integer, nullable=False),
)

mapping_suggestion_table = Table(
    "mapping_suggestion",
    mapper_registry.metadata,
    *_tenant_key(),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("entity_id", String(64), nullable=False),
    Column("target_entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("target_entity_id", String(64), nullable=False),
    Column("confidence", Integer, nullable=False),
    Column("suggestion_type", Enum(SuggestionType, native_enum=False), nullable=False),
    Column("model_reason", Text, nullable=False),
    Column("status", Enum(SuggestionStatus, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("decided_at", UTCDateTime(), nullable=True),
    Column("decided_by", String, nullable=True),
)

idempotency_key_table = Table(
    "idempotency_key",
    mapper_registry.metadata,
    Column("tenant_id", String(64), primary_key=True),
    Column("key", String(255), primary_key=True),
    Column("work_item_id", String(64), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto the tables above (idempotent)."""

    log.info("Starting mappers")

    mapper_registry.map_imperatively(EvidenceRecord, evidence_table)
    mapper_registry.map_imperatively(EvidenceDraft, evidence_draft_table)
    mapper_registry.map_imperatively(
        WorkItem,
        work_item_table,
        version_id_col=work_item_table.c.version,
    )
    mapper_registry.map_imperatively(Decision, decision_table)
    mapper_registry.map_imperatively(AuditEvent, audit_event_table)
    mapper_registry.map_imperatively(
        CanonicalEntity,
        canonical_entity_table,
        version_id_col=canonical_entity_table.c.version,
    )
    mapper_registry.map_imperatively(MappingSuggestion, mapping_suggestion_table)
    mapper_registry.map_imperatively(IdempotencyKey, idempotency_key_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
