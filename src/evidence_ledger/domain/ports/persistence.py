"""Ports for persisting ledger records.

Every read takes an explicit tenant id and only ever returns rows of that
tenant. Decisions and audit events are append-only: their repositories expose
no update or delete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evidence_ledger.domain.model import (
        AuditEvent,
        AuditEventType,
        AuditObjectType,
        CanonicalEntity,
        DatasetType,
        Decision,
        EntityType,
        EvidenceDraft,
        EvidenceRecord,
        IdempotencyKey,
        IngestionMethod,
        MappingSuggestion,
        SealedStatus,
        WorkItem,
        WorkItemStatus,
        WorkItemType,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class TenantRepository[TEntity](Repository[TEntity], Protocol):
    def get(self, tenant_id: str, entity_id: str) -> TEntity | None: ...


@runtime_checkable
class EvidenceRepository(TenantRepository["EvidenceRecord"], Protocol):
    def get_by_display_id(self, tenant_id: str, display_id: str) -> EvidenceRecord | None: ...

    def list(
        self,
        tenant_id: str,
        *,
        status: SealedStatus | None = None,
        dataset_type: DatasetType | None = None,
        ingestion_method: IngestionMethod | None = None,
        source_system: str | None = None,
        display_id_contains: str | None = None,
    ) -> Sequence[EvidenceRecord]: ...

    def count_linked(
        self, tenant_id: str, entity_type: EntityType, entity_id: str
    ) -> tuple[int, int]:
        """Return (evidence count, quarantined count) for one entity."""
        ...


@runtime_checkable
class EvidenceDraftRepository(TenantRepository["EvidenceDraft"], Protocol):
    def list(self, tenant_id: str) -> Sequence[EvidenceDraft]: ...


@runtime_checkable
class WorkItemRepository(TenantRepository["WorkItem"], Protocol):
    def list(
        self,
        tenant_id: str,
        *,
        status: WorkItemStatus | None = None,
        item_type: WorkItemType | None = None,
        owner: str | None = None,
        entity_id: str | None = None,
    ) -> Sequence[WorkItem]: ...

    def children(self, tenant_id: str, parent_id: str) -> Sequence[WorkItem]: ...


@runtime_checkable
class DecisionRepository(Repository["Decision"], Protocol):
    def get(self, tenant_id: str, decision_id: str) -> Decision | None: ...

    def for_work_item(self, tenant_id: str, work_item_id: str) -> Sequence[Decision]:
        """Decisions on one work item, oldest first."""
        ...

    def latest_for_work_item(self, tenant_id: str, work_item_id: str) -> Decision | None: ...

    def list(
        self,
        tenant_id: str,
        *,
        work_item_id: str | None = None,
        entity_id: str | None = None,
    ) -> Sequence[Decision]:
        """Decisions newest first."""
        ...


@runtime_checkable
class AuditEventRepository(Repository["AuditEvent"], Protocol):
    def get(self, tenant_id: str, event_id: str) -> AuditEvent | None: ...

    def list(
        self,
        tenant_id: str,
        *,
        object_type: AuditObjectType | None = None,
        object_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int | None = None,
    ) -> Sequence[AuditEvent]:
        """Audit events newest first."""
        ...


@runtime_checkable
class CanonicalEntityRepository(TenantRepository["CanonicalEntity"], Protocol):
    def list(
        self,
        tenant_id: str,
        *,
        entity_type: EntityType | None = None,
        search: str | None = None,
    ) -> Sequence[CanonicalEntity]: ...


@runtime_checkable
class MappingSuggestionRepository(TenantRepository["MappingSuggestion"], Protocol):
    def list(self, tenant_id: str, *, entity_id: str | None = None) -> Sequence[MappingSuggestion]: ...


@runtime_checkable
class IdempotencyKeyRepository(Repository["IdempotencyKey"], Protocol):
    def get(self, tenant_id: str, key: str) -> IdempotencyKey | None: ...

    def list(self, tenant_id: str) -> Sequence[IdempotencyKey]: ...
