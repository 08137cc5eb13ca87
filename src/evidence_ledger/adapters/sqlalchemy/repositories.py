"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import or_, select

from evidence_ledger.adapters.sqlalchemy.mappings import (
    audit_event_table,
    canonical_entity_table,
    decision_table,
    evidence_draft_table,
    evidence_table,
    idempotency_key_table,
    mapping_suggestion_table,
    work_item_table,
)
from evidence_ledger.domain.model import (
    AuditEvent,
    CanonicalEntity,
    Decision,
    EvidenceDraft,
    EvidenceRecord,
    IdempotencyKey,
    MappingSuggestion,
    SealedStatus,
    WorkItem,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from evidence_ledger.domain.model import (
        AuditEventType,
        AuditObjectType,
        DatasetType,
        EntityType,
        IngestionMethod,
        WorkItemStatus,
        WorkItemType,
    )


class _TenantScopedRepository[TEntity]:
    """Shared add/get for tables keyed by ``(tenant_id, id)``."""

    def __init__(self, session: Session, entity_cls: type[TEntity], table: Table) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table = table

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, tenant_id: str, entity_id: str) -> TEntity | None:
        return self.session.get(self._entity_cls, (tenant_id, entity_id))

    def _all(self, tenant_id: str) -> Sequence[TEntity]:
        stmt = select(self._entity_cls).where(self._table.c.tenant_id == tenant_id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyEvidenceRepository(_TenantScopedRepository[EvidenceRecord]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, EvidenceRecord, evidence_table)

    def get_by_display_id(self, tenant_id: str, display_id: str) -> EvidenceRecord | None:
        stmt = (
            select(EvidenceRecord)
            .where(evidence_table.c.tenant_id == tenant_id)
            .where(evidence_table.c.display_id == display_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list(
        self,
        tenant_id: str,
        *,
        status: SealedStatus | None = None,
        dataset_type: DatasetType | None = None,
        ingestion_method: IngestionMethod | None = None,
        source_system: str | None = None,
        display_id_contains: str | None = None,
    ) -> Sequence[EvidenceRecord]:
        stmt = select(EvidenceRecord).where(evidence_table.c.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(evidence_table.c.sealed_status == status)
        if dataset_type is not None:
            stmt = stmt.where(evidence_table.c.dataset_type == dataset_type)
        if ingestion_method is not None:
            stmt = stmt.where(evidence_table.c.ingestion_method == ingestion_method)
        if source_system:
            stmt = stmt.where(evidence_table.c.source_system == source_system)
        if display_id_contains:
            stmt = stmt.where(evidence_table.c.display_id.icontains(display_id_contains))
        stmt = stmt.order_by(evidence_table.c.ingested_at.desc(), evidence_table.c.id)
        return self.session.execute(stmt).scalars().all()

    def count_linked(
        self, tenant_id: str, entity_type: EntityType, entity_id: str
    ) -> tuple[int, int]:
        total = 0
        quarantined = 0
        for record in self._all(tenant_id):
            if any(
                ref.entity_type == entity_type and ref.entity_id == entity_id
                for ref in record.linked_entities
            ):
                total += 1
                if record.sealed_status == SealedStatus.QUARANTINED:
                    quarantined += 1
        return total, quarantined


class SqlAlchemyEvidenceDraftRepository(_TenantScopedRepository[EvidenceDraft]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, EvidenceDraft, evidence_draft_table)

    def list(self, tenant_id: str) -> Sequence[EvidenceDraft]:
        stmt = (
            select(EvidenceDraft)
            .where(evidence_draft_table.c.tenant_id == tenant_id)
            .order_by(evidence_draft_table.c.created_at.desc(), evidence_draft_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyWorkItemRepository(_TenantScopedRepository[WorkItem]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, WorkItem, work_item_table)

    def list(
        self,
        tenant_id: str,
        *,
        status: WorkItemStatus | None = None,
        item_type: WorkItemType | None = None,
        owner: str | None = None,
        entity_id: str | None = None,
    ) -> Sequence[WorkItem]:
        stmt = select(WorkItem).where(work_item_table.c.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(work_item_table.c.status == status)
        if item_type is not None:
            stmt = stmt.where(work_item_table.c.item_type == item_type)
        if owner:
            stmt = stmt.where(work_item_table.c.owner == owner)
        if entity_id:
            stmt = stmt.where(work_item_table.c.linked_entity_id == entity_id)
        return self.session.execute(stmt).scalars().all()

    def children(self, tenant_id: str, parent_id: str) -> Sequence[WorkItem]:
        stmt = (
            select(WorkItem)
            .where(work_item_table.c.tenant_id == tenant_id)
            .where(work_item_table.c.parent_id == parent_id)
            .order_by(work_item_table.c.created_at, work_item_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()


def _chain_order(decisions: Iterable[Decision]) -> list[Decision]:
    """Order decisions by their supersedes chain, falling back to creation time."""

    by_time = sorted(decisions, key=lambda decision: (decision.created_at, decision.id))
    known = {decision.id for decision in by_time}
    successors: dict[str, list[Decision]] = {}
    roots: list[Decision] = []
    for decision in by_time:
        previous = decision.supersedes_decision_id
        if previous is not None and previous in known and previous != decision.id:
            successors.setdefault(previous, []).append(decision)
        else:
            roots.append(decision)

    ordered: list[Decision] = []
    pending = list(roots)
    seen: set[str] = set()
    while pending:
        current = pending.pop(0)
        if current.id in seen:
            continue
        seen.add(current.id)
        ordered.append(current)
        pending[0:0] = successors.get(current.id, [])
    return ordered


class SqlAlchemyDecisionRepository:
    """Append-only: decisions can be added and read, never changed."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Decision) -> None:
        self.session.add(entity)

    def get(self, tenant_id: str, decision_id: str) -> Decision | None:
        return self.session.get(Decision, (tenant_id, decision_id))

    def for_work_item(self, tenant_id: str, work_item_id: str) -> Sequence[Decision]:
        stmt = (
            select(Decision)
            .where(decision_table.c.tenant_id == tenant_id)
            .where(decision_table.c.work_item_id == work_item_id)
        )
        return _chain_order(self.session.execute(stmt).scalars().all())

    def latest_for_work_item(self, tenant_id: str, work_item_id: str) -> Decision | None:
        history = self.for_work_item(tenant_id, work_item_id)
        return history[-1] if history else None

    def list(
        self,
        tenant_id: str,
        *,
        work_item_id: str | None = None,
        entity_id: str | None = None,
    ) -> Sequence[Decision]:
        if work_item_id is not None and entity_id is None:
            return list(reversed(self.for_work_item(tenant_id, work_item_id)))
        stmt = select(Decision).where(decision_table.c.tenant_id == tenant_id)
        if work_item_id is not None:
            stmt = stmt.where(decision_table.c.work_item_id == work_item_id)
        if entity_id is not None:
            stmt = stmt.where(decision_table.c.entity_id == entity_id)
        stmt = stmt.order_by(decision_table.c.created_at.desc(), decision_table.c.id.desc())
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyAuditEventRepository:
    """Append-only audit log."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AuditEvent) -> None:
        self.session.add(entity)

    def get(self, tenant_id: str, event_id: str) -> AuditEvent | None:
        return self.session.get(AuditEvent, (tenant_id, event_id))

    def list(
        self,
        tenant_id: str,
        *,
        object_type: AuditObjectType | None = None,
        object_id: str | None = None,
        event_type: AuditEventType | None = None,
        limit: int | None = None,
    ) -> Sequence[AuditEvent]:
        stmt = select(AuditEvent).where(audit_event_table.c.tenant_id == tenant_id)
        if object_type is not None:
            stmt = stmt.where(audit_event_table.c.object_type == object_type)
        if object_id is not None:
            stmt = stmt.where(audit_event_table.c.object_id == object_id)
        if event_type is not None:
            stmt = stmt.where(audit_event_table.c.event_type == event_type)
        stmt = stmt.order_by(audit_event_table.c.timestamp.desc(), audit_event_table.c.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyCanonicalEntityRepository(_TenantScopedRepository[CanonicalEntity]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, CanonicalEntity, canonical_entity_table)

    def list(
        self,
        tenant_id: str,
        *,
        entity_type: EntityType | None = None,
        search: str | None = None,
    ) -> Sequence[CanonicalEntity]:
        stmt = select(CanonicalEntity).where(canonical_entity_table.c.tenant_id == tenant_id)
        if entity_type is not None:
            stmt = stmt.where(canonical_entity_table.c.entity_type == entity_type)
        if search:
            stmt = stmt.where(
                or_(
                    canonical_entity_table.c.id.icontains(search),
                    canonical_entity_table.c.name.icontains(search),
                )
            )
        stmt = stmt.order_by(canonical_entity_table.c.entity_type, canonical_entity_table.c.id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyMappingSuggestionRepository(_TenantScopedRepository[MappingSuggestion]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, MappingSuggestion, mapping_suggestion_table)

    def list(self, tenant_id: str, *, entity_id: str | None = None) -> Sequence[MappingSuggestion]:
        stmt = select(MappingSuggestion).where(mapping_suggestion_table.c.tenant_id == tenant_id)
        if entity_id is not None:
            stmt = stmt.where(
                or_(
                    mapping_suggestion_table.c.entity_id == entity_id,
                    mapping_suggestion_table.c.target_entity_id == entity_id,
                )
            )
        stmt = stmt.order_by(mapping_suggestion_table.c.confidence.desc(), mapping_suggestion_table.c.id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyIdempotencyKeyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: IdempotencyKey) -> None:
        self.session.add(entity)

    def get(self, tenant_id: str, key: str) -> IdempotencyKey | None:
        return self.session.get(IdempotencyKey, (tenant_id, key))

    def list(self, tenant_id: str) -> Sequence[IdempotencyKey]:
        stmt = (
            select(IdempotencyKey)
            .where(idempotency_key_table.c.tenant_id == tenant_id)
            .order_by(idempotency_key_table.c.created_at)
        )
        return self.session.execute(stmt).scalars().all()


if TYPE_CHECKING:
    from evidence_ledger.domain.ports.persistence import (
        AuditEventRepository,
        CanonicalEntityRepository,
        DecisionRepository,
        EvidenceDraftRepository,
        EvidenceRepository,
        IdempotencyKeyRepository,
        MappingSuggestionRepository,
        WorkItemRepository,
    )

    _session_stub = cast("Session", object())
    _evidence_repo: EvidenceRepository = SqlAlchemyEvidenceRepository(_session_stub)
    _draft_repo: EvidenceDraftRepository = SqlAlchemyEvidenceDraftRepository(_session_stub)
    _work_item_repo: WorkItemRepository = SqlAlchemyWorkItemRepository(_session_stub)
    _decision_repo: DecisionRepository = SqlAlchemyDecisionRepository(_session_stub)
    _audit_repo: AuditEventRepository = SqlAlchemyAuditEventRepository(_session_stub)
    _entity_repo: CanonicalEntityRepository = SqlAlchemyCanonicalEntityRepository(_session_stub)
    _suggestion_repo: MappingSuggestionRepository = SqlAlchemyMappingSuggestionRepository(
        _session_stub
    )
    _key_repo: IdempotencyKeyRepository = SqlAlchemyIdempotencyKeyRepository(_session_stub)
