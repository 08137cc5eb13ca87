"""Entity readiness and dashboard KPIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from evidence_ledger.domain.model import (
    EntityType,
    Priority,
    Readiness,
    SealedStatus,
    WorkItemStatus,
    WorkItemType,
)
from evidence_ledger.domain.readiness import calculate_readiness, readiness_counts

if TYPE_CHECKING:
    from evidence_ledger.domain.model import CanonicalEntity, WorkItem
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory


@dataclass(frozen=True, slots=True)
class EntityView:
    entity: CanonicalEntity
    readiness: Readiness


@dataclass(frozen=True, slots=True)
class ReadinessReport:
    by_type: dict[EntityType, dict[Readiness, int]]
    totals: dict[Readiness, int]

    @property
    def total_entities(self) -> int:
        return sum(self.totals.values())

    @property
    def blocked(self) -> int:
        return self.totals[Readiness.NOT_READY]


@dataclass(frozen=True, slots=True)
class Kpis:
    sealed_evidence: int
    open_reviews: int
    open_mappings: int
    financial_risk_exposure: float
    at_risk_items: int


def list_entities(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    entity_type: EntityType | None = None,
    search: str | None = None,
) -> list[EntityView]:
    with unit_of_work_factory() as uow:
        entities = uow.repositories.entities.list(tenant_id, entity_type=entity_type, search=search)
    return [EntityView(entity=entity, readiness=calculate_readiness(entity)) for entity in entities]


def get_entity(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    entity_id: str,
) -> EntityView | None:
    with unit_of_work_factory() as uow:
        entity = uow.repositories.entities.get(tenant_id, entity_id)
    if entity is None:
        return None
    return EntityView(entity=entity, readiness=calculate_readiness(entity))


def readiness_impacts(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
) -> ReadinessReport:
    with unit_of_work_factory() as uow:
        entities = uow.repositories.entities.list(tenant_id)
    by_type = {
        entity_type: readiness_counts(e for e in entities if e.entity_type == entity_type)
        for entity_type in EntityType
    }
    return ReadinessReport(by_type=by_type, totals=readiness_counts(entities))


def _at_risk(item: WorkItem) -> bool:
    if item.is_terminal:
        return False
    return item.status == WorkItemStatus.BLOCKED or item.priority == Priority.CRITICAL


def get_kpis(*, unit_of_work_factory: LedgerUnitOfWorkFactory, tenant_id: str) -> Kpis:
    with unit_of_work_factory() as uow:
        sealed = uow.repositories.evidence.list(tenant_id, status=SealedStatus.SEALED)
        items = uow.repositories.work_items.list(tenant_id)

    open_items = [item for item in items if not item.is_terminal]
    at_risk = [item for item in items if _at_risk(item)]
    return Kpis(
        sealed_evidence=len(sealed),
        open_reviews=sum(1 for item in open_items if item.item_type == WorkItemType.REVIEW),
        open_mappings=sum(1 for item in open_items if item.item_type == WorkItemType.MAPPING),
        financial_risk_exposure=sum(item.financial_risk_exposure for item in at_risk),
        at_risk_items=len(at_risk),
    )
