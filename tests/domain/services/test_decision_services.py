from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from evidence_ledger.adapters.sqlalchemy.repositories import SqlAlchemyWorkItemRepository
from evidence_ledger.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    shutdown,
    startup,
)
from evidence_ledger.demo import DEMO_TENANT_ID, OTHER_TENANT_ID, seed_demo_data
from evidence_ledger.domain.model import (
    AuditEventType,
    DecisionType,
    EntityRef,
    EntityType,
    Readiness,
    ResolutionStrategy,
    WorkItemStatus,
)
from evidence_ledger.domain.services import (
    approve_work_item,
    decision_history,
    get_entity,
    get_work_item,
    list_audit_events,
    list_decisions,
    reject_work_item,
    resolve_conflict,
)
from tests.helpers.ledger import ACTOR, FixedClock

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from sqlalchemy.orm import Session

    from evidence_ledger.domain.model import WorkItem
    from evidence_ledger.domain.ports import LedgerRepositories

    UowFactory = Callable[[], SqlAlchemyLedgerUnitOfWork]


def _resolve(
    uow: UowFactory,
    work_item_id: str = "WI-004",
    strategy: ResolutionStrategy = ResolutionStrategy.PREFER_TRUSTED_SYSTEM,
    **kwargs: object,
):  # noqa: ANN202
    params: dict[str, object] = {
        "reason_code": "TRUSTED_SOURCE",
        "actor": ACTOR,
        "clock": FixedClock(),
    }
    params.update(kwargs)
    return resolve_conflict(
        unit_of_work_factory=uow,
        tenant_id=DEMO_TENANT_ID,
        work_item_id=work_item_id,
        strategy=strategy,
        **params,  # pyright: ignore[reportArgumentType]
    )


def _decision_count(uow: UowFactory) -> int:
    return len(list_decisions(unit_of_work_factory=uow, tenant_id=DEMO_TENANT_ID))


def test_trusted_system_resolution_updates_entity(seeded_unit_of_work: UowFactory) -> None:
    result = _resolve(seeded_unit_of_work)

    assert result.success
    assert result.value == "FR"
    assert result.work_item is not None
    assert result.work_item.status == WorkItemStatus.RESOLVED

    decision = result.decision
    assert decision is not None
    assert decision.decision_type == DecisionType.CONFLICT_RESOLVE
    assert decision.reason_code == "TRUSTED_SOURCE"
    assert decision.evidence_id == "rec_ev_002"
    assert decision.entity_ref == EntityRef(EntityType.SUPPLIER, "SUP-123")
    assert decision.context["selected_source"]["source_system"] == "SAP S/4HANA"
    assert decision.supersedes_decision_id is None

    view = get_entity(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SUP-123"
    )
    assert view is not None
    assert view.entity.canonical_fields["countryCode"] == "FR"
    assert view.entity.conflict_count == 0
    assert view.readiness == Readiness.READY


@pytest.mark.parametrize(
    ("strategy", "expected"),
    [
        (ResolutionStrategy.PREFER_SOURCE_A, 2.5),
        (ResolutionStrategy.PREFER_SOURCE_B, 2.8),
    ],
)
def test_positional_strategies(
    seeded_unit_of_work: UowFactory, strategy: ResolutionStrategy, expected: float
) -> None:
    result = _resolve(seeded_unit_of_work, "WI-005", strategy)

    assert result.success
    assert result.value == expected
    view = get_entity(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SKU-456"
    )
    assert view is not None
    assert view.entity.canonical_fields["weight"] == expected


def test_re_resolution_supersedes_previous_decision(seeded_unit_of_work: UowFactory) -> None:
    first = _resolve(seeded_unit_of_work)
    second = _resolve(
        seeded_unit_of_work,
        strategy=ResolutionStrategy.MANUAL_OVERRIDE,
        override_value="IT",
        comment="Supplier relocated",
    )

    assert first.decision is not None
    assert second.decision is not None
    assert second.decision.supersedes_decision_id == first.decision.id
    assert second.decision.context["selected_source"] is None

    history = decision_history(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, work_item_id="WI-004"
    )
    assert [d.id for d in history] == [first.decision.id, second.decision.id]

    view = get_entity(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SUP-123"
    )
    assert view is not None
    assert view.entity.canonical_fields["countryCode"] == "IT"
    assert view.entity.conflict_count == 0


def test_resolution_is_audited(seeded_unit_of_work: UowFactory) -> None:
    result = _resolve(seeded_unit_of_work)
    assert result.decision is not None

    events = list_audit_events(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        object_id=result.decision.id,
    )

    assert [e.event_type for e in events] == [AuditEventType.DECISION_LOGGED]
    assert events[0].details["work_item_id"] == "WI-004"


@pytest.mark.parametrize("reason_code", [None, "", "   "])
def test_resolution_requires_reason_code(
    seeded_unit_of_work: UowFactory, reason_code: str | None
) -> None:
    before = _decision_count(seeded_unit_of_work)

    result = _resolve(seeded_unit_of_work, reason_code=reason_code)

    assert not result.success
    assert result.error == "Reason code is required"
    assert _decision_count(seeded_unit_of_work) == before


def test_manual_override_requires_comment(seeded_unit_of_work: UowFactory) -> None:
    result = _resolve(
        seeded_unit_of_work, strategy=ResolutionStrategy.MANUAL_OVERRIDE, override_value="IT"
    )

    assert not result.success
    assert result.error_code == "VALIDATION_FAILED"


@pytest.mark.parametrize("work_item_id", ["WI-001", "WI-404"])
def test_resolution_needs_a_conflict_item(seeded_unit_of_work: UowFactory, work_item_id: str) -> None:
    result = _resolve(seeded_unit_of_work, work_item_id)

    assert not result.success
    assert result.error == "Work item not found or not a conflict"
    assert result.error_code == "TYPE_MISMATCH"


def test_resolution_is_tenant_scoped(seeded_unit_of_work: UowFactory) -> None:
    result = resolve_conflict(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=OTHER_TENANT_ID,
        work_item_id="WI-004",
        strategy=ResolutionStrategy.PREFER_TRUSTED_SYSTEM,
        reason_code="TRUSTED_SOURCE",
        actor=ACTOR,
    )

    assert not result.success
    assert result.error_code == "TYPE_MISMATCH"


def test_conflict_without_sources_only_accepts_override(seeded_unit_of_work: UowFactory) -> None:
    refused = _resolve(seeded_unit_of_work, "WI-CT-004")
    accepted = _resolve(
        seeded_unit_of_work,
        "WI-CT-004",
        ResolutionStrategy.MANUAL_OVERRIDE,
        override_value="VERIFIED",
        comment="Identity confirmed by phone",
    )

    assert not refused.success
    assert refused.error_code == "VALIDATION_FAILED"
    assert accepted.success
    assert accepted.work_item is not None
    assert accepted.work_item.status == WorkItemStatus.RESOLVED


def test_approve_work_item(seeded_unit_of_work: UowFactory) -> None:
    result = approve_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-001",
        reason_code="DATA_VERIFIED",
        actor=ACTOR,
    )

    assert result.success
    assert result.decision is not None
    assert result.decision.decision_type == DecisionType.APPROVE
    assert result.decision.evidence_id == "rec_ev_002"
    assert result.decision.context == {"previous_status": "OPEN"}
    assert result.work_item is not None
    assert result.work_item.status == WorkItemStatus.RESOLVED


@pytest.mark.parametrize(
    ("reason_code", "comment"),
    [(None, "Wrong supplier"), ("WRONG_ENTITY", None), ("WRONG_ENTITY", "  ")],
)
def test_reject_requires_reason_and_comment(
    seeded_unit_of_work: UowFactory, reason_code: str | None, comment: str | None
) -> None:
    result = reject_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-001",
        reason_code=reason_code,
        comment=comment,
        actor=ACTOR,
    )

    assert not result.success
    assert result.error == "Reason code and comment are required for rejection"
    view = get_work_item(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, work_item_id="WI-001"
    )
    assert view is not None
    assert view.item.status == WorkItemStatus.OPEN


def test_reject_work_item(seeded_unit_of_work: UowFactory) -> None:
    result = reject_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-001",
        reason_code="WRONG_ENTITY",
        comment="Belongs to a different supplier",
        actor=ACTOR,
    )

    assert result.success
    assert result.work_item is not None
    assert result.work_item.status == WorkItemStatus.REJECTED
    assert result.decision is not None
    assert result.decision.comment == "Belongs to a different supplier"


def test_closed_items_take_no_decisions(seeded_unit_of_work: UowFactory) -> None:
    with seeded_unit_of_work() as uow:
        item = uow.repositories.work_items.get(DEMO_TENANT_ID, "WI-001")
        assert item is not None
        item.status = WorkItemStatus.CLOSED
        uow.commit()

    result = approve_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-001",
        reason_code="DATA_VERIFIED",
        actor=ACTOR,
    )

    assert not result.success
    assert result.error_code == "INVALID_TRANSITION"


def test_list_decisions_newest_first(seeded_unit_of_work: UowFactory) -> None:
    decisions = list_decisions(unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID)

    assert [d.id for d in decisions] == ["DEC-00003", "DEC-00002", "DEC-00001"]
    by_entity = list_decisions(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SKU-456"
    )
    assert [d.id for d in by_entity] == ["DEC-00003"]


def test_rejected_items_take_no_further_decisions(seeded_unit_of_work: UowFactory) -> None:
    rejected = reject_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-004",
        reason_code="NOT_A_CONFLICT",
        comment="Both sources describe different sites",
        actor=ACTOR,
    )
    assert rejected.success

    resolved = _resolve(seeded_unit_of_work)
    approved = approve_work_item(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-004",
        reason_code="DATA_VERIFIED",
        actor=ACTOR,
    )

    assert resolved.error_code == "INVALID_TRANSITION"
    assert approved.error_code == "INVALID_TRANSITION"
    entity = get_entity(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SUP-123"
    )
    assert entity is not None
    assert entity.entity.canonical_fields["countryCode"] == "DE"


class _RacingWorkItemRepository(SqlAlchemyWorkItemRepository):
    """Lets another writer resolve the same item right after it is loaded."""

    raced = False

    def get(self, tenant_id: str, entity_id: str) -> WorkItem | None:
        item = super().get(tenant_id, entity_id)
        if not _RacingWorkItemRepository.raced:
            _RacingWorkItemRepository.raced = True
            other = _resolve(
                SqlAlchemyLedgerUnitOfWork,
                strategy=ResolutionStrategy.PREFER_SOURCE_A,
                reason_code="FIRST_WRITER",
            )
            assert other.success
        return item


class _RacingUnitOfWork(SqlAlchemyLedgerUnitOfWork):
    def _build_repositories(self, session: Session) -> LedgerRepositories:
        repositories = super()._build_repositories(session)
        return replace(repositories, work_items=_RacingWorkItemRepository(session))


@pytest.fixture
def file_backed_ledger(tmp_path: Path) -> Iterator[None]:
    startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}", force=True)
    seed_demo_data(SqlAlchemyLedgerUnitOfWork)
    _RacingWorkItemRepository.raced = False
    try:
        yield
    finally:
        shutdown()


@pytest.mark.usefixtures("file_backed_ledger")
def test_concurrent_resolution_is_reported_as_result() -> None:
    result = _resolve(_RacingUnitOfWork)

    assert not result.success
    assert result.error_code == "CONCURRENT_MODIFICATION"

    decisions = list_decisions(
        unit_of_work_factory=SqlAlchemyLedgerUnitOfWork,
        tenant_id=DEMO_TENANT_ID,
        work_item_id="WI-004",
    )
    assert [d.reason_code for d in decisions] == ["FIRST_WRITER"]
    entity = get_entity(
        unit_of_work_factory=SqlAlchemyLedgerUnitOfWork,
        tenant_id=DEMO_TENANT_ID,
        entity_id="SUP-123",
    )
    assert entity is not None
    assert entity.entity.canonical_fields["countryCode"] == "DE"
