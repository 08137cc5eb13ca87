"""Decisions on work items: conflict resolution, approval and rejection.

Every action validates its input first, then loads the tenant's work item,
appends a decision chained to the previous one, moves the work item and commits
once. Failures come back as ``ActionResult`` values.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from evidence_ledger.domain.conflicts import select_resolution
from evidence_ledger.domain.dates import utcnow
from evidence_ledger.domain.errors import InvalidTransition, ValidationFailed, WorkItemTypeMismatch
from evidence_ledger.domain.model import (
    DecisionType,
    ResolutionStrategy,
    WorkItemStatus,
)
from evidence_ledger.domain.results import ActionResult
from evidence_ledger.domain.services._common import (
    append_decision,
    guarded,
    id_generator,
    load_work_item,
    require_text,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import Decision, JsonScalar, WorkItem
    from evidence_ledger.domain.ports import LedgerUnitOfWork, LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)

REASON_CODE_REQUIRED = "Reason code is required"
REJECTION_REQUIREMENTS = "Reason code and comment are required for rejection"
NOT_A_CONFLICT = "Work item not found or not a conflict"

# RESOLVED stays open so a conflict can be re-resolved with a superseding decision
_DECIDED = frozenset({WorkItemStatus.CLOSED, WorkItemStatus.REJECTED})


def _ensure_open_for_decision(item: WorkItem) -> None:
    if item.status in _DECIDED:
        raise InvalidTransition(f"Work item {item.id} is {item.status.lower()}")


def _settle(item: WorkItem, status: WorkItemStatus, *, actor: str, now: datetime) -> None:
    item.status = status
    item.updated_at = now
    item.updated_by = actor


@guarded("resolve_conflict")
def resolve_conflict(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
    strategy: ResolutionStrategy,
    reason_code: str | None,
    actor: str,
    comment: str | None = None,
    override_value: JsonScalar = None,
    evidence_id: str | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Pick a value for a conflicted field and write it to the linked entity."""

    reason = require_text(reason_code, REASON_CODE_REQUIRED)
    strategy = ResolutionStrategy(strategy)
    if strategy == ResolutionStrategy.MANUAL_OVERRIDE:
        require_text(comment, "Comment is required for manual override")

    with unit_of_work_factory() as uow:
        item = uow.repositories.work_items.get(tenant_id, work_item_id)
        if item is None or not item.is_conflict:
            raise WorkItemTypeMismatch(NOT_A_CONFLICT)
        _ensure_open_for_decision(item)
        if not item.has_valid_conflict() and strategy != ResolutionStrategy.MANUAL_OVERRIDE:
            raise ValidationFailed(f"Work item {item.id} has no competing sources to choose from")

        value, chosen = select_resolution(
            item.conflict_sources, strategy, override_value=override_value
        )
        now = clock()
        was_resolved = item.status == WorkItemStatus.RESOLVED
        decision = append_decision(
            uow,
            tenant_id=tenant_id,
            decision_type=DecisionType.CONFLICT_RESOLVE,
            reason_code=reason,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            work_item=item,
            evidence_id=evidence_id or (chosen.evidence_id if chosen is not None else None),
            comment=comment,
            context={
                "strategy": str(strategy),
                "field": item.conflict_field,
                "resolved_value": value,
                "selected_source": chosen.as_dict() if chosen is not None else None,
                "sources": [source.as_dict() for source in item.conflict_sources],
            },
        )
        _settle(item, WorkItemStatus.RESOLVED, actor=actor, now=now)
        _apply_to_entity(uow, tenant_id, item, value, settle_conflict=not was_resolved)
        uow.commit()

    log.info(
        "Conflict %s resolved with %s: %s=%r (decision %s)",
        work_item_id,
        strategy,
        item.conflict_field,
        value,
        decision.id,
    )
    return ActionResult.ok(decision=decision, work_item=item, value=value)


def _apply_to_entity(
    uow: LedgerUnitOfWork,
    tenant_id: str,
    item: WorkItem,
    value: JsonScalar,
    *,
    settle_conflict: bool,
) -> None:
    ref = item.linked_entity
    if ref is None or item.conflict_field is None:
        log.warning("Conflict %s has no linked entity; canonical value not updated", item.id)
        return
    entity = uow.repositories.entities.get(tenant_id, ref.entity_id)
    if entity is None or entity.entity_type != ref.entity_type:
        log.warning("Entity %s for conflict %s not found; canonical value not updated", ref, item.id)
        return
    entity.set_canonical_field(item.conflict_field, value, settle_conflict=settle_conflict)


@guarded("approve_work_item")
def approve_work_item(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
    reason_code: str | None,
    actor: str,
    comment: str | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    reason = require_text(reason_code, REASON_CODE_REQUIRED)
    with unit_of_work_factory() as uow:
        item = load_work_item(uow, tenant_id, work_item_id)
        _ensure_open_for_decision(item)
        now = clock()
        decision = append_decision(
            uow,
            tenant_id=tenant_id,
            decision_type=DecisionType.APPROVE,
            reason_code=reason,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            work_item=item,
            comment=comment,
            context={"previous_status": str(item.status)},
        )
        _settle(item, WorkItemStatus.RESOLVED, actor=actor, now=now)
        uow.commit()
    log.info("Work item %s approved by %s (decision %s)", work_item_id, actor, decision.id)
    return ActionResult.ok(decision=decision, work_item=item)


@guarded("reject_work_item")
def reject_work_item(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
    reason_code: str | None,
    comment: str | None,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    reason = require_text(reason_code, REJECTION_REQUIREMENTS)
    note = require_text(comment, REJECTION_REQUIREMENTS)
    with unit_of_work_factory() as uow:
        item = load_work_item(uow, tenant_id, work_item_id)
        _ensure_open_for_decision(item)
        now = clock()
        decision = append_decision(
            uow,
            tenant_id=tenant_id,
            decision_type=DecisionType.REJECT,
            reason_code=reason,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            work_item=item,
            comment=note,
            context={"previous_status": str(item.status)},
        )
        _settle(item, WorkItemStatus.REJECTED, actor=actor, now=now)
        uow.commit()
    log.info("Work item %s rejected by %s (decision %s)", work_item_id, actor, decision.id)
    return ActionResult.ok(decision=decision, work_item=item)


def list_decisions(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str | None = None,
    entity_id: str | None = None,
) -> Sequence[Decision]:
    """Decisions newest first."""
    with unit_of_work_factory() as uow:
        return uow.repositories.decisions.list(
            tenant_id, work_item_id=work_item_id, entity_id=entity_id
        )


def decision_history(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
) -> Sequence[Decision]:
    """Decisions on one work item, oldest first; the length is its audit depth."""
    with unit_of_work_factory() as uow:
        return uow.repositories.decisions.for_work_item(tenant_id, work_item_id)
