"""Work-item creation, follow-ups, listing and status changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.assignment import assign_work_item
from evidence_ledger.domain.dates import calculate_sla_remaining, utcnow
from evidence_ledger.domain.errors import (
    DuplicateRecord,
    InvalidTransition,
    RecordNotFound,
    ValidationFailed,
)
from evidence_ledger.domain.model import (
    DEFAULT_SLA_HOURS,
    AuditEventType,
    AuditObjectType,
    IdempotencyKey,
    WorkItem,
    WorkItemStatus,
    WorkItemType,
)
from evidence_ledger.domain.results import ActionResult
from evidence_ledger.domain.services._common import (
    guarded,
    id_generator,
    load_work_item,
    record_audit_event,
    require_text,
)

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import (
        ConflictSource,
        DatasetType,
        EntityRef,
        JsonObject,
        Priority,
        SealedStatus,
    )
    from evidence_ledger.domain.ports import LedgerUnitOfWork, LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)

FOLLOW_UP_ACTION = "CREATE_FOLLOW_UP"

# Statuses reachable through a plain status update; terminal ones need a decision.
_MANUAL_STATUSES = frozenset(
    {WorkItemStatus.OPEN, WorkItemStatus.IN_PROGRESS, WorkItemStatus.BLOCKED}
)


@dataclass(kw_only=True)
class WorkItemRequest:
    """Everything needed to open a work item; owner and priority override routing."""

    item_type: WorkItemType
    reason: str | None = None
    owner: str | None = None
    priority: Priority | None = None
    sla_hours: int | None = None
    linked_evidence_id: str | None = None
    linked_entity: EntityRef | None = None
    dataset_type: DatasetType | None = None
    conflict_field: str | None = None
    conflict_sources: list[ConflictSource] = field(default_factory=list["ConflictSource"])
    details: JsonObject = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True)
class WorkItemView:
    item: WorkItem
    sla_remaining: int | None


def follow_up_key(parent_id: str, item_type: WorkItemType) -> str:
    return f"{FOLLOW_UP_ACTION}:{parent_id}:{item_type}"


def build_work_item(
    uow: LedgerUnitOfWork,
    *,
    tenant_id: str,
    request: WorkItemRequest,
    actor: str,
    now: datetime,
    ids: IdGenerator,
    evidence_status: SealedStatus | None = None,
    parent_id: str | None = None,
) -> WorkItem:
    """Validate, route and stage a new work item plus its creation audit event."""

    if request.item_type == WorkItemType.CONFLICT:
        require_text(request.conflict_field, "Conflict field is required")
        if len(request.conflict_sources) < 2:  # noqa: PLR2004
            raise ValidationFailed("Conflict work items need at least two competing sources")
    if request.sla_hours is not None and request.sla_hours <= 0:
        raise ValidationFailed("SLA hours must be positive")

    if request.linked_evidence_id is not None and evidence_status is None:
        evidence = uow.repositories.evidence.get(tenant_id, request.linked_evidence_id)
        if evidence is None:
            raise RecordNotFound("Evidence", request.linked_evidence_id)
        evidence_status = evidence.sealed_status

    item = WorkItem(
        tenant_id=tenant_id,
        id=ids.prefixed("WI"),
        item_type=request.item_type,
        created_at=now,
        updated_at=now,
        created_by=actor,
        updated_by=actor,
        sla_hours=request.sla_hours or DEFAULT_SLA_HOURS,
        linked_evidence_id=request.linked_evidence_id,
        dataset_type=request.dataset_type,
        parent_id=parent_id,
        reason=request.reason,
        conflict_field=request.conflict_field,
        conflict_sources=list(request.conflict_sources),
        details=dict(request.details),
    )
    item.linked_entity = request.linked_entity

    assignment = assign_work_item(item, evidence_status)
    item.owner = request.owner or assignment.owner
    item.priority = request.priority or assignment.priority
    item.assignment_reason = assignment.assignment_reason
    item.routing_rule = assignment.routing_rule

    uow.repositories.work_items.add(item)
    details: JsonObject = {
        "action": "CREATE_FOLLOWUP" if parent_id is not None else "CREATE",
        "type": str(item.item_type),
        "owner": item.owner,
        "priority": str(item.priority),
        "routing_rule": item.routing_rule,
    }
    if parent_id is not None:
        details["parent_id"] = parent_id
    record_audit_event(
        uow,
        tenant_id=tenant_id,
        event_type=AuditEventType.WORK_ITEM_CREATED,
        object_type=AuditObjectType.WORK_ITEM,
        object_id=item.id,
        actor=actor,
        now=now,
        ids=ids,
        details=details,
    )
    log.info(
        "Work item %s (%s) routed to %s at %s via %s",
        item.id,
        item.item_type,
        item.owner,
        item.priority,
        item.routing_rule,
    )
    return item


@guarded("create_work_item")
def create_work_item(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    request: WorkItemRequest,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    with unit_of_work_factory() as uow:
        item = build_work_item(
            uow,
            tenant_id=tenant_id,
            request=request,
            actor=actor,
            now=clock(),
            ids=id_generator(ids),
        )
        uow.commit()
    return ActionResult.ok(work_item=item, created=True)


@guarded("create_follow_up")
def create_follow_up(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    parent_id: str,
    actor: str,
    item_type: WorkItemType = WorkItemType.FOLLOW_UP,
    reason: str | None = None,
    owner: str | None = None,
    priority: Priority | None = None,
    sla_hours: int | None = None,
    details: JsonObject | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Open at most one follow-up of ``item_type`` for ``parent_id``.

    A repeated call returns the follow-up created first with ``created=False``.
    """

    key = follow_up_key(parent_id, item_type)
    try:
        with unit_of_work_factory() as uow:
            parent = load_work_item(uow, tenant_id, parent_id)
            existing = _existing_follow_up(uow, tenant_id, key)
            if existing is not None:
                log.info("Follow-up %s for %s already exists", existing.id, parent_id)
                return ActionResult.ok(work_item=existing, created=False)

            now = clock()
            request = WorkItemRequest(
                item_type=item_type,
                reason=reason or f"Follow-up for {parent.id}",
                owner=owner,
                priority=priority,
                sla_hours=sla_hours,
                linked_evidence_id=parent.linked_evidence_id,
                linked_entity=parent.linked_entity,
                dataset_type=parent.dataset_type,
                details=dict(details or {}),
            )
            item = build_work_item(
                uow,
                tenant_id=tenant_id,
                request=request,
                actor=actor,
                now=now,
                ids=id_generator(ids),
                parent_id=parent.id,
            )
            uow.repositories.idempotency_keys.add(
                IdempotencyKey(tenant_id=tenant_id, key=key, work_item_id=item.id, created_at=now)
            )
            uow.commit()
    except DuplicateRecord:
        # another writer claimed the key first
        with unit_of_work_factory() as uow:
            existing = _existing_follow_up(uow, tenant_id, key)
        if existing is None:
            raise
        return ActionResult.ok(work_item=existing, created=False)
    return ActionResult.ok(work_item=item, created=True)


def _existing_follow_up(uow: LedgerUnitOfWork, tenant_id: str, key: str) -> WorkItem | None:
    claimed = uow.repositories.idempotency_keys.get(tenant_id, key)
    if claimed is None:
        return None
    return uow.repositories.work_items.get(tenant_id, claimed.work_item_id)


def _view(item: WorkItem, now: datetime) -> WorkItemView:
    remaining = None
    if not item.is_terminal:
        remaining = calculate_sla_remaining(item.created_at, item.sla_hours, now=now)
    return WorkItemView(item=item, sla_remaining=remaining)


def list_work_items(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    status: WorkItemStatus | None = None,
    item_type: WorkItemType | None = None,
    owner: str | None = None,
    entity_id: str | None = None,
    clock: Clock = utcnow,
) -> list[WorkItemView]:
    """Tenant work items, CRITICAL first, newest first within a priority."""

    with unit_of_work_factory() as uow:
        items = uow.repositories.work_items.list(
            tenant_id,
            status=status,
            item_type=item_type,
            owner=owner,
            entity_id=entity_id,
        )
    now = clock()
    ordered = sorted(items, key=lambda item: item.created_at, reverse=True)
    ordered.sort(key=lambda item: item.priority.rank)
    return [_view(item, now) for item in ordered]


def get_work_item(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
    clock: Clock = utcnow,
) -> WorkItemView | None:
    with unit_of_work_factory() as uow:
        item = uow.repositories.work_items.get(tenant_id, work_item_id)
    return _view(item, clock()) if item is not None else None


@guarded("update_work_item_status")
def update_work_item_status(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    work_item_id: str,
    status: WorkItemStatus,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    if status not in _MANUAL_STATUSES:
        raise InvalidTransition(
            f"Status {status} is set by approving, rejecting or resolving the work item"
        )
    with unit_of_work_factory() as uow:
        item = load_work_item(uow, tenant_id, work_item_id)
        if item.is_terminal:
            raise InvalidTransition(f"Work item {item.id} is already {item.status}")
        previous = item.status
        if previous == status:
            return ActionResult.ok(work_item=item)
        now = clock()
        item.status = status
        item.updated_at = now
        item.updated_by = actor
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.WORK_ITEM_STATUS_CHANGED,
            object_type=AuditObjectType.WORK_ITEM,
            object_id=item.id,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            details={"from": str(previous), "to": str(status)},
        )
        uow.commit()
    log.info("Work item %s moved %s -> %s by %s", work_item_id, previous, status, actor)
    return ActionResult.ok(work_item=item)
