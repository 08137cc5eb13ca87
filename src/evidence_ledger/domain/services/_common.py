"""Helpers shared by the ledger application services."""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from evidence_ledger.domain.errors import LedgerError, RecordNotFound, ValidationFailed
from evidence_ledger.domain.identifiers import RandomIdGenerator
from evidence_ledger.domain.model import (
    AuditEvent,
    AuditEventType,
    AuditObjectType,
    Decision,
)
from evidence_ledger.domain.results import ActionResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import (
        DecisionType,
        EntityRef,
        EvidenceRecord,
        JsonObject,
        WorkItem,
    )
    from evidence_ledger.domain.ports import LedgerUnitOfWork

log = logging.getLogger(__name__)

DEFAULT_ID_GENERATOR: IdGenerator = RandomIdGenerator()


def id_generator(ids: IdGenerator | None) -> IdGenerator:
    return ids if ids is not None else DEFAULT_ID_GENERATOR


def require_text(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise ValidationFailed(message)
    return value.strip()


def guarded[**P](action: str) -> Callable[[Callable[P, ActionResult]], Callable[P, ActionResult]]:
    """Turn ledger errors raised by an action into a failed ``ActionResult``."""

    def decorate(func: Callable[P, ActionResult]) -> Callable[P, ActionResult]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> ActionResult:
            try:
                return func(*args, **kwargs)
            except LedgerError as exc:
                log.warning("%s refused: %s", action, exc)
                return ActionResult.failure(exc)

        return wrapper

    return decorate


def load_work_item(uow: LedgerUnitOfWork, tenant_id: str, work_item_id: str) -> WorkItem:
    item = uow.repositories.work_items.get(tenant_id, work_item_id)
    if item is None:
        raise RecordNotFound("Work item", work_item_id)
    return item


def load_evidence(uow: LedgerUnitOfWork, tenant_id: str, record_id: str) -> EvidenceRecord:
    record = uow.repositories.evidence.get(tenant_id, record_id)
    if record is None:
        raise RecordNotFound("Evidence", record_id)
    return record


def record_audit_event(
    uow: LedgerUnitOfWork,
    *,
    tenant_id: str,
    event_type: AuditEventType,
    object_type: AuditObjectType,
    object_id: str,
    actor: str,
    now: datetime,
    ids: IdGenerator,
    details: JsonObject | None = None,
) -> AuditEvent:
    event = AuditEvent(
        tenant_id=tenant_id,
        id=ids.prefixed("AE"),
        event_type=event_type,
        object_type=object_type,
        object_id=object_id,
        actor=actor,
        timestamp=now,
        details=dict(details or {}),
    )
    uow.repositories.audit_events.add(event)
    return event


def append_decision(
    uow: LedgerUnitOfWork,
    *,
    tenant_id: str,
    decision_type: DecisionType,
    reason_code: str,
    actor: str,
    now: datetime,
    ids: IdGenerator,
    work_item: WorkItem | None = None,
    entity: EntityRef | None = None,
    evidence_id: str | None = None,
    comment: str | None = None,
    context: JsonObject | None = None,
) -> Decision:
    """Append a decision, chain it to the work item's previous one and audit it."""

    supersedes: str | None = None
    if work_item is not None:
        previous = uow.repositories.decisions.latest_for_work_item(tenant_id, work_item.id)
        supersedes = previous.id if previous is not None else None
        entity = entity or work_item.linked_entity
        evidence_id = evidence_id or work_item.linked_evidence_id

    decision = Decision(
        tenant_id=tenant_id,
        id=ids.prefixed("DEC"),
        decision_type=decision_type,
        reason_code=reason_code,
        actor=actor,
        created_at=now,
        work_item_id=work_item.id if work_item is not None else None,
        entity_type=entity.entity_type if entity is not None else None,
        entity_id=entity.entity_id if entity is not None else None,
        evidence_id=evidence_id,
        comment=comment or None,
        supersedes_decision_id=supersedes,
        context=dict(context or {}),
    )
    uow.repositories.decisions.add(decision)
    record_audit_event(
        uow,
        tenant_id=tenant_id,
        event_type=AuditEventType.DECISION_LOGGED,
        object_type=AuditObjectType.DECISION,
        object_id=decision.id,
        actor=actor,
        now=now,
        ids=ids,
        details={
            "decision_type": str(decision_type),
            "reason_code": reason_code,
            "work_item_id": decision.work_item_id,
            "supersedes_decision_id": supersedes,
        },
    )
    return decision
