"""Audit log access."""

from __future__ import annotations

from typing import TYPE_CHECKING

from evidence_ledger.domain.dates import utcnow
from evidence_ledger.domain.services._common import id_generator, record_audit_event

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import (
        AuditEvent,
        AuditEventType,
        AuditObjectType,
        JsonObject,
    )
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory


def append_audit_event(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    event_type: AuditEventType,
    object_type: AuditObjectType,
    object_id: str,
    actor: str,
    details: JsonObject | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> AuditEvent:
    with unit_of_work_factory() as uow:
        event = record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=event_type,
            object_type=object_type,
            object_id=object_id,
            actor=actor,
            now=clock(),
            ids=id_generator(ids),
            details=details,
        )
        uow.commit()
    return event


def list_audit_events(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    object_type: AuditObjectType | None = None,
    object_id: str | None = None,
    event_type: AuditEventType | None = None,
    limit: int | None = None,
) -> Sequence[AuditEvent]:
    """Audit events newest first."""
    with unit_of_work_factory() as uow:
        return uow.repositories.audit_events.list(
            tenant_id,
            object_type=object_type,
            object_id=object_id,
            event_type=event_type,
            limit=limit,
        )
