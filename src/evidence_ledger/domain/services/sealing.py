"""Evidence sealing workflow: draft -> validate -> seal (or quarantine).

A draft without a linked entity can still be sealed. The resulting record is
marked UNBOUND and carries a blocking issue until it is bound to an entity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.dates import DEFAULT_RETENTION_YEARS, calculate_retention_end, utcnow
from evidence_ledger.domain.errors import InvalidTransition, RecordNotFound
from evidence_ledger.domain.hashing import content_hash
from evidence_ledger.domain.model import (
    AuditEventType,
    AuditObjectType,
    DatasetType,
    DraftStatus,
    EvidenceDraft,
    EvidenceRecord,
    SealedStatus,
    metadata_document,
)
from evidence_ledger.domain.results import ActionResult
from evidence_ledger.domain.services._common import (
    guarded,
    id_generator,
    record_audit_event,
    require_text,
)
from evidence_ledger.domain.services.evidence import adjust_entity_counters, open_quarantine_review

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import EntityRef, IngestionMethod, JsonObject
    from evidence_ledger.domain.ports import LedgerUnitOfWork, LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[DatasetType, tuple[str, ...]] = {
    DatasetType.SUPPLIER_MASTER: ("legalName", "countryCode"),
    DatasetType.BOM: ("bomName", "weight", "weightUnit"),
    DatasetType.INVOICE: ("invoiceNumber", "amount", "currency", "invoiceDate"),
}

_VALIDATABLE = frozenset(
    {
        DraftStatus.DRAFT,
        DraftStatus.VALIDATION_FAILED,
        DraftStatus.READY_TO_SEAL,
        DraftStatus.SUBMITTED_FOR_REVIEW,
    }
)
_FINAL = frozenset({DraftStatus.SEALED, DraftStatus.QUARANTINED})


@dataclass(kw_only=True)
class DraftRequest:
    dataset_type: DatasetType
    ingestion_method: IngestionMethod
    source_system: str
    payload: JsonObject = field(default_factory=dict[str, Any])
    source_metadata: JsonObject = field(default_factory=dict[str, Any])
    linked_entity: EntityRef | None = None


def missing_required_fields(dataset_type: DatasetType, payload: JsonObject) -> list[str]:
    missing: list[str] = []
    for name in REQUIRED_FIELDS.get(DatasetType(dataset_type), ()):
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def validation_errors(dataset_type: DatasetType, payload: JsonObject) -> list[str]:
    return [
        f"Missing required field: {name}" for name in missing_required_fields(dataset_type, payload)
    ]


def _load_draft(uow: LedgerUnitOfWork, tenant_id: str, draft_id: str) -> EvidenceDraft:
    draft = uow.repositories.drafts.get(tenant_id, draft_id)
    if draft is None:
        raise RecordNotFound("Draft", draft_id)
    return draft


def _transition(
    uow: LedgerUnitOfWork,
    draft: EvidenceDraft,
    status: DraftStatus,
    *,
    actor: str,
    now: datetime,
    ids: IdGenerator,
    details: JsonObject | None = None,
) -> None:
    previous = draft.status
    draft.status = status
    draft.updated_at = now
    record_audit_event(
        uow,
        tenant_id=draft.tenant_id,
        event_type=AuditEventType.DRAFT_STATE_TRANSITION,
        object_type=AuditObjectType.EVIDENCE_DRAFT,
        object_id=draft.id,
        actor=actor,
        now=now,
        ids=ids,
        details={"from": str(previous), "to": str(status), **(details or {})},
    )


@guarded("create_draft")
def create_draft(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    request: DraftRequest,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    require_text(request.source_system, "Source system is required")
    generator = id_generator(ids)
    now = clock()
    draft = EvidenceDraft(
        tenant_id=tenant_id,
        id=generator.prefixed("draft"),
        display_id=generator.display_id("DR", now.year),
        dataset_type=request.dataset_type,
        ingestion_method=request.ingestion_method,
        source_system=request.source_system,
        created_by=actor,
        created_at=now,
        updated_at=now,
        payload=dict(request.payload),
        source_metadata=dict(request.source_metadata),
        linked_entity=request.linked_entity,
    )
    with unit_of_work_factory() as uow:
        uow.repositories.drafts.add(draft)
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.EVIDENCE_INGESTED,
            object_type=AuditObjectType.EVIDENCE_DRAFT,
            object_id=draft.id,
            actor=actor,
            now=now,
            ids=generator,
            details={
                "action": "INGEST",
                "source_system": draft.source_system,
                "ingestion_method": str(draft.ingestion_method),
            },
        )
        uow.commit()
    log.info("Draft %s created from %s", draft.display_id, draft.source_system)
    return ActionResult.ok(value=draft, created=True)


@guarded("validate_draft")
def validate_draft(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    draft_id: str,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Recheck required fields and move the draft to READY_TO_SEAL or VALIDATION_FAILED."""

    with unit_of_work_factory() as uow:
        draft = _load_draft(uow, tenant_id, draft_id)
        if draft.status not in _VALIDATABLE:
            raise InvalidTransition(f"Draft {draft.display_id} is {draft.status}")
        errors = validation_errors(draft.dataset_type, draft.payload)
        draft.validation_errors = errors
        target = DraftStatus.VALIDATION_FAILED if errors else DraftStatus.READY_TO_SEAL
        _transition(
            uow,
            draft,
            target,
            actor=actor,
            now=clock(),
            ids=id_generator(ids),
            details={"validation_errors": errors},
        )
        uow.commit()
    log.info("Draft %s validated: %s (%d errors)", draft.display_id, target, len(errors))
    return ActionResult.ok(value=draft)


def _new_record(
    draft: EvidenceDraft,
    *,
    status: SealedStatus,
    now: datetime,
    ids: IdGenerator,
    retention_years: int,
    quarantine_reason: str | None = None,
) -> EvidenceRecord:
    metadata = metadata_document(
        dataset_type=draft.dataset_type,
        ingestion_method=draft.ingestion_method,
        source_system=draft.source_system,
        ingested_by=draft.created_by,
        source_metadata=draft.source_metadata,
    )
    record = EvidenceRecord(
        tenant_id=draft.tenant_id,
        id=ids.prefixed("rec"),
        display_id=ids.display_id("EV", now.year),
        dataset_type=draft.dataset_type,
        ingestion_method=draft.ingestion_method,
        source_system=draft.source_system,
        ingested_by=draft.created_by,
        ingested_at=now,
        retention_end=calculate_retention_end(now, years=retention_years),
        quarantine_reason=quarantine_reason,
        payload_hash=content_hash(draft.payload),
        metadata_hash=content_hash(metadata),
        canonical_payload=dict(draft.payload),
        source_metadata=dict(draft.source_metadata),
        sealed_at=now if status == SealedStatus.SEALED else None,
        draft_id=draft.id,
        sealed_status=status,
    )
    record.bind([draft.linked_entity] if draft.linked_entity is not None else [])
    return record


@guarded("seal_draft")
def seal_draft(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    draft_id: str,
    actor: str,
    retention_years: int = DEFAULT_RETENTION_YEARS,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Freeze a READY_TO_SEAL draft into an immutable, hashed evidence record."""

    generator = id_generator(ids)
    with unit_of_work_factory() as uow:
        draft = _load_draft(uow, tenant_id, draft_id)
        if not draft.can_seal:
            raise InvalidTransition(
                f"Draft {draft.display_id} cannot be sealed from status {draft.status}"
            )
        now = clock()
        record = _new_record(
            draft,
            status=SealedStatus.SEALED,
            now=now,
            ids=generator,
            retention_years=retention_years,
        )
        uow.repositories.evidence.add(record)
        adjust_entity_counters(uow, tenant_id, record, evidence=1)
        draft.sealed_record_id = record.id
        _transition(
            uow,
            draft,
            DraftStatus.SEALED,
            actor=actor,
            now=now,
            ids=generator,
            details={"record_id": record.id},
        )
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.EVIDENCE_SEALED,
            object_type=AuditObjectType.EVIDENCE,
            object_id=record.id,
            actor=actor,
            now=now,
            ids=generator,
            details={
                "action": "SEAL",
                "draft_id": draft.id,
                "reconciliation_status": str(record.reconciliation_status),
                "payload_hash": record.payload_hash,
            },
        )
        uow.commit()
    log.info(
        "Sealed %s as %s (%s)", draft.display_id, record.display_id, record.reconciliation_status
    )
    return ActionResult.ok(value=record, created=True)


@guarded("quarantine_draft")
def quarantine_draft(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    draft_id: str,
    reason: str | None,
    actor: str,
    retention_years: int = DEFAULT_RETENTION_YEARS,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Park a draft as QUARANTINED evidence and open a REVIEW work item."""

    why = require_text(reason, "Quarantine reason is required")
    generator = id_generator(ids)
    with unit_of_work_factory() as uow:
        draft = _load_draft(uow, tenant_id, draft_id)
        if draft.status in _FINAL:
            raise InvalidTransition(f"Draft {draft.display_id} is already {draft.status}")
        now = clock()
        record = _new_record(
            draft,
            status=SealedStatus.QUARANTINED,
            now=now,
            ids=generator,
            retention_years=retention_years,
            quarantine_reason=why,
        )
        uow.repositories.evidence.add(record)
        adjust_entity_counters(uow, tenant_id, record, evidence=1, quarantined=1)
        draft.sealed_record_id = record.id
        _transition(
            uow,
            draft,
            DraftStatus.QUARANTINED,
            actor=actor,
            now=now,
            ids=generator,
            details={"record_id": record.id, "reason": why},
        )
        open_quarantine_review(
            uow, tenant_id=tenant_id, record=record, reason=why, actor=actor, now=now, ids=generator
        )
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.EVIDENCE_QUARANTINED,
            object_type=AuditObjectType.EVIDENCE,
            object_id=record.id,
            actor=actor,
            now=now,
            ids=generator,
            details={"action": "QUARANTINE", "reason": why, "draft_id": draft.id},
        )
        uow.commit()
    log.info("Draft %s quarantined as %s: %s", draft.display_id, record.display_id, why)
    return ActionResult.ok(value=record, created=True)
