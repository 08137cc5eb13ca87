"""Evidence vault queries, integrity checks, package export and quarantine."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.dates import utcnow
from evidence_ledger.domain.errors import ExportFailed, RecordNotFound
from evidence_ledger.domain.hashing import content_hash, verify_content_hash
from evidence_ledger.domain.model import (
    AuditEventType,
    AuditObjectType,
    SealedStatus,
    WorkItemType,
)
from evidence_ledger.domain.results import ActionResult
from evidence_ledger.domain.services._common import (
    guarded,
    id_generator,
    load_evidence,
    record_audit_event,
    require_text,
)
from evidence_ledger.domain.services.work_items import WorkItemRequest, build_work_item

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from pathlib import Path

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import (
        AuditEvent,
        DatasetType,
        EvidenceRecord,
        IngestionMethod,
        JsonObject,
    )
    from evidence_ledger.domain.ports import LedgerUnitOfWork, LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)

PACKAGE_FORMAT_VERSION = 1


@dataclass(frozen=True, slots=True)
class HashVerification:
    display_id: str
    payload_hash: str
    computed_payload_hash: str
    payload_ok: bool
    metadata_hash: str
    computed_metadata_hash: str
    metadata_ok: bool

    @property
    def ok(self) -> bool:
        return self.payload_ok and self.metadata_ok


def list_evidence(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    status: SealedStatus | None = None,
    dataset_type: DatasetType | None = None,
    ingestion_method: IngestionMethod | None = None,
    source_system: str | None = None,
    search: str | None = None,
) -> Sequence[EvidenceRecord]:
    """Tenant evidence newest first; ``search`` matches part of the display id."""
    with unit_of_work_factory() as uow:
        return uow.repositories.evidence.list(
            tenant_id,
            status=status,
            dataset_type=dataset_type,
            ingestion_method=ingestion_method,
            source_system=source_system,
            display_id_contains=search,
        )


def get_evidence(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    record_id: str,
) -> EvidenceRecord | None:
    with unit_of_work_factory() as uow:
        return uow.repositories.evidence.get(tenant_id, record_id)


def get_evidence_by_display_id(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    display_id: str,
) -> EvidenceRecord | None:
    with unit_of_work_factory() as uow:
        return uow.repositories.evidence.get_by_display_id(tenant_id, display_id)


def _load_by_display_id(uow: LedgerUnitOfWork, tenant_id: str, display_id: str) -> EvidenceRecord:
    record = uow.repositories.evidence.get_by_display_id(tenant_id, display_id)
    if record is None:
        raise RecordNotFound("Evidence", display_id)
    return record


def check_hashes(record: EvidenceRecord) -> HashVerification:
    computed_payload = content_hash(record.canonical_payload)
    computed_metadata = content_hash(record.metadata_document())
    return HashVerification(
        display_id=record.display_id,
        payload_hash=record.payload_hash,
        computed_payload_hash=computed_payload,
        payload_ok=verify_content_hash(record.canonical_payload, record.payload_hash),
        metadata_hash=record.metadata_hash,
        computed_metadata_hash=computed_metadata,
        metadata_ok=verify_content_hash(record.metadata_document(), record.metadata_hash),
    )


@guarded("verify_hashes")
def verify_hashes(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    display_id: str,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Recompute payload and metadata hashes and record the outcome."""

    with unit_of_work_factory() as uow:
        record = _load_by_display_id(uow, tenant_id, display_id)
        verification = check_hashes(record)
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.HASH_VERIFICATION,
            object_type=AuditObjectType.EVIDENCE,
            object_id=record.id,
            actor=actor,
            now=clock(),
            ids=id_generator(ids),
            details={
                "action": "VERIFY",
                "payload_ok": verification.payload_ok,
                "metadata_ok": verification.metadata_ok,
            },
        )
        uow.commit()
    if not verification.ok:
        log.warning("Hash mismatch on evidence %s", display_id)
    return ActionResult.ok(value=verification)


def _record_document(record: EvidenceRecord) -> JsonObject:
    return {
        "record_id": record.id,
        "display_id": record.display_id,
        "tenant_id": record.tenant_id,
        "dataset_type": str(record.dataset_type),
        "ingestion_method": str(record.ingestion_method),
        "source_system": record.source_system,
        "ingested_by": record.ingested_by,
        "ingested_at": record.ingested_at.isoformat(),
        "retention_end": record.retention_end.isoformat() if record.retention_end else None,
        "sealed_status": str(record.sealed_status),
        "sealed_at": record.sealed_at.isoformat() if record.sealed_at else None,
        "quarantine_reason": record.quarantine_reason,
        "reconciliation_status": str(record.reconciliation_status),
        "blocking_issues": list(record.blocking_issues),
        "payload_hash_sha256": record.payload_hash,
        "metadata_hash_sha256": record.metadata_hash,
        "linked_entities": [ref.as_dict() for ref in record.linked_entities],
        "canonical_payload": record.canonical_payload,
        "source_metadata": record.source_metadata,
    }


def _event_document(event: AuditEvent) -> JsonObject:
    return {
        "id": event.id,
        "event_type": str(event.event_type),
        "actor": event.actor,
        "timestamp": event.timestamp.isoformat(),
        "details": event.details,
    }


def _write_package(package: JsonObject, destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(json.dumps(package, indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise ExportFailed(f"Cannot write package to {destination}: {exc.strerror}") from exc


@guarded("export_package")
def export_package(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    display_id: str,
    actor: str,
    destination: Path | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Assemble an auditor package for one record, optionally writing it as JSON."""

    with unit_of_work_factory() as uow:
        record = _load_by_display_id(uow, tenant_id, display_id)
        now = clock()
        verification = check_hashes(record)
        decisions = [
            decision
            for decision in uow.repositories.decisions.list(tenant_id)
            if decision.evidence_id == record.id
        ]
        history = uow.repositories.audit_events.list(
            tenant_id, object_type=AuditObjectType.EVIDENCE, object_id=record.id
        )
        package: dict[str, Any] = {
            "format_version": PACKAGE_FORMAT_VERSION,
            "exported_at": now.isoformat(),
            "exported_by": actor,
            "evidence": _record_document(record),
            "integrity": {
                "payload_ok": verification.payload_ok,
                "metadata_ok": verification.metadata_ok,
            },
            "decisions": [
                {
                    "id": decision.id,
                    "decision_type": str(decision.decision_type),
                    "reason_code": decision.reason_code,
                    "comment": decision.comment,
                    "actor": decision.actor,
                    "created_at": decision.created_at.isoformat(),
                    "work_item_id": decision.work_item_id,
                }
                for decision in decisions
            ],
            "audit_trail": [_event_document(event) for event in history],
        }
        record_audit_event(
            uow,
            tenant_id=tenant_id,
            event_type=AuditEventType.PACKAGE_EXPORTED,
            object_type=AuditObjectType.EVIDENCE,
            object_id=record.id,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            details={
                "action": "EXPORT",
                "destination": str(destination) if destination is not None else None,
            },
        )
        uow.commit()
    if destination is not None:
        _write_package(package, destination)
    log.info("Exported evidence package for %s", display_id)
    return ActionResult.ok(value=package)


def recent_activity(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    limit: int = 10,
) -> Sequence[AuditEvent]:
    with unit_of_work_factory() as uow:
        return uow.repositories.audit_events.list(tenant_id, limit=limit)


def adjust_entity_counters(
    uow: LedgerUnitOfWork,
    tenant_id: str,
    record: EvidenceRecord,
    *,
    evidence: int = 0,
    quarantined: int = 0,
) -> None:
    for ref in record.linked_entities:
        entity = uow.repositories.entities.get(tenant_id, ref.entity_id)
        if entity is None or entity.entity_type != ref.entity_type:
            continue
        entity.evidence_count = max(0, entity.evidence_count + evidence)
        entity.quarantined_evidence_count = max(0, entity.quarantined_evidence_count + quarantined)


def open_quarantine_review(
    uow: LedgerUnitOfWork,
    *,
    tenant_id: str,
    record: EvidenceRecord,
    reason: str,
    actor: str,
    now: datetime,
    ids: IdGenerator,
) -> None:
    build_work_item(
        uow,
        tenant_id=tenant_id,
        request=WorkItemRequest(
            item_type=WorkItemType.REVIEW,
            reason=f"Quarantined evidence {record.display_id} requires review: {reason}",
            linked_evidence_id=record.id,
            linked_entity=record.linked_entities[0] if record.linked_entities else None,
            dataset_type=record.dataset_type,
            details={"quarantine_reason": reason},
        ),
        actor=actor,
        now=now,
        ids=ids,
        evidence_status=SealedStatus.QUARANTINED,
    )


@guarded("quarantine_evidence")
def quarantine_evidence(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    record_id: str,
    reason: str | None,
    actor: str,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Quarantine an unsealed record and open a REVIEW work item for it."""

    why = require_text(reason, "Quarantine reason is required")
    generator = id_generator(ids)
    with unit_of_work_factory() as uow:
        record = load_evidence(uow, tenant_id, record_id)
        if record.sealed_status == SealedStatus.QUARANTINED:
            return ActionResult.ok(value=record)
        record.quarantine(why)
        now = clock()
        adjust_entity_counters(uow, tenant_id, record, quarantined=1)
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
            details={"action": "QUARANTINE", "reason": why},
        )
        uow.commit()
    log.info("Evidence %s quarantined: %s", record.display_id, why)
    return ActionResult.ok(value=record)
