from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from evidence_ledger.demo import DEMO_TENANT_ID
from evidence_ledger.domain.errors import ImmutableRecordError
from evidence_ledger.domain.hashing import content_hash
from evidence_ledger.domain.identifiers import SeededIdGenerator
from evidence_ledger.domain.model import (
    SCOPE_BINDING_ISSUE,
    AuditEventType,
    DatasetType,
    DraftStatus,
    EntityRef,
    EntityType,
    EvidenceRecord,
    IngestionMethod,
    ReconciliationStatus,
    SealedStatus,
    WorkItemType,
)
from evidence_ledger.domain.services import (
    DraftRequest,
    create_draft,
    get_entity,
    list_audit_events,
    list_work_items,
    quarantine_draft,
    seal_draft,
    validate_draft,
)
from tests.helpers.ledger import ACTOR, TENANT, FixedClock

if TYPE_CHECKING:
    from collections.abc import Callable

    from evidence_ledger.adapters.sqlalchemy import SqlAlchemyLedgerUnitOfWork

    UowFactory = Callable[[], SqlAlchemyLedgerUnitOfWork]


def _seal(uow: UowFactory, draft_id: str, **kwargs: object):  # noqa: ANN202
    return seal_draft(
        unit_of_work_factory=uow,
        tenant_id=DEMO_TENANT_ID,
        draft_id=draft_id,
        actor=ACTOR,
        **kwargs,  # pyright: ignore[reportArgumentType]
    )


def test_seal_without_scope_binding_is_unbound(seeded_unit_of_work: UowFactory) -> None:
    result = _seal(seeded_unit_of_work, "draft_001", ids=SeededIdGenerator(), clock=FixedClock())

    assert result.success
    record = result.value
    assert isinstance(record, EvidenceRecord)
    assert record.sealed_status == SealedStatus.SEALED
    assert record.reconciliation_status == ReconciliationStatus.UNBOUND
    assert record.blocking_issues == [SCOPE_BINDING_ISSUE]
    assert record.sealed_at == datetime(2026, 2, 5, 12, 0, tzinfo=UTC)
    assert record.retention_end == datetime(2033, 2, 5, 12, 0, tzinfo=UTC)
    assert record.display_id == "EV-2026-0001"
    assert record.draft_id == "draft_001"
    assert record.payload_hash == content_hash(
        {"legalName": "New Supplier Ltd", "countryCode": "FR", "vatNumber": "FR987654321"}
    )

    with seeded_unit_of_work() as uow:
        draft = uow.repositories.drafts.get(DEMO_TENANT_ID, "draft_001")
        stored = uow.repositories.evidence.get(DEMO_TENANT_ID, record.id)
    assert draft is not None
    assert draft.status == DraftStatus.SEALED
    assert draft.sealed_record_id == record.id
    assert stored is not None
    assert stored.is_sealed

    sealed_events = list_audit_events(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        object_id=record.id,
        event_type=AuditEventType.EVIDENCE_SEALED,
    )
    assert len(sealed_events) == 1
    assert sealed_events[0].details["reconciliation_status"] == "UNBOUND"


def test_sealed_record_refuses_changes(seeded_unit_of_work: UowFactory) -> None:
    record = _seal(seeded_unit_of_work, "draft_001").value
    assert isinstance(record, EvidenceRecord)

    with pytest.raises(ImmutableRecordError):
        record.payload_hash = "0" * 64
    with pytest.raises(ImmutableRecordError):
        record.canonical_payload = {}


def test_seal_is_refused_outside_ready_to_seal(seeded_unit_of_work: UowFactory) -> None:
    failed = _seal(seeded_unit_of_work, "draft_002")
    under_review = _seal(seeded_unit_of_work, "draft_003")

    assert not failed.success
    assert failed.error_code == "INVALID_TRANSITION"
    assert not under_review.success
    assert under_review.error_code == "INVALID_TRANSITION"


def test_seal_twice_is_refused(seeded_unit_of_work: UowFactory) -> None:
    assert _seal(seeded_unit_of_work, "draft_001").success

    again = _seal(seeded_unit_of_work, "draft_001")

    assert not again.success
    assert again.error_code == "INVALID_TRANSITION"
    with seeded_unit_of_work() as uow:
        sealed = uow.repositories.evidence.list(DEMO_TENANT_ID, status=SealedStatus.SEALED)
    assert sum(1 for record in sealed if record.draft_id == "draft_001") == 1


def test_unknown_draft_is_not_found(seeded_unit_of_work: UowFactory) -> None:
    result = _seal(seeded_unit_of_work, "draft_404")

    assert not result.success
    assert result.error == "Draft not found: draft_404"


def test_validate_reports_missing_fields(seeded_unit_of_work: UowFactory) -> None:
    result = validate_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id="draft_002",
        actor=ACTOR,
    )

    assert result.success
    draft = result.value
    assert draft.status == DraftStatus.VALIDATION_FAILED
    assert draft.validation_errors == [
        "Missing required field: weight",
        "Missing required field: weightUnit",
    ]


def test_validate_then_seal_complete_draft(seeded_unit_of_work: UowFactory) -> None:
    validated = validate_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id="draft_003",
        actor=ACTOR,
    )

    assert validated.success
    assert validated.value.status == DraftStatus.READY_TO_SEAL
    assert validated.value.validation_errors == []
    assert _seal(seeded_unit_of_work, "draft_003").success

    transitions = list_audit_events(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        object_id="draft_003",
        event_type=AuditEventType.DRAFT_STATE_TRANSITION,
    )
    assert {(e.details["from"], e.details["to"]) for e in transitions} == {
        ("SUBMITTED_FOR_REVIEW", "READY_TO_SEAL"),
        ("READY_TO_SEAL", "SEALED"),
    }


def test_bound_draft_updates_entity_counters(seeded_unit_of_work: UowFactory) -> None:
    ids = SeededIdGenerator()
    clock = FixedClock()
    created = create_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        request=DraftRequest(
            dataset_type=DatasetType.SUPPLIER_MASTER,
            ingestion_method=IngestionMethod.FILE_UPLOAD,
            source_system="Supplier Portal",
            payload={"legalName": "Global Plastics Inc", "countryCode": "US"},
            linked_entity=EntityRef(EntityType.SUPPLIER, "SUP-456"),
        ),
        actor=ACTOR,
        ids=ids,
        clock=clock,
    )
    assert created.success
    draft_id = created.value.id
    assert created.value.display_id == "DR-2026-0001"
    assert created.value.status == DraftStatus.DRAFT

    assert validate_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id=draft_id,
        actor=ACTOR,
    ).success
    sealed = _seal(seeded_unit_of_work, draft_id, ids=ids, clock=clock)

    assert sealed.success
    assert sealed.value.reconciliation_status == ReconciliationStatus.BOUND
    assert sealed.value.blocking_issues == []
    assert sealed.value.linked_entities == [EntityRef(EntityType.SUPPLIER, "SUP-456")]
    view = get_entity(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, entity_id="SUP-456"
    )
    assert view is not None
    assert view.entity.evidence_count == 2


def test_create_draft_requires_source_system(sqlite_unit_of_work: UowFactory) -> None:
    result = create_draft(
        unit_of_work_factory=sqlite_unit_of_work,
        tenant_id=TENANT,
        request=DraftRequest(
            dataset_type=DatasetType.INVOICE,
            ingestion_method=IngestionMethod.API_PUSH,
            source_system="  ",
        ),
        actor=ACTOR,
    )

    assert not result.success
    assert result.error_code == "VALIDATION_FAILED"


def test_quarantine_draft_opens_review(seeded_unit_of_work: UowFactory) -> None:
    result = quarantine_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id="draft_003",
        reason="Invoice total does not match line items",
        actor=ACTOR,
    )

    assert result.success
    record = result.value
    assert record.sealed_status == SealedStatus.QUARANTINED
    assert record.quarantine_reason == "Invoice total does not match line items"
    assert record.sealed_at is None

    reviews = [
        view.item
        for view in list_work_items(
            unit_of_work_factory=seeded_unit_of_work,
            tenant_id=DEMO_TENANT_ID,
            item_type=WorkItemType.REVIEW,
        )
        if view.item.linked_evidence_id == record.id
    ]
    assert len(reviews) == 1
    assert reviews[0].owner == "finance-ops"
    assert reviews[0].routing_rule == "REVIEW:INVOICE"

    again = quarantine_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id="draft_003",
        reason="again",
        actor=ACTOR,
    )
    assert again.error_code == "INVALID_TRANSITION"


def test_quarantine_draft_requires_reason(seeded_unit_of_work: UowFactory) -> None:
    result = quarantine_draft(
        unit_of_work_factory=seeded_unit_of_work,
        tenant_id=DEMO_TENANT_ID,
        draft_id="draft_003",
        reason="",
        actor=ACTOR,
    )

    assert not result.success
    assert result.error == "Quarantine reason is required"
    with seeded_unit_of_work() as uow:
        draft = uow.repositories.drafts.get(DEMO_TENANT_ID, "draft_003")
    assert draft is not None
    assert draft.status == DraftStatus.SUBMITTED_FOR_REVIEW
