"""Schema validation for snapshot documents, including older key spellings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from evidence_ledger.adapters.snapshot import Snapshot
from evidence_ledger.adapters.snapshot.schema import (
    EvidenceDraftPayload,
    EvidencePayload,
    MappingSuggestionPayload,
    WorkItemPayload,
)
from evidence_ledger.domain.model import (
    DraftStatus,
    EntityType,
    SealedStatus,
    WorkItemStatus,
    WorkItemType,
)


def test_evidence_accepts_legacy_keys() -> None:
    parsed = EvidencePayload.model_validate(
        {
            "recordId": "rec_001",
            "displayId": "EV-2026-001",
            "datasetType": "SUPPLIER_MASTER",
            "ingestionMethod": "FILE_UPLOAD",
            "sourceSystem": "Manual Upload",
            "ingestedBy": "admin@emissioncore.io",
            "ingestedAtUtc": "2026-01-15T10:30:00Z",
            "payloadHashSha256": "ab" * 32,
            "sealedStatus": "SEALED",
            "linkedEntityRefs": [{"entityType": "SUPPLIER", "entityId": "SUP-123"}],
        }
    )

    assert parsed.id == "rec_001"
    assert parsed.payload_hash == "ab" * 32
    assert parsed.sealed_status == SealedStatus.SEALED
    assert parsed.ingested_at.tzinfo is not None
    assert parsed.linked_entities[0].entity_type == EntityType.SUPPLIER


def test_evidence_accepts_snake_case_keys() -> None:
    parsed = EvidencePayload.model_validate(
        {
            "record_id": "rec_002",
            "display_id": "EV-2026-002",
            "dataset_type": "INVOICE",
            "ingestion_method": "API_PUSH",
            "source_system": "Supplier Portal",
            "ingested_by": "system@emissioncore.io",
            "ingested_at": "2026-01-20T14:15:00+00:00",
        }
    )

    assert parsed.id == "rec_002"
    assert parsed.sealed_status == SealedStatus.INGESTED
    assert parsed.reconciliation_status is None


def test_legacy_status_spellings() -> None:
    draft = EvidenceDraftPayload.model_validate(
        {
            "draftId": "draft_009",
            "displayId": "DR-2026-009",
            "datasetType": "BOM",
            "ingestionMethod": "FILE_UPLOAD",
            "sourceSystem": "Manual Upload",
            "status": "READY_FOR_SEAL",
            "createdBy": "admin@emissioncore.io",
            "createdAt": "2026-02-05T10:00:00Z",
            "draftPayload": {"bomName": "Frame"},
        }
    )
    item = WorkItemPayload.model_validate(
        {
            "workItemId": "WI-100",
            "type": "REVIEW",
            "status": "DONE",
            "createdAt": "2026-02-05T10:00:00Z",
        }
    )

    assert draft.status == DraftStatus.READY_TO_SEAL
    assert draft.payload == {"bomName": "Frame"}
    assert item.item_type == WorkItemType.REVIEW
    assert item.status == WorkItemStatus.RESOLVED
    assert item.owner == "Unassigned"
    assert item.sla_hours == 48


def test_fractional_confidence_is_read_as_percent() -> None:
    parsed = MappingSuggestionPayload.model_validate(
        {
            "id": "MSUG-9",
            "entityRef": {"entityType": "SKU", "entityId": "SKU-1"},
            "proposedTargetRef": {"entityType": "SKU", "entityId": "SKU-2"},
            "confidence": 0.87,
            "suggestionType": "FUZZY_MATCH",
            "createdAt": "2026-01-26T10:20:00Z",
        }
    )

    assert parsed.confidence == 87


def test_grouped_entities_are_flattened() -> None:
    snapshot = Snapshot.model_validate(
        {
            "entities": {
                "suppliers": [{"entityId": "SUP-1", "legalName": "Acme", "countryCode": "DE"}],
                "boms": [{"entityId": "BOM-1", "name": "Frame BOM", "lineItems": []}],
            }
        }
    )

    assert [(e.entity_id, e.entity_type) for e in snapshot.entities] == [
        ("SUP-1", EntityType.SUPPLIER),
        ("BOM-1", EntityType.BOM),
    ]
    assert snapshot.entities[0].name == "Acme"
    assert snapshot.entities[0].attributes == {"countryCode": "DE"}
    assert snapshot.entities[1].attributes == {"lineItems": []}


def test_unknown_entity_group_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Snapshot.model_validate({"entities": {"vendors": []}})


def test_document_uses_camel_case() -> None:
    document = Snapshot(tenant_id="tenant_a").to_document()

    assert document["tenantId"] == "tenant_a"
    assert document["formatVersion"] == 1
    for key in (
        "evidence",
        "evidenceDrafts",
        "workItems",
        "entities",
        "mappingSuggestions",
        "decisions",
        "auditEvents",
        "idempotencyKeys",
    ):
        assert document[key] == []
