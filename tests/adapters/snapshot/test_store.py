from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from evidence_ledger.adapters.snapshot import (
    Snapshot,
    export_snapshot,
    import_snapshot,
    load_snapshot,
    write_snapshot,
)
from evidence_ledger.demo import DEMO_TENANT_ID, OTHER_TENANT_ID
from evidence_ledger.domain.model import WorkItemType
from tests.helpers.ledger import FIXED_NOW, TENANT, FixedClock

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from evidence_ledger.adapters.sqlalchemy import SqlAlchemyLedgerUnitOfWork

    UowFactory = Callable[[], SqlAlchemyLedgerUnitOfWork]


def test_export_contains_only_one_tenant(seeded_unit_of_work: UowFactory) -> None:
    snapshot = export_snapshot(DEMO_TENANT_ID, seeded_unit_of_work, clock=FixedClock())

    assert snapshot.tenant_id == DEMO_TENANT_ID
    assert snapshot.exported_at == FIXED_NOW
    assert len(snapshot.evidence) == 4
    assert len(snapshot.evidence_drafts) == 3
    assert len(snapshot.work_items) == 11
    assert len(snapshot.entities) == 9
    assert len(snapshot.mapping_suggestions) == 4
    assert len(snapshot.decisions) == 3
    assert len(snapshot.audit_events) == 6
    assert "EV-2025-002" not in {payload.display_id for payload in snapshot.evidence}

    other = export_snapshot(OTHER_TENANT_ID, seeded_unit_of_work)
    assert [payload.display_id for payload in other.evidence] == ["EV-2025-002"]
    assert other.work_items == []


def test_exported_conflict_keeps_its_sources(seeded_unit_of_work: UowFactory) -> None:
    snapshot = export_snapshot(DEMO_TENANT_ID, seeded_unit_of_work)

    conflict = next(item for item in snapshot.work_items if item.id == "WI-004")

    assert conflict.item_type == WorkItemType.CONFLICT
    assert conflict.details["field"] == "countryCode"
    assert conflict.details["reason"] == "Country code conflict"
    assert [source["value"] for source in conflict.details["sources"]] == ["DE", "FR"]
    assert conflict.details["sources"][0]["evidenceId"] == "rec_ev_001"

    blocked = next(item for item in snapshot.work_items if item.id == "WI-006")
    assert blocked.details["financialRiskExposure"] == 125000


def test_written_document_uses_camel_case(seeded_unit_of_work: UowFactory, tmp_path: Path) -> None:
    snapshot = export_snapshot(DEMO_TENANT_ID, seeded_unit_of_work)

    path = write_snapshot(snapshot, tmp_path / "out" / "ledger.json")

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["tenantId"] == DEMO_TENANT_ID
    assert len(document["evidenceDrafts"]) == 3
    assert len(document["workItems"]) == 11
    assert {item["type"] for item in document["workItems"]} >= {"CONFLICT", "MAPPING", "REVIEW"}
    assert "displayId" in document["evidence"][0]


def test_reimport_of_export_changes_nothing(
    seeded_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    path = write_snapshot(
        export_snapshot(DEMO_TENANT_ID, seeded_unit_of_work), tmp_path / "ledger.json"
    )

    summary = import_snapshot(path, seeded_unit_of_work)

    assert summary.total_imported == 0
    assert summary.skipped["evidence"] == 4
    assert summary.skipped["work_items"] == 11
    assert summary.skipped["audit_events"] == 6


def test_rows_without_tenant_use_requested_tenant(sqlite_unit_of_work: UowFactory) -> None:
    snapshot = Snapshot.model_validate(
        {
            "entities": {"suppliers": [{"entityId": "SUP-1", "legalName": "Acme"}]},
            "workItems": [
                {
                    "id": "WI-1",
                    "type": "CONFLICT",
                    "createdAt": "2026-02-01T08:00:00Z",
                    "linkedEntityRef": {"entityType": "SUPPLIER", "entityId": "SUP-1"},
                    "details": {
                        "field": "countryCode",
                        "sources": [
                            {"evidenceId": "rec-a", "value": "DE", "sourceSystem": "Manual Upload"},
                            {"evidenceId": "rec-b", "value": "FR", "sourceSystem": "SAP S/4HANA"},
                        ],
                    },
                }
            ],
        }
    )

    summary = import_snapshot(snapshot, sqlite_unit_of_work, tenant_id=TENANT)

    assert summary.imported == {"entities": 1, "work_items": 1}
    with sqlite_unit_of_work() as uow:
        item = uow.repositories.work_items.get(TENANT, "WI-1")
        entity = uow.repositories.entities.get(TENANT, "SUP-1")
    assert entity is not None
    assert entity.name == "Acme"
    assert item is not None
    assert item.conflict_field == "countryCode"
    assert [source.value for source in item.conflict_sources] == ["DE", "FR"]


def test_load_rejects_invalid_document(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"evidence": [{"id": "rec-1"}]}), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_snapshot(path)
