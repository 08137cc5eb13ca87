from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from evidence_ledger.demo import DEMO_TENANT_ID
from evidence_ledger.domain.model import WorkItemStatus
from evidence_ledger.domain.services import get_work_item, list_decisions
from evidence_ledger.ui import cli

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from evidence_ledger.adapters.sqlalchemy import SqlAlchemyLedgerUnitOfWork

    UowFactory = Callable[[], SqlAlchemyLedgerUnitOfWork]


@pytest.fixture
def run_cli(
    monkeypatch: pytest.MonkeyPatch, seeded_unit_of_work: UowFactory
) -> Callable[..., None]:
    monkeypatch.setattr(cli, "ledger_unit_of_work_factory", lambda: seeded_unit_of_work)

    def invoke(*argv: str) -> None:
        cli.main(["--tenant", DEMO_TENANT_ID, "--actor", "cli@example.com", *argv])

    return invoke


def test_evidence_list_is_tenant_scoped(
    run_cli: Callable[..., None], capsys: pytest.CaptureFixture[str]
) -> None:
    run_cli("evidence", "list")

    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == [
        "EV-2024-004",
        "EV-2024-003",
        "EV-2024-002",
        "EV-2024-001",
    ]


def test_evidence_verify(run_cli: Callable[..., None], capsys: pytest.CaptureFixture[str]) -> None:
    run_cli("evidence", "verify", "EV-2024-001")

    assert "EV-2024-001: payload OK, metadata OK" in capsys.readouterr().out


def test_evidence_show_unknown_exits_with_failure(run_cli: Callable[..., None]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli("evidence", "show", "EV-2025-002")

    assert excinfo.value.code == 1


def test_resolve_conflict(
    run_cli: Callable[..., None],
    seeded_unit_of_work: UowFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    run_cli(
        "work-items",
        "resolve",
        "WI-004",
        "--strategy",
        "PREFER_TRUSTED_SYSTEM",
        "--reason-code",
        "SOURCE_PRIORITY",
    )

    out = capsys.readouterr().out
    assert "WI-004: RESOLVED" in out
    assert "(CONFLICT_RESOLVE)" in out
    decisions = list_decisions(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, work_item_id="WI-004"
    )
    assert [d.actor for d in decisions] == ["cli@example.com"]


def test_reject_without_comment_changes_nothing(
    run_cli: Callable[..., None], seeded_unit_of_work: UowFactory
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli("work-items", "reject", "WI-001", "--reason-code", "INVALID_DATA", "--comment", "")

    assert excinfo.value.code == 1
    view = get_work_item(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, work_item_id="WI-001"
    )
    assert view is not None
    assert view.item.status == WorkItemStatus.OPEN


def test_follow_up_is_idempotent(
    run_cli: Callable[..., None], capsys: pytest.CaptureFixture[str]
) -> None:
    run_cli("work-items", "follow-up", "WI-001", "--reason", "Chase supplier")
    first = capsys.readouterr().out.strip()
    run_cli("work-items", "follow-up", "WI-001", "--reason", "Chase supplier")
    second = capsys.readouterr().out.strip()

    assert first.endswith(": OPEN")
    assert second == f"{first} (existing)"


def test_follow_up_uses_configured_default_sla(
    run_cli: Callable[..., None],
    seeded_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("EVIDENCE_LEDGER_DEFAULT_SLA_HOURS", "12")

    run_cli("work-items", "follow-up", "WI-001", "--reason", "Chase supplier")

    item_id = capsys.readouterr().out.strip().split(":")[0]
    view = get_work_item(
        unit_of_work_factory=seeded_unit_of_work, tenant_id=DEMO_TENANT_ID, work_item_id=item_id
    )
    assert view is not None
    assert view.item.parent_id == "WI-001"
    assert view.item.sla_hours == 12


def test_quarantine_uses_configured_retention(
    run_cli: Callable[..., None],
    seeded_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("EVIDENCE_LEDGER_RETENTION_YEARS", "10")

    run_cli("drafts", "quarantine", "draft_003", "--reason", "Unreadable scan")

    with seeded_unit_of_work() as uow:
        draft = uow.repositories.drafts.get(DEMO_TENANT_ID, "draft_003")
        assert draft is not None
        assert draft.sealed_record_id is not None
        record = uow.repositories.evidence.get(DEMO_TENANT_ID, draft.sealed_record_id)
        assert record is not None
        assert record.retention_end is not None
        assert record.retention_end.year == record.ingested_at.year + 10


def test_invalid_limit_exits_with_usage_error(run_cli: Callable[..., None]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli("audit", "list", "--limit", "0")

    assert excinfo.value.code == 2


def test_override_value_must_be_scalar(run_cli: Callable[..., None]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(
            "work-items",
            "resolve",
            "WI-004",
            "--strategy",
            "MANUAL_OVERRIDE",
            "--reason-code",
            "MANUAL",
            "--value",
            '["DE"]',
        )

    assert excinfo.value.code == 2


def test_kpis(run_cli: Callable[..., None], capsys: pytest.CaptureFixture[str]) -> None:
    run_cli("kpis")

    out = capsys.readouterr().out
    assert "Sealed evidence: 2" in out
    assert "Financial risk exposure: 200,000.00" in out


def test_snapshot_export(
    run_cli: Callable[..., None], tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    target = tmp_path / "ledger.json"

    run_cli("snapshot", "export", str(target))

    assert f"Wrote {target}" in capsys.readouterr().out
    document = json.loads(target.read_text(encoding="utf-8"))
    assert document["tenantId"] == DEMO_TENANT_ID
    assert len(document["evidence"]) == 4


def test_seed_twice_adds_nothing(
    run_cli: Callable[..., None], capsys: pytest.CaptureFixture[str]
) -> None:
    run_cli("seed")

    assert capsys.readouterr().out.startswith("Seeded: 0 added")
