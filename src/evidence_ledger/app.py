"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from evidence_ledger.adapters.snapshot import export_snapshot, import_snapshot, write_snapshot
from evidence_ledger.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    is_started,
    startup,
)
from evidence_ledger.config import get_ledger_config
from evidence_ledger.demo import seed_demo_data

if TYPE_CHECKING:
    from pathlib import Path

    from evidence_ledger.adapters.snapshot import ImportSummary
    from evidence_ledger.config import LedgerConfig
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory


log = getLogger(__name__)


def ledger_unit_of_work_factory(
    unit_of_work_factory: LedgerUnitOfWorkFactory | None = None,
) -> LedgerUnitOfWorkFactory:
    """Return ``unit_of_work_factory`` or the SQLAlchemy default, starting the adapter."""

    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyLedgerUnitOfWork


def resolve_config(*, tenant_id: str | None = None, actor: str | None = None) -> LedgerConfig:
    """Environment configuration with command line overrides applied."""

    config = get_ledger_config()
    if tenant_id is None and actor is None:
        return config
    return replace(config, tenant_id=tenant_id or config.tenant_id, actor=actor or config.actor)


def seed_demo(*, unit_of_work_factory: LedgerUnitOfWorkFactory | None = None) -> ImportSummary:
    """Load the demo tenant fixture into the configured store."""

    summary = seed_demo_data(ledger_unit_of_work_factory(unit_of_work_factory))
    log.info(
        "Demo seed finished: added=%s, already_present=%s",
        summary.total_imported,
        summary.total_skipped,
    )
    return summary


def import_ledger_snapshot(
    path: Path,
    *,
    tenant_id: str | None = None,
    unit_of_work_factory: LedgerUnitOfWorkFactory | None = None,
) -> ImportSummary:
    log.info("Importing snapshot from %s", path)
    return import_snapshot(
        path,
        ledger_unit_of_work_factory(unit_of_work_factory),
        tenant_id=tenant_id,
    )


def export_ledger_snapshot(
    path: Path,
    *,
    tenant_id: str,
    unit_of_work_factory: LedgerUnitOfWorkFactory | None = None,
) -> Path:
    snapshot = export_snapshot(tenant_id, ledger_unit_of_work_factory(unit_of_work_factory))
    written = write_snapshot(snapshot, path)
    log.info(
        "Exported snapshot for %s: evidence=%s, work_items=%s, decisions=%s -> %s",
        tenant_id,
        len(snapshot.evidence),
        len(snapshot.work_items),
        len(snapshot.decisions),
        written,
    )
    return written
