from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from evidence_ledger.adapters.snapshot import ImportSummary  # noqa: TC001
from evidence_ledger.adapters.sqlalchemy import create_all_tables, start_mappers
from evidence_ledger.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    shutdown,
    startup,
)
from evidence_ledger.demo import seed_demo_data

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyLedgerUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyLedgerUnitOfWork:
        return SqlAlchemyLedgerUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def seeded_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyLedgerUnitOfWork],
) -> Callable[[], SqlAlchemyLedgerUnitOfWork]:
    """Unit of work factory over a store holding the demo tenant."""

    summary: ImportSummary = seed_demo_data(sqlite_unit_of_work)
    assert summary.total_imported > 0
    return sqlite_unit_of_work
