"""SQLAlchemy-backed unit of work for the evidence ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from evidence_ledger.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from evidence_ledger.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditEventRepository,
    SqlAlchemyCanonicalEntityRepository,
    SqlAlchemyDecisionRepository,
    SqlAlchemyEvidenceDraftRepository,
    SqlAlchemyEvidenceRepository,
    SqlAlchemyIdempotencyKeyRepository,
    SqlAlchemyMappingSuggestionRepository,
    SqlAlchemyWorkItemRepository,
)
from evidence_ledger.config import get_database_uri
from evidence_ledger.domain.errors import ConcurrentModification, DuplicateRecord, LedgerError
from evidence_ledger.domain.ports.unit_of_work import LedgerRepositories, RepositoryCollection

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


def _ledger_error(exc: StaleDataError | IntegrityError) -> LedgerError:
    if isinstance(exc, StaleDataError):
        return ConcurrentModification("Record was modified by another writer; reload and retry")
    return DuplicateRecord(f"Conflicting write: {exc.orig}")


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call evidence_ledger.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        # autoflush inside the block can surface write failures before commit
        if isinstance(exc_value, (StaleDataError, IntegrityError)):
            raise _ledger_error(exc_value) from exc_value
        return False

    def commit(self) -> None:
        with self._translate_errors():
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def flush(self) -> None:
        with self._translate_errors():
            self.session.flush()

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except (StaleDataError, IntegrityError) as exc:
            self.session.rollback()
            raise _ledger_error(exc) from exc

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyLedgerUnitOfWork(BaseSqlAlchemyUnitOfWork[LedgerRepositories]):
    """Unit of work managing one SQLAlchemy session across all ledger repositories."""

    def _build_repositories(self, session: Session) -> LedgerRepositories:
        return LedgerRepositories(
            evidence=SqlAlchemyEvidenceRepository(session),
            drafts=SqlAlchemyEvidenceDraftRepository(session),
            work_items=SqlAlchemyWorkItemRepository(session),
            decisions=SqlAlchemyDecisionRepository(session),
            audit_events=SqlAlchemyAuditEventRepository(session),
            entities=SqlAlchemyCanonicalEntityRepository(session),
            mapping_suggestions=SqlAlchemyMappingSuggestionRepository(session),
            idempotency_keys=SqlAlchemyIdempotencyKeyRepository(session),
        )


if TYPE_CHECKING:
    from evidence_ledger.domain.ports.unit_of_work import LedgerUnitOfWork

    _uow_check: LedgerUnitOfWork = SqlAlchemyLedgerUnitOfWork()
