"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from evidence_ledger.domain.ports.persistence import (
        AuditEventRepository,
        CanonicalEntityRepository,
        DecisionRepository,
        EvidenceDraftRepository,
        EvidenceRepository,
        IdempotencyKeyRepository,
        MappingSuggestionRepository,
        WorkItemRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    Nothing is persisted unless ``commit`` is called; leaving the ``with`` block
    through an exception rolls back.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def flush(self) -> None:
        """Push pending writes so constraint violations surface early."""
        ...


@dataclass(slots=True)
class LedgerRepositories(RepositoryCollection):
    """Repositories backing the evidence ledger."""

    evidence: EvidenceRepository
    drafts: EvidenceDraftRepository
    work_items: WorkItemRepository
    decisions: DecisionRepository
    audit_events: AuditEventRepository
    entities: CanonicalEntityRepository
    mapping_suggestions: MappingSuggestionRepository
    idempotency_keys: IdempotencyKeyRepository


type LedgerUnitOfWork = UnitOfWork[LedgerRepositories]
type LedgerUnitOfWorkFactory = Callable[[], LedgerUnitOfWork]
