"""Domain ports (interfaces) used by application services."""

from __future__ import annotations

from evidence_ledger.domain.ports.persistence import (
    AuditEventRepository,
    CanonicalEntityRepository,
    DecisionRepository,
    EvidenceDraftRepository,
    EvidenceRepository,
    IdempotencyKeyRepository,
    MappingSuggestionRepository,
    Repository,
    TenantRepository,
    WorkItemRepository,
)
from evidence_ledger.domain.ports.unit_of_work import (
    LedgerRepositories,
    LedgerUnitOfWork,
    LedgerUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditEventRepository",
    "CanonicalEntityRepository",
    "DecisionRepository",
    "EvidenceDraftRepository",
    "EvidenceRepository",
    "IdempotencyKeyRepository",
    "LedgerRepositories",
    "LedgerUnitOfWork",
    "LedgerUnitOfWorkFactory",
    "MappingSuggestionRepository",
    "Repository",
    "RepositoryCollection",
    "TenantRepository",
    "UnitOfWork",
    "WorkItemRepository",
]
