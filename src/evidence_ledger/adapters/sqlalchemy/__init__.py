"""SQLAlchemy adapter package for the evidence ledger."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAuditEventRepository,
    SqlAlchemyCanonicalEntityRepository,
    SqlAlchemyDecisionRepository,
    SqlAlchemyEvidenceDraftRepository,
    SqlAlchemyEvidenceRepository,
    SqlAlchemyIdempotencyKeyRepository,
    SqlAlchemyMappingSuggestionRepository,
    SqlAlchemyWorkItemRepository,
)
from .unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAuditEventRepository",
    "SqlAlchemyCanonicalEntityRepository",
    "SqlAlchemyDecisionRepository",
    "SqlAlchemyEvidenceDraftRepository",
    "SqlAlchemyEvidenceRepository",
    "SqlAlchemyIdempotencyKeyRepository",
    "SqlAlchemyLedgerUnitOfWork",
    "SqlAlchemyMappingSuggestionRepository",
    "SqlAlchemyWorkItemRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
