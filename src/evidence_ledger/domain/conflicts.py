"""Source trust ranks and conflict-resolution value selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from evidence_ledger.domain.errors import ValidationFailed
from evidence_ledger.domain.model.enums import ResolutionStrategy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evidence_ledger.domain.model.primitives import ConflictSource, JsonScalar

# Higher is more authoritative.
SOURCE_TRUST_RANKS: dict[str, int] = {
    "SAP S/4HANA": 100,
    "ERP_EXPORT": 80,
    "Supplier Portal": 60,
    "Manual Upload": 40,
    "Excel Import": 20,
}

MIN_CONFLICT_SOURCES = 2


def trust_rank_for(source_system: str | None) -> int:
    if source_system is None:
        return 0
    return SOURCE_TRUST_RANKS.get(source_system, 0)


def trust_spread(sources: Sequence[ConflictSource]) -> int:
    """Max minus min trust rank; 0 for fewer than two sources."""
    if len(sources) < MIN_CONFLICT_SOURCES:
        return 0
    ranks = [source.trust_rank for source in sources]
    return max(ranks) - min(ranks)


def select_resolution(
    sources: Sequence[ConflictSource],
    strategy: ResolutionStrategy,
    *,
    override_value: JsonScalar = None,
) -> tuple[JsonScalar, ConflictSource | None]:
    """Pick the winning value and, unless overridden, the source it came from."""

    if strategy == ResolutionStrategy.MANUAL_OVERRIDE:
        if override_value is None or (isinstance(override_value, str) and not override_value.strip()):
            raise ValidationFailed("Override value is required for manual override")
        return override_value, None

    if len(sources) < MIN_CONFLICT_SOURCES:
        raise ValidationFailed("Conflict has fewer than two competing sources")

    match strategy:
        case ResolutionStrategy.PREFER_SOURCE_A:
            chosen = sources[0]
        case ResolutionStrategy.PREFER_SOURCE_B:
            chosen = sources[1]
        case ResolutionStrategy.PREFER_TRUSTED_SYSTEM:
            # ties go to the earlier source
            chosen = max(sources, key=lambda source: source.trust_rank)
        case _:
            raise ValidationFailed(f"Unknown resolution strategy: {strategy}")
    return chosen.value, chosen
