"""Derived readiness of canonical entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from evidence_ledger.domain.model.enums import MappingStatus, Readiness

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class ReadinessInputs(Protocol):
    @property
    def conflict_count(self) -> int: ...

    @property
    def quarantined_evidence_count(self) -> int: ...

    @property
    def mapping_status(self) -> MappingStatus: ...

    @property
    def missing_required_fields(self) -> Sequence[str]: ...


def calculate_readiness(entity: ReadinessInputs) -> Readiness:
    """First matching rule wins; quarantine and conflicts always block."""

    if entity.quarantined_evidence_count > 0 or entity.conflict_count > 0:
        return Readiness.NOT_READY
    if entity.mapping_status != MappingStatus.MAPPED:
        return Readiness.PENDING_MATCH
    if entity.missing_required_fields:
        return Readiness.READY_WITH_GAPS
    return Readiness.READY


def readiness_counts(entities: Iterable[ReadinessInputs]) -> dict[Readiness, int]:
    counts = dict.fromkeys(Readiness, 0)
    for entity in entities:
        counts[calculate_readiness(entity)] += 1
    return counts
