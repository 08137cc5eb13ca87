from __future__ import annotations

import pytest

from evidence_ledger.domain.model import MappingStatus, Readiness
from evidence_ledger.domain.readiness import calculate_readiness, readiness_counts
from tests.helpers.ledger import make_entity


@pytest.mark.parametrize(
    ("conflicts", "quarantined", "mapping", "missing", "expected"),
    [
        (0, 0, MappingStatus.MAPPED, [], Readiness.READY),
        (0, 0, MappingStatus.MAPPED, ["vatNumber"], Readiness.READY_WITH_GAPS),
        (0, 0, MappingStatus.PENDING, [], Readiness.PENDING_MATCH),
        (0, 0, MappingStatus.UNMAPPED, ["vatNumber"], Readiness.PENDING_MATCH),
        (1, 0, MappingStatus.MAPPED, [], Readiness.NOT_READY),
        (0, 1, MappingStatus.MAPPED, [], Readiness.NOT_READY),
        (2, 1, MappingStatus.UNMAPPED, ["vatNumber"], Readiness.NOT_READY),
    ],
)
def test_calculate_readiness(
    conflicts: int,
    quarantined: int,
    mapping: MappingStatus,
    missing: list[str],
    expected: Readiness,
) -> None:
    entity = make_entity(mapping_status=mapping, conflict_count=conflicts)
    entity.quarantined_evidence_count = quarantined
    entity.missing_required_fields = missing

    assert calculate_readiness(entity) == expected


def test_readiness_counts_include_every_bucket() -> None:
    ready = make_entity("SUP-1")
    blocked = make_entity("SUP-2", conflict_count=1)

    counts = readiness_counts([ready, blocked])

    assert counts == {
        Readiness.READY: 1,
        Readiness.READY_WITH_GAPS: 0,
        Readiness.PENDING_MATCH: 0,
        Readiness.NOT_READY: 1,
    }
