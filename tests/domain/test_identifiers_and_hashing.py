from __future__ import annotations

import re

from evidence_ledger.domain.hashing import canonical_json, content_hash, verify_content_hash
from evidence_ledger.domain.identifiers import IdGenerator, RandomIdGenerator, SeededIdGenerator

UUID_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}$")


def test_seeded_generator_is_reproducible() -> None:
    first = SeededIdGenerator(7)
    second = SeededIdGenerator(7)

    assert [first.uuid() for _ in range(3)] == [second.uuid() for _ in range(3)]


def test_seeded_generator_differs_between_seeds() -> None:
    assert SeededIdGenerator(1).uuid() != SeededIdGenerator(2).uuid()


def test_seeded_uuid_is_uuid_shaped() -> None:
    assert UUID_SHAPE.match(SeededIdGenerator().uuid())


def test_seeded_sequences_are_per_prefix() -> None:
    ids = SeededIdGenerator()

    assert ids.prefixed("WI") == "WI-00001"
    assert ids.prefixed("DEC") == "DEC-00001"
    assert ids.prefixed("WI") == "WI-00002"
    assert ids.display_id("EV", 2026) == "EV-2026-0001"
    assert ids.display_id("EV", 2027) == "EV-2027-0001"
    assert ids.display_id("EV", 2026) == "EV-2026-0002"


def test_random_generator_satisfies_protocol() -> None:
    ids = RandomIdGenerator()

    assert isinstance(ids, IdGenerator)
    assert ids.prefixed("WI").startswith("WI-")
    assert ids.prefixed("WI") != ids.prefixed("WI")
    assert ids.display_id("EV", 2026).startswith("EV-2026-")


def test_canonical_json_ignores_key_order() -> None:
    assert canonical_json({"b": 1, "a": [1, 2]}) == canonical_json({"a": [1, 2], "b": 1})
    assert canonical_json({"a": "ü"}) == '{"a":"ü"}'.encode()


def test_content_hash_is_hex_sha256() -> None:
    digest = content_hash({"legalName": "Acme Corp"})

    assert re.fullmatch(r"[0-9a-f]{64}", digest)
    assert digest == content_hash({"legalName": "Acme Corp"})
    assert digest != content_hash({"legalName": "Acme Corp."})


def test_verify_content_hash() -> None:
    payload = {"weight": 2.5, "weightUnit": "kg"}
    digest = content_hash(payload)

    assert verify_content_hash(payload, digest)
    assert verify_content_hash(payload, digest.upper())
    assert not verify_content_hash({"weight": 2.8, "weightUnit": "kg"}, digest)
    assert not verify_content_hash(payload, None)
    assert not verify_content_hash(payload, "")
