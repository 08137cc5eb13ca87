"""Content hashing over canonical JSON."""

from __future__ import annotations

import hashlib
import hmac
import json


def canonical_json(value: object) -> bytes:
    """Stable byte serialisation: sorted keys, compact separators, UTF-8."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    ).encode("utf-8")


def content_hash(value: object) -> str:
    return hashlib.sha256(canonical_json(value)).hexdigest()


def verify_content_hash(value: object, expected: str | None) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(content_hash(value), expected.lower())
