"""Identifier generation.

``SeededIdGenerator`` reproduces the same sequence for a fixed seed and backs
the demo fixtures. ``RandomIdGenerator`` is what services use by default.
Neither is meant to be unguessable.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import uuid4

# glibc rand() parameters
_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_LCG_MODULUS = 2**31


@runtime_checkable
class IdGenerator(Protocol):
    def uuid(self) -> str: ...

    def prefixed(self, prefix: str) -> str: ...

    def display_id(self, prefix: str, year: int) -> str: ...


class SeededIdGenerator:
    """Linear congruential generator producing UUID-shaped and prefixed ids."""

    def __init__(self, seed: int = 42) -> None:
        self._state = seed % _LCG_MODULUS
        self._sequences: defaultdict[str, int] = defaultdict(int)

    def next_int(self) -> int:
        self._state = (_LCG_MULTIPLIER * self._state + _LCG_INCREMENT) % _LCG_MODULUS
        return self._state

    def _hex(self, length: int) -> str:
        digits = ""
        while len(digits) < length:
            digits += f"{self.next_int():08x}"
        return digits[:length]

    def uuid(self) -> str:
        raw = self._hex(32)
        return f"{raw[:8]}-{raw[8:12]}-4{raw[13:16]}-{raw[16:20]}-{raw[20:]}"

    def _next_sequence(self, key: str) -> int:
        self._sequences[key] += 1
        return self._sequences[key]

    def prefixed(self, prefix: str) -> str:
        return f"{prefix}-{self._next_sequence(prefix):05d}"

    def display_id(self, prefix: str, year: int) -> str:
        return f"{prefix}-{year}-{self._next_sequence(f'{prefix}:{year}'):04d}"


class RandomIdGenerator:
    def uuid(self) -> str:
        return str(uuid4())

    def prefixed(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex[:12].upper()}"

    def display_id(self, prefix: str, year: int) -> str:
        return f"{prefix}-{year}-{uuid4().hex[:8].upper()}"


if TYPE_CHECKING:
    _seeded: IdGenerator = SeededIdGenerator()
    _random: IdGenerator = RandomIdGenerator()
