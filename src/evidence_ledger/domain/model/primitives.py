"""Domain primitives: scalar aliases + small value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .enums import EntityType

type TenantId = str
type Actor = str
type ReasonCode = str
type JsonScalar = str | int | float | bool | None
type JsonObject = dict[str, Any]


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Typed reference to a canonical entity (supplier, SKU or BOM)."""

    entity_type: EntityType
    entity_id: str

    def __str__(self) -> str:
        return f"{self.entity_type}:{self.entity_id}"

    def as_dict(self) -> dict[str, str]:
        return {"entity_type": str(self.entity_type), "entity_id": self.entity_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityRef:
        return cls(entity_type=EntityType(data["entity_type"]), entity_id=str(data["entity_id"]))


@dataclass(frozen=True, slots=True)
class ConflictSource:
    """One competing value for a conflicted canonical field."""

    evidence_id: str
    value: JsonScalar
    source_system: str
    trust_rank: int
    display_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "evidence_id": self.evidence_id,
            "display_id": self.display_id,
            "value": self.value,
            "source_system": self.source_system,
            "trust_rank": self.trust_rank,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConflictSource:
        return cls(
            evidence_id=str(data["evidence_id"]),
            display_id=data.get("display_id"),
            value=data.get("value"),
            source_system=str(data.get("source_system", "")),
            trust_rank=int(data.get("trust_rank", 0)),
        )
