"""Canonical business entities, mapping suggestions and idempotency keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.model.enums import MappingStatus, SuggestionStatus
from evidence_ledger.domain.model.primitives import EntityRef

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.model.enums import EntityType, SuggestionType
    from evidence_ledger.domain.model.primitives import JsonObject, JsonScalar


@dataclass(eq=False, kw_only=True)
class CanonicalEntity:
    """Supplier, SKU or BOM that evidence maps onto.

    Readiness is derived from the counters below and never stored.
    """

    tenant_id: str
    id: str
    entity_type: EntityType
    name: str
    canonical_fields: JsonObject = field(default_factory=dict[str, Any])
    mapping_status: MappingStatus = MappingStatus.UNMAPPED
    conflict_count: int = 0
    evidence_count: int = 0
    quarantined_evidence_count: int = 0
    missing_required_fields: list[str] = field(default_factory=list[str])
    attributes: JsonObject = field(default_factory=dict[str, Any])
    version: int = 1

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.entity_type, self.id)

    def set_canonical_field(
        self, name: str, value: JsonScalar, *, settle_conflict: bool = True
    ) -> None:
        """Overwrite one canonical field and, by default, settle one open conflict."""
        # reassign so the JSON column registers the change
        self.canonical_fields = {**self.canonical_fields, name: value}
        self.missing_required_fields = [f for f in self.missing_required_fields if f != name]
        if settle_conflict:
            self.conflict_count = max(0, self.conflict_count - 1)

    def mark_mapped(self) -> None:
        self.mapping_status = MappingStatus.MAPPED


@dataclass(eq=False, kw_only=True)
class MappingSuggestion:
    tenant_id: str
    id: str
    entity_type: EntityType
    entity_id: str
    target_entity_type: EntityType
    target_entity_id: str
    confidence: int
    suggestion_type: SuggestionType
    model_reason: str = ""
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: datetime
    decided_at: datetime | None = None
    decided_by: str | None = None

    @property
    def entity_ref(self) -> EntityRef:
        return EntityRef(self.entity_type, self.entity_id)

    @property
    def target_ref(self) -> EntityRef:
        return EntityRef(self.target_entity_type, self.target_entity_id)

    @property
    def is_pending(self) -> bool:
        return self.status == SuggestionStatus.PENDING


@dataclass(eq=False, kw_only=True)
class IdempotencyKey:
    """Marks an action that must happen at most once per tenant."""

    tenant_id: str
    key: str
    work_item_id: str
    created_at: datetime
