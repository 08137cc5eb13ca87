"""Work items: units of required human action."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.model.enums import Priority, WorkItemStatus, WorkItemType
from evidence_ledger.domain.model.primitives import EntityRef

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.model.enums import DatasetType, EntityType
    from evidence_ledger.domain.model.primitives import ConflictSource, JsonObject

UNASSIGNED = "Unassigned"
DEFAULT_SLA_HOURS = 48


@dataclass(eq=False, kw_only=True)
class WorkItem:
    tenant_id: str
    id: str
    item_type: WorkItemType
    status: WorkItemStatus = WorkItemStatus.OPEN
    priority: Priority = Priority.MEDIUM
    owner: str = UNASSIGNED
    created_at: datetime
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None
    sla_hours: int = DEFAULT_SLA_HOURS
    linked_evidence_id: str | None = None
    # stored flat; ``linked_entity`` assembles the reference
    linked_entity_type: EntityType | None = None
    linked_entity_id: str | None = None
    dataset_type: DatasetType | None = None
    parent_id: str | None = None
    reason: str | None = None
    conflict_field: str | None = None
    conflict_sources: list[ConflictSource] = field(default_factory=list["ConflictSource"])
    details: JsonObject = field(default_factory=dict[str, Any])
    assignment_reason: str | None = None
    routing_rule: str | None = None
    version: int = 1

    @property
    def linked_entity(self) -> EntityRef | None:
        if self.linked_entity_type is None or self.linked_entity_id is None:
            return None
        return EntityRef(self.linked_entity_type, self.linked_entity_id)

    @linked_entity.setter
    def linked_entity(self, ref: EntityRef | None) -> None:
        self.linked_entity_type = ref.entity_type if ref is not None else None
        self.linked_entity_id = ref.entity_id if ref is not None else None

    @property
    def is_conflict(self) -> bool:
        return self.item_type == WorkItemType.CONFLICT

    @property
    def is_terminal(self) -> bool:
        return WorkItemStatus(self.status).is_terminal

    @property
    def financial_risk_exposure(self) -> float:
        raw = self.details.get("financial_risk_exposure", 0)
        try:
            return float(raw or 0)
        except (TypeError, ValueError):
            return 0.0

    def has_valid_conflict(self) -> bool:
        """CONFLICT items need a field and at least two competing sources."""
        return bool(self.conflict_field) and len(self.conflict_sources) >= 2  # noqa: PLR2004
