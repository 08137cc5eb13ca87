"""Append-only decision log entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.model.primitives import EntityRef

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.model.enums import DecisionType, EntityType
    from evidence_ledger.domain.model.primitives import JsonObject


@dataclass(eq=False, kw_only=True)
class Decision:
    """A human or system resolution of a work item or mapping suggestion.

    Decisions are never updated or deleted. A new decision on the same work item
    points back at its predecessor through ``supersedes_decision_id``.
    """

    tenant_id: str
    id: str
    decision_type: DecisionType
    reason_code: str
    actor: str
    created_at: datetime
    work_item_id: str | None = None
    entity_type: EntityType | None = None
    entity_id: str | None = None
    evidence_id: str | None = None
    comment: str | None = None
    supersedes_decision_id: str | None = None
    context: JsonObject = field(default_factory=dict[str, Any])

    @property
    def entity_ref(self) -> EntityRef | None:
        if self.entity_type is None or self.entity_id is None:
            return None
        return EntityRef(self.entity_type, self.entity_id)
