"""Work-item routing: who owns an item and how urgent it is.

Routing is a static table keyed by ``"{work item type}:{dataset type}"``.
CONFLICT items are escalated afterwards: quarantined evidence forces CRITICAL,
and a wide trust-rank spread between competing sources bumps the priority one
step (LOW is never bumped).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from evidence_ledger.domain.conflicts import trust_spread
from evidence_ledger.domain.model.enums import (
    DatasetType,
    EntityType,
    Priority,
    SealedStatus,
    WorkItemType,
)
from evidence_ledger.domain.model.work_item import UNASSIGNED

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evidence_ledger.domain.model.primitives import ConflictSource

TRUST_VARIANCE_THRESHOLD = 50
DEFAULT_ROUTING_RULE = "DEFAULT"


@dataclass(frozen=True, slots=True)
class RoutingRule:
    owner: str
    priority: Priority
    reason: str


@dataclass(frozen=True, slots=True)
class Assignment:
    owner: str
    priority: Priority
    assignment_reason: str
    routing_rule: str


ROUTING_TABLE: dict[str, RoutingRule] = {
    "CONFLICT:SUPPLIER_MASTER": RoutingRule(
        "supplier-data-team", Priority.HIGH, "Supplier master data conflicts need data stewardship"
    ),
    "CONFLICT:BOM": RoutingRule(
        "product-engineering", Priority.MEDIUM, "BOM conflicts are resolved by product engineering"
    ),
    "CONFLICT:ERP_SYNC": RoutingRule(
        "erp-integration-team", Priority.HIGH, "ERP sync conflicts go to the integration team"
    ),
    "REVIEW:SUPPLIER_MASTER": RoutingRule(
        "supplier-data-team", Priority.MEDIUM, "Supplier master review"
    ),
    "REVIEW:INVOICE": RoutingRule("finance-ops", Priority.MEDIUM, "Invoice evidence review"),
    "REVIEW:BOM": RoutingRule("product-engineering", Priority.LOW, "BOM evidence review"),
    "MAPPING:SUPPLIER_MASTER": RoutingRule(
        "master-data-team", Priority.MEDIUM, "Supplier entity mapping"
    ),
    "MAPPING:BOM": RoutingRule("master-data-team", Priority.MEDIUM, "Product entity mapping"),
    "EXTRACTION:INVOICE": RoutingRule(
        "ai-agent@extraction", Priority.LOW, "Automated invoice field extraction"
    ),
    "BLOCKED:SUPPLIER_MASTER": RoutingRule(
        "compliance-lead", Priority.CRITICAL, "Blocked supplier evidence escalates to compliance"
    ),
    "BLOCKED:BOM": RoutingRule(
        "compliance-lead", Priority.CRITICAL, "Blocked product evidence escalates to compliance"
    ),
}

# TODO: SKU entities are routed as BOM datasets; confirm with product whether SKU
# evidence needs its own dataset type before changing this.
_ENTITY_DATASET: dict[EntityType, DatasetType] = {
    EntityType.SUPPLIER: DatasetType.SUPPLIER_MASTER,
    EntityType.SKU: DatasetType.BOM,
}


class Routable(Protocol):
    @property
    def item_type(self) -> WorkItemType: ...

    @property
    def dataset_type(self) -> DatasetType | None: ...

    @property
    def linked_entity_type(self) -> EntityType | None: ...

    @property
    def conflict_sources(self) -> Sequence[ConflictSource]: ...


def infer_dataset_type(item: Routable) -> DatasetType | None:
    if item.dataset_type is not None:
        return DatasetType(item.dataset_type)
    if item.linked_entity_type is None:
        return None
    return _ENTITY_DATASET.get(EntityType(item.linked_entity_type))


def assign_work_item(item: Routable, evidence_status: SealedStatus | None = None) -> Assignment:
    """Route ``item`` to an owner and priority. Pure and repeatable."""

    dataset_type = infer_dataset_type(item)
    key = f"{item.item_type}:{dataset_type}" if dataset_type is not None else None
    rule = ROUTING_TABLE.get(key) if key is not None else None

    if rule is None:
        owner, priority = UNASSIGNED, Priority.MEDIUM
        reason = "No routing rule matched; default assignment"
        routing_rule = DEFAULT_ROUTING_RULE
    else:
        owner, priority, reason = rule.owner, rule.priority, rule.reason
        routing_rule = key or DEFAULT_ROUTING_RULE

    if item.item_type == WorkItemType.CONFLICT:
        if evidence_status == SealedStatus.QUARANTINED:
            priority = Priority.CRITICAL
            reason = f"{reason}; escalated: linked evidence is quarantined"
        else:
            spread = trust_spread(item.conflict_sources)
            if spread > TRUST_VARIANCE_THRESHOLD:
                escalated = priority.escalated()
                if escalated is not priority:
                    reason = f"{reason}; escalated: trust rank variance {spread}"
                priority = escalated

    return Assignment(
        owner=owner,
        priority=priority,
        assignment_reason=reason,
        routing_rule=routing_rule,
    )
