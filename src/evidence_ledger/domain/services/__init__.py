"""Application services for the evidence ledger.

Actions return ``ActionResult`` values; queries return domain objects or small
read models. All of them take a ``unit_of_work_factory`` and an explicit tenant.
"""

from __future__ import annotations

from evidence_ledger.domain.services.audit import append_audit_event, list_audit_events
from evidence_ledger.domain.services.decisions import (
    approve_work_item,
    decision_history,
    list_decisions,
    reject_work_item,
    resolve_conflict,
)
from evidence_ledger.domain.services.evidence import (
    HashVerification,
    export_package,
    get_evidence,
    get_evidence_by_display_id,
    list_evidence,
    quarantine_evidence,
    recent_activity,
    verify_hashes,
)
from evidence_ledger.domain.services.mapping import (
    decide_mapping_suggestion,
    list_mapping_suggestions,
)
from evidence_ledger.domain.services.reporting import (
    EntityView,
    Kpis,
    ReadinessReport,
    get_entity,
    get_kpis,
    list_entities,
    readiness_impacts,
)
from evidence_ledger.domain.services.sealing import (
    DraftRequest,
    create_draft,
    quarantine_draft,
    seal_draft,
    validate_draft,
)
from evidence_ledger.domain.services.work_items import (
    WorkItemRequest,
    WorkItemView,
    create_follow_up,
    create_work_item,
    get_work_item,
    list_work_items,
    update_work_item_status,
)

__all__ = [
    "DraftRequest",
    "EntityView",
    "HashVerification",
    "Kpis",
    "ReadinessReport",
    "WorkItemRequest",
    "WorkItemView",
    "append_audit_event",
    "approve_work_item",
    "create_draft",
    "create_follow_up",
    "create_work_item",
    "decide_mapping_suggestion",
    "decision_history",
    "export_package",
    "get_entity",
    "get_evidence",
    "get_evidence_by_display_id",
    "get_kpis",
    "list_audit_events",
    "list_decisions",
    "list_entities",
    "list_evidence",
    "list_mapping_suggestions",
    "quarantine_draft",
    "quarantine_evidence",
    "readiness_impacts",
    "recent_activity",
    "reject_work_item",
    "resolve_conflict",
    "seal_draft",
    "update_work_item_status",
    "validate_draft",
]
