"""Human decisions on AI-proposed entity mappings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from evidence_ledger.domain.dates import utcnow
from evidence_ledger.domain.errors import InvalidTransition, RecordNotFound
from evidence_ledger.domain.model import (
    DecisionType,
    SuggestionStatus,
    WorkItemStatus,
    WorkItemType,
)
from evidence_ledger.domain.results import ActionResult
from evidence_ledger.domain.services._common import (
    append_decision,
    guarded,
    id_generator,
    require_text,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.identifiers import IdGenerator
    from evidence_ledger.domain.model import MappingSuggestion, WorkItem
    from evidence_ledger.domain.ports import LedgerUnitOfWork, LedgerUnitOfWorkFactory

log = logging.getLogger(__name__)


def list_mapping_suggestions(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    entity_id: str | None = None,
    status: SuggestionStatus | None = None,
) -> list[MappingSuggestion]:
    """Suggestions touching ``entity_id`` (as source or target), most confident first."""
    with unit_of_work_factory() as uow:
        suggestions = uow.repositories.mapping_suggestions.list(tenant_id, entity_id=entity_id)
    if status is None:
        return list(suggestions)
    return [suggestion for suggestion in suggestions if suggestion.status == status]


def _open_mapping_items(uow: LedgerUnitOfWork, tenant_id: str, entity_id: str) -> Sequence[WorkItem]:
    items = uow.repositories.work_items.list(
        tenant_id, item_type=WorkItemType.MAPPING, entity_id=entity_id
    )
    return [item for item in items if not item.is_terminal]


@guarded("decide_mapping_suggestion")
def decide_mapping_suggestion(
    *,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    tenant_id: str,
    suggestion_id: str,
    approved: bool,
    reason_code: str | None,
    actor: str,
    comment: str | None = None,
    ids: IdGenerator | None = None,
    clock: Clock = utcnow,
) -> ActionResult:
    """Approve (map the entity, close its open MAPPING items) or reject a suggestion."""

    reason = require_text(reason_code, "Reason code is required")
    if not approved:
        require_text(comment, "Comment is required when rejecting a mapping suggestion")

    with unit_of_work_factory() as uow:
        suggestion = uow.repositories.mapping_suggestions.get(tenant_id, suggestion_id)
        if suggestion is None:
            raise RecordNotFound("Suggestion", suggestion_id)
        if not suggestion.is_pending:
            raise InvalidTransition(f"Suggestion {suggestion_id} is already {suggestion.status}")

        now = clock()
        open_items = _open_mapping_items(uow, tenant_id, suggestion.entity_id)
        decision = append_decision(
            uow,
            tenant_id=tenant_id,
            decision_type=DecisionType.MAP_APPROVE if approved else DecisionType.MAP_REJECT,
            reason_code=reason,
            actor=actor,
            now=now,
            ids=id_generator(ids),
            work_item=open_items[0] if open_items else None,
            entity=suggestion.entity_ref,
            comment=comment,
            context={
                "suggestion_id": suggestion.id,
                "target": suggestion.target_ref.as_dict(),
                "confidence": suggestion.confidence,
                "suggestion_type": str(suggestion.suggestion_type),
            },
        )

        suggestion.status = SuggestionStatus.APPROVED if approved else SuggestionStatus.REJECTED
        suggestion.decided_at = now
        suggestion.decided_by = actor

        closed: list[str] = []
        if approved:
            entity = uow.repositories.entities.get(tenant_id, suggestion.entity_id)
            if entity is None:
                entity = uow.repositories.entities.get(tenant_id, suggestion.target_entity_id)
            if entity is not None:
                entity.mark_mapped()
                if entity.id != suggestion.target_entity_id:
                    entity.attributes = {
                        **entity.attributes,
                        "mapped_to": suggestion.target_ref.as_dict(),
                    }
            for item in open_items:
                item.status = WorkItemStatus.CLOSED
                item.updated_at = now
                item.updated_by = actor
                closed.append(item.id)
        uow.commit()

    log.info(
        "Mapping suggestion %s %s by %s; closed work items: %s",
        suggestion_id,
        "approved" if approved else "rejected",
        actor,
        ", ".join(closed) or "none",
    )
    return ActionResult.ok(decision=decision, value=suggestion)
