"""Translate snapshot payloads to ledger domain objects and back."""

from __future__ import annotations

from logging import getLogger
from typing import Any, cast

from evidence_ledger.domain.model import (
    AuditEvent,
    CanonicalEntity,
    ConflictSource,
    Decision,
    EntityRef,
    EvidenceDraft,
    EvidenceRecord,
    IdempotencyKey,
    MappingSuggestion,
    ReconciliationStatus,
    WorkItem,
)

from .schema import (
    AuditEventPayload,
    ConflictSourcePayload,
    DecisionPayload,
    EntityPayload,
    EntityRefPayload,
    EvidenceDraftPayload,
    EvidencePayload,
    IdempotencyKeyPayload,
    MappingSuggestionPayload,
    WorkItemPayload,
)

log = getLogger(__name__)

# details keys lifted onto typed work item fields
_REASON_KEY = "reason"
_FIELD_KEY = "field"
_SOURCES_KEY = "sources"
_EXPOSURE_KEY = "financialRiskExposure"
_EXPOSURE_FIELD = "financial_risk_exposure"


def _ref(payload: EntityRefPayload | None) -> EntityRef | None:
    if payload is None:
        return None
    return EntityRef(payload.entity_type, payload.entity_id)


def _ref_payload(ref: EntityRef | None) -> EntityRefPayload | None:
    if ref is None:
        return None
    return EntityRefPayload(entity_type=ref.entity_type, entity_id=ref.entity_id)


# ---------------------------------------------------------------------------
# payload -> domain
# ---------------------------------------------------------------------------


def evidence_from_payload(payload: EvidencePayload, *, tenant_id: str) -> EvidenceRecord:
    refs = [EntityRef(ref.entity_type, ref.entity_id) for ref in payload.linked_entities]
    reconciliation = payload.reconciliation_status or (
        ReconciliationStatus.BOUND if refs else ReconciliationStatus.UNBOUND
    )
    return EvidenceRecord(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        display_id=payload.display_id,
        dataset_type=payload.dataset_type,
        ingestion_method=payload.ingestion_method,
        source_system=payload.source_system,
        ingested_by=payload.ingested_by,
        ingested_at=payload.ingested_at,
        retention_end=payload.retention_end,
        quarantine_reason=payload.quarantine_reason,
        payload_hash=payload.payload_hash,
        metadata_hash=payload.metadata_hash,
        canonical_payload=dict(payload.canonical_payload),
        source_metadata=dict(payload.source_metadata),
        linked_entities=refs,
        reconciliation_status=reconciliation,
        blocking_issues=list(payload.blocking_issues),
        sealed_at=payload.sealed_at,
        draft_id=payload.draft_id,
        sealed_status=payload.sealed_status,
    )


def draft_from_payload(payload: EvidenceDraftPayload, *, tenant_id: str) -> EvidenceDraft:
    return EvidenceDraft(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        display_id=payload.display_id,
        dataset_type=payload.dataset_type,
        ingestion_method=payload.ingestion_method,
        source_system=payload.source_system,
        created_by=payload.created_by,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        status=payload.status,
        payload=dict(payload.payload),
        source_metadata=dict(payload.source_metadata),
        linked_entity=_ref(payload.linked_entity),
        validation_errors=list(payload.validation_errors),
        sealed_record_id=payload.sealed_record_id,
    )


def _conflict_sources(raw: object) -> list[ConflictSource]:
    if not isinstance(raw, list):
        return []
    sources: list[ConflictSource] = []
    for entry in cast(list[object], raw):
        source = ConflictSourcePayload.model_validate(entry)
        sources.append(
            ConflictSource(
                evidence_id=source.evidence_id,
                display_id=source.display_id,
                value=source.value,
                source_system=source.source_system,
                trust_rank=source.trust_rank,
            )
        )
    return sources


def work_item_from_payload(payload: WorkItemPayload, *, tenant_id: str) -> WorkItem:
    details: dict[str, Any] = dict(payload.details)
    reason = details.pop(_REASON_KEY, None)
    conflict_field = details.pop(_FIELD_KEY, None)
    conflict_sources = _conflict_sources(details.pop(_SOURCES_KEY, None))
    if _EXPOSURE_KEY in details:
        details[_EXPOSURE_FIELD] = details.pop(_EXPOSURE_KEY)

    item = WorkItem(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        item_type=payload.item_type,
        status=payload.status,
        priority=payload.priority,
        owner=payload.owner,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        created_by=payload.created_by,
        updated_by=payload.updated_by,
        sla_hours=payload.sla_hours,
        linked_evidence_id=payload.linked_evidence_id,
        dataset_type=payload.dataset_type,
        parent_id=payload.parent_id,
        reason=str(reason) if reason is not None else None,
        conflict_field=str(conflict_field) if conflict_field is not None else None,
        conflict_sources=conflict_sources,
        details=details,
        assignment_reason=payload.assignment_reason,
        routing_rule=payload.routing_rule,
    )
    item.linked_entity = _ref(payload.linked_entity_ref)
    if item.is_conflict and not item.has_valid_conflict():
        log.debug("Work item %s imported as a conflict without competing sources", item.id)
    return item


def entity_from_payload(payload: EntityPayload, *, tenant_id: str) -> CanonicalEntity:
    return CanonicalEntity(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.entity_id,
        entity_type=payload.entity_type,
        name=payload.name or payload.entity_id,
        canonical_fields=dict(payload.canonical_fields),
        mapping_status=payload.mapping_status,
        conflict_count=payload.conflict_count,
        evidence_count=payload.evidence_count,
        quarantined_evidence_count=payload.quarantined_evidence_count,
        missing_required_fields=list(payload.missing_required_fields),
        attributes=dict(payload.attributes),
    )


def suggestion_from_payload(
    payload: MappingSuggestionPayload, *, tenant_id: str
) -> MappingSuggestion:
    return MappingSuggestion(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        entity_type=payload.entity_ref.entity_type,
        entity_id=payload.entity_ref.entity_id,
        target_entity_type=payload.proposed_target_ref.entity_type,
        target_entity_id=payload.proposed_target_ref.entity_id,
        confidence=payload.confidence,
        suggestion_type=payload.suggestion_type,
        model_reason=payload.model_reason,
        status=payload.status,
        created_at=payload.created_at,
        decided_at=payload.decided_at,
        decided_by=payload.decided_by,
    )


def decision_from_payload(payload: DecisionPayload, *, tenant_id: str) -> Decision:
    ref = _ref(payload.entity_ref)
    return Decision(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        decision_type=payload.decision_type,
        reason_code=payload.reason_code,
        actor=payload.actor,
        created_at=payload.created_at,
        work_item_id=payload.work_item_id,
        entity_type=ref.entity_type if ref else None,
        entity_id=ref.entity_id if ref else None,
        evidence_id=payload.evidence_id,
        comment=payload.comment,
        supersedes_decision_id=payload.supersedes_decision_id,
        context=dict(payload.context),
    )


def audit_event_from_payload(payload: AuditEventPayload, *, tenant_id: str) -> AuditEvent:
    return AuditEvent(
        tenant_id=payload.tenant_id or tenant_id,
        id=payload.id,
        event_type=payload.event_type,
        object_type=payload.object_type,
        object_id=payload.object_id,
        actor=payload.actor,
        timestamp=payload.timestamp,
        details=dict(payload.details),
    )


def idempotency_key_from_payload(
    payload: IdempotencyKeyPayload, *, tenant_id: str
) -> IdempotencyKey:
    return IdempotencyKey(
        tenant_id=payload.tenant_id or tenant_id,
        key=payload.key,
        work_item_id=payload.work_item_id,
        created_at=payload.created_at,
    )


# ---------------------------------------------------------------------------
# domain -> payload
# ---------------------------------------------------------------------------


def evidence_to_payload(record: EvidenceRecord) -> EvidencePayload:
    return EvidencePayload(
        id=record.id,
        tenant_id=record.tenant_id,
        display_id=record.display_id,
        dataset_type=record.dataset_type,
        ingestion_method=record.ingestion_method,
        source_system=record.source_system,
        ingested_by=record.ingested_by,
        ingested_at=record.ingested_at,
        retention_end=record.retention_end,
        sealed_status=record.sealed_status,
        quarantine_reason=record.quarantine_reason,
        payload_hash=record.payload_hash,
        metadata_hash=record.metadata_hash,
        canonical_payload=dict(record.canonical_payload),
        source_metadata=dict(record.source_metadata),
        linked_entities=[
            EntityRefPayload(entity_type=ref.entity_type, entity_id=ref.entity_id)
            for ref in record.linked_entities
        ],
        reconciliation_status=record.reconciliation_status,
        blocking_issues=list(record.blocking_issues),
        sealed_at=record.sealed_at,
        draft_id=record.draft_id,
    )


def draft_to_payload(draft: EvidenceDraft) -> EvidenceDraftPayload:
    return EvidenceDraftPayload(
        id=draft.id,
        tenant_id=draft.tenant_id,
        display_id=draft.display_id,
        dataset_type=draft.dataset_type,
        ingestion_method=draft.ingestion_method,
        source_system=draft.source_system,
        status=draft.status,
        created_by=draft.created_by,
        created_at=draft.created_at,
        updated_at=draft.updated_at,
        payload=dict(draft.payload),
        source_metadata=dict(draft.source_metadata),
        linked_entity=_ref_payload(draft.linked_entity),
        validation_errors=list(draft.validation_errors),
        sealed_record_id=draft.sealed_record_id,
    )


def _work_item_details(item: WorkItem) -> dict[str, Any]:
    details: dict[str, Any] = dict(item.details)
    if _EXPOSURE_FIELD in details:
        details[_EXPOSURE_KEY] = details.pop(_EXPOSURE_FIELD)
    if item.reason is not None:
        details[_REASON_KEY] = item.reason
    if item.conflict_field is not None:
        details[_FIELD_KEY] = item.conflict_field
    if item.conflict_sources:
        details[_SOURCES_KEY] = [
            ConflictSourcePayload(
                evidence_id=source.evidence_id,
                display_id=source.display_id,
                value=source.value,
                source_system=source.source_system,
                trust_rank=source.trust_rank,
            ).to_document()
            for source in item.conflict_sources
        ]
    return details


def work_item_to_payload(item: WorkItem) -> WorkItemPayload:
    return WorkItemPayload(
        id=item.id,
        tenant_id=item.tenant_id,
        item_type=item.item_type,
        status=item.status,
        priority=item.priority,
        owner=item.owner,
        created_at=item.created_at,
        updated_at=item.updated_at,
        created_by=item.created_by,
        updated_by=item.updated_by,
        sla_hours=item.sla_hours,
        linked_evidence_id=item.linked_evidence_id,
        linked_entity_ref=_ref_payload(item.linked_entity),
        dataset_type=item.dataset_type,
        parent_id=item.parent_id,
        assignment_reason=item.assignment_reason,
        routing_rule=item.routing_rule,
        details=_work_item_details(item),
    )


def entity_to_payload(entity: CanonicalEntity) -> EntityPayload:
    return EntityPayload(
        entity_id=entity.id,
        tenant_id=entity.tenant_id,
        entity_type=entity.entity_type,
        name=entity.name,
        canonical_fields=dict(entity.canonical_fields),
        mapping_status=entity.mapping_status,
        conflict_count=entity.conflict_count,
        evidence_count=entity.evidence_count,
        quarantined_evidence_count=entity.quarantined_evidence_count,
        missing_required_fields=list(entity.missing_required_fields),
        attributes=dict(entity.attributes),
    )


def suggestion_to_payload(suggestion: MappingSuggestion) -> MappingSuggestionPayload:
    return MappingSuggestionPayload(
        id=suggestion.id,
        tenant_id=suggestion.tenant_id,
        entity_ref=EntityRefPayload(
            entity_type=suggestion.entity_type, entity_id=suggestion.entity_id
        ),
        proposed_target_ref=EntityRefPayload(
            entity_type=suggestion.target_entity_type, entity_id=suggestion.target_entity_id
        ),
        confidence=suggestion.confidence,
        suggestion_type=suggestion.suggestion_type,
        model_reason=suggestion.model_reason,
        status=suggestion.status,
        created_at=suggestion.created_at,
        decided_at=suggestion.decided_at,
        decided_by=suggestion.decided_by,
    )


def decision_to_payload(decision: Decision) -> DecisionPayload:
    return DecisionPayload(
        id=decision.id,
        tenant_id=decision.tenant_id,
        decision_type=decision.decision_type,
        reason_code=decision.reason_code,
        actor=decision.actor,
        created_at=decision.created_at,
        work_item_id=decision.work_item_id,
        entity_ref=_ref_payload(decision.entity_ref),
        evidence_id=decision.evidence_id,
        comment=decision.comment,
        supersedes_decision_id=decision.supersedes_decision_id,
        context=dict(decision.context),
    )


def audit_event_to_payload(event: AuditEvent) -> AuditEventPayload:
    return AuditEventPayload(
        id=event.id,
        tenant_id=event.tenant_id,
        event_type=event.event_type,
        object_type=event.object_type,
        object_id=event.object_id,
        actor=event.actor,
        timestamp=event.timestamp,
        details=dict(event.details),
    )


def idempotency_key_to_payload(key: IdempotencyKey) -> IdempotencyKeyPayload:
    return IdempotencyKeyPayload(
        key=key.key,
        tenant_id=key.tenant_id,
        work_item_id=key.work_item_id,
        created_at=key.created_at,
    )

