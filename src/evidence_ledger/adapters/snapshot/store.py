"""Read and write whole-ledger JSON snapshots."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from evidence_ledger.config import DEFAULT_TENANT_ID
from evidence_ledger.domain.dates import utcnow

from .schema import Snapshot
from .translator import (
    audit_event_from_payload,
    audit_event_to_payload,
    decision_from_payload,
    decision_to_payload,
    draft_from_payload,
    draft_to_payload,
    entity_from_payload,
    entity_to_payload,
    evidence_from_payload,
    evidence_to_payload,
    idempotency_key_from_payload,
    idempotency_key_to_payload,
    suggestion_from_payload,
    suggestion_to_payload,
    work_item_from_payload,
    work_item_to_payload,
)

if TYPE_CHECKING:
    from pathlib import Path

    from evidence_ledger.domain.dates import Clock
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory


log = getLogger(__name__)


@dataclass(slots=True)
class ImportSummary:
    """Rows added and rows skipped because they already existed, per collection."""

    imported: dict[str, int] = field(default_factory=dict[str, int])
    skipped: dict[str, int] = field(default_factory=dict[str, int])

    def count(self, collection: str, *, added: bool) -> None:
        target = self.imported if added else self.skipped
        target[collection] = target.get(collection, 0) + 1

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


def load_snapshot(path: Path) -> Snapshot:
    """Parse and validate a snapshot document; pydantic errors propagate."""
    return Snapshot.model_validate_json(path.read_text(encoding="utf-8"))


def import_snapshot(
    path: Path | Snapshot,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    *,
    tenant_id: str | None = None,
) -> ImportSummary:
    """Load a snapshot into the ledger inside one unit of work.

    Rows whose key already exists are left untouched, so importing the same
    document twice is harmless. Rows without a tenant id land in ``tenant_id``,
    falling back to the document's tenant and then the default tenant.
    """

    snapshot = path if isinstance(path, Snapshot) else load_snapshot(path)
    default_tenant = tenant_id or snapshot.tenant_id or DEFAULT_TENANT_ID
    summary = ImportSummary()

    with unit_of_work_factory() as uow:
        repos = uow.repositories
        for payload in snapshot.evidence:
            record = evidence_from_payload(payload, tenant_id=default_tenant)
            added = repos.evidence.get(record.tenant_id, record.id) is None
            if added:
                repos.evidence.add(record)
            summary.count("evidence", added=added)
        for payload in snapshot.evidence_drafts:
            draft = draft_from_payload(payload, tenant_id=default_tenant)
            added = repos.drafts.get(draft.tenant_id, draft.id) is None
            if added:
                repos.drafts.add(draft)
            summary.count("evidence_drafts", added=added)
        for payload in snapshot.entities:
            entity = entity_from_payload(payload, tenant_id=default_tenant)
            added = repos.entities.get(entity.tenant_id, entity.id) is None
            if added:
                repos.entities.add(entity)
            summary.count("entities", added=added)
        for payload in snapshot.work_items:
            item = work_item_from_payload(payload, tenant_id=default_tenant)
            added = repos.work_items.get(item.tenant_id, item.id) is None
            if added:
                repos.work_items.add(item)
            summary.count("work_items", added=added)
        for payload in snapshot.mapping_suggestions:
            suggestion = suggestion_from_payload(payload, tenant_id=default_tenant)
            added = repos.mapping_suggestions.get(suggestion.tenant_id, suggestion.id) is None
            if added:
                repos.mapping_suggestions.add(suggestion)
            summary.count("mapping_suggestions", added=added)
        for payload in snapshot.decisions:
            decision = decision_from_payload(payload, tenant_id=default_tenant)
            added = repos.decisions.get(decision.tenant_id, decision.id) is None
            if added:
                repos.decisions.add(decision)
            summary.count("decisions", added=added)
        for payload in snapshot.audit_events:
            event = audit_event_from_payload(payload, tenant_id=default_tenant)
            added = repos.audit_events.get(event.tenant_id, event.id) is None
            if added:
                repos.audit_events.add(event)
            summary.count("audit_events", added=added)
        for payload in snapshot.idempotency_keys:
            key = idempotency_key_from_payload(payload, tenant_id=default_tenant)
            added = repos.idempotency_keys.get(key.tenant_id, key.key) is None
            if added:
                repos.idempotency_keys.add(key)
            summary.count("idempotency_keys", added=added)
        uow.commit()

    log.info(
        "Imported snapshot: %d rows added, %d already present",
        summary.total_imported,
        summary.total_skipped,
    )
    return summary


def export_snapshot(
    tenant_id: str,
    unit_of_work_factory: LedgerUnitOfWorkFactory,
    *,
    clock: Clock = utcnow,
) -> Snapshot:
    """Every row of one tenant as a snapshot; no other tenant's rows are read."""
    with unit_of_work_factory() as uow:
        repos = uow.repositories
        snapshot = Snapshot(
            tenant_id=tenant_id,
            exported_at=clock(),
            evidence=[evidence_to_payload(r) for r in repos.evidence.list(tenant_id)],
            evidence_drafts=[draft_to_payload(d) for d in repos.drafts.list(tenant_id)],
            work_items=[work_item_to_payload(w) for w in repos.work_items.list(tenant_id)],
            entities=[entity_to_payload(e) for e in repos.entities.list(tenant_id)],
            mapping_suggestions=[
                suggestion_to_payload(s) for s in repos.mapping_suggestions.list(tenant_id)
            ],
            decisions=[decision_to_payload(d) for d in repos.decisions.list(tenant_id)],
            audit_events=[
                audit_event_to_payload(e) for e in repos.audit_events.list(tenant_id)
            ],
            idempotency_keys=[
                idempotency_key_to_payload(k) for k in repos.idempotency_keys.list(tenant_id)
            ],
        )
    log.debug("Exported snapshot for tenant %s", tenant_id)
    return snapshot


def write_snapshot(snapshot: Snapshot, path: Path) -> Path:
    document: dict[str, Any] = snapshot.to_document()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, sort_keys=False), encoding="utf-8")
    return path
