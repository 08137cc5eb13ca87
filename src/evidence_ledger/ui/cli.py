# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from evidence_ledger.adapters.snapshot.translator import (
    decision_to_payload,
    evidence_to_payload,
    work_item_to_payload,
)
from evidence_ledger.app import (
    export_ledger_snapshot,
    import_ledger_snapshot,
    ledger_unit_of_work_factory,
    resolve_config,
    seed_demo,
)
from evidence_ledger.config import ConfigurationError, configure_logging
from evidence_ledger.domain import services
from evidence_ledger.domain.dates import safe_date
from evidence_ledger.domain.model import (
    AuditEventType,
    AuditObjectType,
    DatasetType,
    EntityType,
    IngestionMethod,
    Priority,
    ResolutionStrategy,
    SealedStatus,
    SuggestionStatus,
    WorkItemStatus,
    WorkItemType,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from evidence_ledger.config import LedgerConfig
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory
    from evidence_ledger.domain.results import ActionResult

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Context:
    config: LedgerConfig
    uow: LedgerUnitOfWorkFactory

    @property
    def scope(self) -> dict[str, Any]:
        return {"unit_of_work_factory": self.uow, "tenant_id": self.config.tenant_id}


class ActionFailedError(RuntimeError):
    """A ledger action was refused; the message carries its error code."""


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:  # noqa: PLR0915
    parser = argparse.ArgumentParser(description="Evidence and work item decision ledger")
    parser.add_argument(
        "--tenant",
        type=str,
        help="Tenant id to operate on (defaults to EVIDENCE_LEDGER_TENANT_ID)",
    )
    parser.add_argument(
        "--actor",
        type=str,
        help="Acting user recorded on decisions and audit events",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed", help="Load the demo tenant fixture")

    evidence = subparsers.add_parser("evidence", help="Evidence vault commands")
    evidence_sub = evidence.add_subparsers(dest="evidence_command", required=True)
    evidence_list = evidence_sub.add_parser("list", help="List evidence records, newest first")
    evidence_list.add_argument("--status", type=SealedStatus, choices=list(SealedStatus))
    evidence_list.add_argument("--dataset-type", type=DatasetType, choices=list(DatasetType))
    evidence_list.add_argument(
        "--ingestion-method", type=IngestionMethod, choices=list(IngestionMethod)
    )
    evidence_list.add_argument("--source-system", type=str)
    evidence_list.add_argument("--search", type=str, help="Display id substring")
    evidence_show = evidence_sub.add_parser("show", help="Show one evidence record")
    evidence_show.add_argument("display_id", type=str)
    evidence_verify = evidence_sub.add_parser("verify", help="Recompute and check hashes")
    evidence_verify.add_argument("display_id", type=str)
    evidence_export = evidence_sub.add_parser("export", help="Export an auditor package")
    evidence_export.add_argument("display_id", type=str)
    evidence_export.add_argument(
        "--output",
        type=Path,
        help="File to write the JSON package to (printed when omitted)",
    )

    drafts = subparsers.add_parser("drafts", help="Evidence draft sealing workflow")
    drafts_sub = drafts.add_subparsers(dest="drafts_command", required=True)
    drafts_sub.add_parser("list", help="List drafts")
    drafts_validate = drafts_sub.add_parser("validate", help="Run required-field checks")
    drafts_validate.add_argument("draft_id", type=str)
    drafts_seal = drafts_sub.add_parser("seal", help="Seal a READY_TO_SEAL draft")
    drafts_seal.add_argument("draft_id", type=str)
    drafts_quarantine = drafts_sub.add_parser("quarantine", help="Quarantine a draft")
    drafts_quarantine.add_argument("draft_id", type=str)
    drafts_quarantine.add_argument("--reason", type=str, required=True)

    work_items = subparsers.add_parser("work-items", help="Work item queue commands")
    wi_sub = work_items.add_subparsers(dest="work_items_command", required=True)
    wi_list = wi_sub.add_parser("list", help="List work items, most urgent first")
    wi_list.add_argument("--status", type=WorkItemStatus, choices=list(WorkItemStatus))
    wi_list.add_argument("--type", type=WorkItemType, choices=list(WorkItemType))
    wi_list.add_argument("--owner", type=str)
    wi_list.add_argument("--entity-id", type=str)
    wi_show = wi_sub.add_parser("show", help="Show a work item and its decision history")
    wi_show.add_argument("work_item_id", type=str)
    wi_resolve = wi_sub.add_parser("resolve", help="Resolve a CONFLICT work item")
    wi_resolve.add_argument("work_item_id", type=str)
    wi_resolve.add_argument(
        "--strategy",
        type=ResolutionStrategy,
        choices=list(ResolutionStrategy),
        required=True,
    )
    wi_resolve.add_argument("--reason-code", type=str, required=True)
    wi_resolve.add_argument("--comment", type=str)
    wi_resolve.add_argument(
        "--value",
        type=str,
        help="Override value for MANUAL_OVERRIDE (JSON scalar or plain text)",
    )
    wi_approve = wi_sub.add_parser("approve", help="Approve a work item")
    wi_approve.add_argument("work_item_id", type=str)
    wi_approve.add_argument("--reason-code", type=str, required=True)
    wi_approve.add_argument("--comment", type=str)
    wi_reject = wi_sub.add_parser("reject", help="Reject a work item")
    wi_reject.add_argument("work_item_id", type=str)
    wi_reject.add_argument("--reason-code", type=str, required=True)
    wi_reject.add_argument("--comment", type=str, required=True)
    wi_follow = wi_sub.add_parser("follow-up", help="Create a follow-up item (idempotent)")
    wi_follow.add_argument("parent_id", type=str)
    wi_follow.add_argument(
        "--type",
        type=WorkItemType,
        choices=list(WorkItemType),
        default=WorkItemType.FOLLOW_UP,
    )
    wi_follow.add_argument("--reason", type=str)
    wi_follow.add_argument("--owner", type=str)
    wi_follow.add_argument("--priority", type=Priority, choices=list(Priority))
    wi_follow.add_argument("--sla-hours", type=int)

    decisions = subparsers.add_parser("decisions", help="Decision log commands")
    decisions_sub = decisions.add_subparsers(dest="decisions_command", required=True)
    decisions_list = decisions_sub.add_parser("list", help="List decisions, newest first")
    decisions_list.add_argument("--work-item", type=str)
    decisions_list.add_argument("--entity-id", type=str)

    mappings = subparsers.add_parser("mappings", help="Mapping suggestion commands")
    mappings_sub = mappings.add_subparsers(dest="mappings_command", required=True)
    mappings_list = mappings_sub.add_parser("list", help="List mapping suggestions")
    mappings_list.add_argument("--entity-id", type=str)
    mappings_list.add_argument("--status", type=SuggestionStatus, choices=list(SuggestionStatus))
    mappings_approve = mappings_sub.add_parser("approve", help="Approve a mapping suggestion")
    mappings_approve.add_argument("suggestion_id", type=str)
    mappings_approve.add_argument("--reason-code", type=str, required=True)
    mappings_approve.add_argument("--comment", type=str)
    mappings_reject = mappings_sub.add_parser("reject", help="Reject a mapping suggestion")
    mappings_reject.add_argument("suggestion_id", type=str)
    mappings_reject.add_argument("--reason-code", type=str, required=True)
    mappings_reject.add_argument("--comment", type=str, required=True)

    entities = subparsers.add_parser("entities", help="Canonical entity commands")
    entities_sub = entities.add_subparsers(dest="entities_command", required=True)
    entities_list = entities_sub.add_parser("list", help="List entities with readiness")
    entities_list.add_argument("--type", type=EntityType, choices=list(EntityType))
    entities_list.add_argument("--search", type=str)

    subparsers.add_parser("readiness", help="Readiness impact summary")
    subparsers.add_parser("kpis", help="Control tower KPIs")

    audit = subparsers.add_parser("audit", help="Audit log commands")
    audit_sub = audit.add_subparsers(dest="audit_command", required=True)
    audit_list = audit_sub.add_parser("list", help="List audit events, newest first")
    audit_list.add_argument("--object-type", type=AuditObjectType, choices=list(AuditObjectType))
    audit_list.add_argument("--object-id", type=str)
    audit_list.add_argument("--event-type", type=AuditEventType, choices=list(AuditEventType))
    audit_list.add_argument("--limit", type=int)

    snapshot = subparsers.add_parser("snapshot", help="Whole-ledger JSON snapshots")
    snapshot_sub = snapshot.add_subparsers(dest="snapshot_command", required=True)
    snapshot_import = snapshot_sub.add_parser("import", help="Import a snapshot document")
    snapshot_import.add_argument("path", type=Path)
    snapshot_export = snapshot_sub.add_parser("export", help="Export the tenant as a snapshot")
    snapshot_export.add_argument("path", type=Path)

    return parser.parse_args(list(argv))


def _parse_override_value(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(value, (dict, list)):
        raise ValueError(f"Override value must be a scalar: {raw}")
    return value


def _validate(args: argparse.Namespace) -> None:
    if getattr(args, "limit", None) is not None and args.limit <= 0:
        raise ValueError("Limit must be positive")
    if getattr(args, "sla_hours", None) is not None and args.sla_hours <= 0:
        raise ValueError("SLA hours must be positive")
    if getattr(args, "work_items_command", None) == "resolve":
        args.value = _parse_override_value(args.value)


def _dump(document: object) -> None:
    print(json.dumps(document, indent=2, default=str))


def _require_success(action: str, result: ActionResult) -> ActionResult:
    if not result:
        raise ActionFailedError(f"{action} failed [{result.error_code}]: {result.error}")
    return result


# ---------------------------------------------------------------------------
# command handlers
# ---------------------------------------------------------------------------


def _seed(_args: argparse.Namespace, ctx: _Context) -> None:
    summary = seed_demo(unit_of_work_factory=ctx.uow)
    print(f"Seeded: {summary.total_imported} added, {summary.total_skipped} already present")


def _evidence(args: argparse.Namespace, ctx: _Context) -> None:
    match args.evidence_command:
        case "list":
            records = services.list_evidence(
                **ctx.scope,
                status=args.status,
                dataset_type=args.dataset_type,
                ingestion_method=args.ingestion_method,
                source_system=args.source_system,
                search=args.search,
            )
            for record in records:
                print(
                    f"{record.display_id}\t{record.sealed_status}\t{record.dataset_type}\t"
                    f"{record.source_system}\t{safe_date(record.ingested_at, 'iso')}"
                )
        case "show":
            record = services.get_evidence_by_display_id(**ctx.scope, display_id=args.display_id)
            if record is None:
                raise ActionFailedError(f"Evidence not found: {args.display_id}")
            _dump(evidence_to_payload(record).to_document())
        case "verify":
            result = _require_success(
                "verify",
                services.verify_hashes(
                    **ctx.scope, display_id=args.display_id, actor=ctx.config.actor
                ),
            )
            verification = result.value
            print(
                f"{args.display_id}: payload {'OK' if verification.payload_ok else 'MISMATCH'}, "
                f"metadata {'OK' if verification.metadata_ok else 'MISMATCH'}"
            )
            if not verification.ok:
                raise ActionFailedError(f"Hash verification failed for {args.display_id}")
        case "export":
            result = _require_success(
                "export",
                services.export_package(
                    **ctx.scope,
                    display_id=args.display_id,
                    actor=ctx.config.actor,
                    destination=args.output,
                ),
            )
            if args.output is None:
                _dump(result.value)
            else:
                print(f"Wrote {args.output}")
        case _:
            raise ValueError(f"Unsupported evidence command: {args.evidence_command}")


def _drafts(args: argparse.Namespace, ctx: _Context) -> None:
    actor = ctx.config.actor
    match args.drafts_command:
        case "list":
            with ctx.uow() as uow:
                drafts = uow.repositories.drafts.list(ctx.config.tenant_id)
            for draft in drafts:
                print(f"{draft.id}\t{draft.display_id}\t{draft.status}\t{draft.dataset_type}")
            return
        case "validate":
            result = services.validate_draft(**ctx.scope, draft_id=args.draft_id, actor=actor)
        case "seal":
            result = services.seal_draft(
                **ctx.scope,
                draft_id=args.draft_id,
                actor=actor,
                retention_years=ctx.config.retention_years,
            )
        case "quarantine":
            result = services.quarantine_draft(
                **ctx.scope,
                draft_id=args.draft_id,
                reason=args.reason,
                actor=actor,
                retention_years=ctx.config.retention_years,
            )
        case _:
            raise ValueError(f"Unsupported drafts command: {args.drafts_command}")
    _require_success(args.drafts_command, result)
    value = result.value
    status = getattr(value, "status", None) or getattr(value, "sealed_status", None)
    label = getattr(value, "display_id", args.draft_id)
    print(f"{label}: {status}")
    errors = getattr(value, "validation_errors", None)
    for error in errors or ():
        print(f"  - {error}")


def _work_items(args: argparse.Namespace, ctx: _Context) -> None:  # noqa: C901
    actor = ctx.config.actor
    match args.work_items_command:
        case "list":
            views = services.list_work_items(
                **ctx.scope,
                status=args.status,
                item_type=args.type,
                owner=args.owner,
                entity_id=args.entity_id,
            )
            for view in views:
                item = view.item
                sla = "-" if view.sla_remaining is None else f"{view.sla_remaining}h"
                print(
                    f"{item.id}\t{item.item_type}\t{item.status}\t{item.priority}\t"
                    f"{item.owner}\tSLA {sla}"
                )
            return
        case "show":
            view = services.get_work_item(**ctx.scope, work_item_id=args.work_item_id)
            if view is None:
                raise ActionFailedError(f"Work item not found: {args.work_item_id}")
            history = services.decision_history(**ctx.scope, work_item_id=args.work_item_id)
            document = work_item_to_payload(view.item).to_document()
            document["slaRemaining"] = view.sla_remaining
            document["decisions"] = [decision_to_payload(d).to_document() for d in history]
            _dump(document)
            return
        case "resolve":
            result = services.resolve_conflict(
                **ctx.scope,
                work_item_id=args.work_item_id,
                strategy=args.strategy,
                reason_code=args.reason_code,
                comment=args.comment,
                override_value=args.value,
                actor=actor,
            )
        case "approve":
            result = services.approve_work_item(
                **ctx.scope,
                work_item_id=args.work_item_id,
                reason_code=args.reason_code,
                comment=args.comment,
                actor=actor,
            )
        case "reject":
            result = services.reject_work_item(
                **ctx.scope,
                work_item_id=args.work_item_id,
                reason_code=args.reason_code,
                comment=args.comment,
                actor=actor,
            )
        case "follow-up":
            result = services.create_follow_up(
                **ctx.scope,
                parent_id=args.parent_id,
                item_type=args.type,
                reason=args.reason,
                owner=args.owner,
                priority=args.priority,
                sla_hours=args.sla_hours or ctx.config.default_sla_hours,
                actor=actor,
            )
        case _:
            raise ValueError(f"Unsupported work-items command: {args.work_items_command}")
    _require_success(args.work_items_command, result)
    if result.work_item is not None:
        item = result.work_item
        suffix = "" if result.created or args.work_items_command != "follow-up" else " (existing)"
        print(f"{item.id}: {item.status}{suffix}")
    if result.decision is not None:
        print(f"Logged {result.decision.id} ({result.decision.decision_type})")


def _decisions(args: argparse.Namespace, ctx: _Context) -> None:
    for decision in services.list_decisions(
        **ctx.scope, work_item_id=args.work_item, entity_id=args.entity_id
    ):
        print(
            f"{decision.id}\t{decision.decision_type}\t{decision.reason_code}\t"
            f"{decision.actor}\t{safe_date(decision.created_at, 'iso')}"
        )


def _mappings(args: argparse.Namespace, ctx: _Context) -> None:
    if args.mappings_command == "list":
        for suggestion in services.list_mapping_suggestions(
            **ctx.scope, entity_id=args.entity_id, status=args.status
        ):
            print(
                f"{suggestion.id}\t{suggestion.entity_ref} -> {suggestion.target_ref}\t"
                f"{suggestion.confidence}%\t{suggestion.status}"
            )
        return
    result = _require_success(
        args.mappings_command,
        services.decide_mapping_suggestion(
            **ctx.scope,
            suggestion_id=args.suggestion_id,
            approved=args.mappings_command == "approve",
            reason_code=args.reason_code,
            comment=args.comment,
            actor=ctx.config.actor,
        ),
    )
    print(f"{args.suggestion_id}: {result.value.status}")


def _entities(args: argparse.Namespace, ctx: _Context) -> None:
    for view in services.list_entities(**ctx.scope, entity_type=args.type, search=args.search):
        entity = view.entity
        print(
            f"{entity.id}\t{entity.entity_type}\t{entity.name}\t"
            f"{entity.mapping_status}\t{view.readiness}"
        )


def _readiness(_args: argparse.Namespace, ctx: _Context) -> None:
    report = services.readiness_impacts(**ctx.scope)
    for entity_type, counts in report.by_type.items():
        rendered = ", ".join(f"{readiness}={count}" for readiness, count in counts.items())
        print(f"{entity_type}: {rendered}")
    print(f"Total entities: {report.total_entities}, blocked: {report.blocked}")


def _kpis(_args: argparse.Namespace, ctx: _Context) -> None:
    kpis = services.get_kpis(**ctx.scope)
    print(f"Sealed evidence: {kpis.sealed_evidence}")
    print(f"Open reviews: {kpis.open_reviews}")
    print(f"Open mappings: {kpis.open_mappings}")
    print(f"Financial risk exposure: {kpis.financial_risk_exposure:,.2f}")
    print(f"At-risk items: {kpis.at_risk_items}")


def _audit(args: argparse.Namespace, ctx: _Context) -> None:
    for event in services.list_audit_events(
        **ctx.scope,
        object_type=args.object_type,
        object_id=args.object_id,
        event_type=args.event_type,
        limit=args.limit,
    ):
        print(
            f"{event.id}\t{safe_date(event.timestamp, 'iso')}\t{event.event_type}\t"
            f"{event.object_type}:{event.object_id}\t{event.actor}"
        )


def _snapshot(args: argparse.Namespace, ctx: _Context) -> None:
    if args.snapshot_command == "import":
        summary = import_ledger_snapshot(
            args.path, tenant_id=ctx.config.tenant_id, unit_of_work_factory=ctx.uow
        )
        print(f"Imported: {summary.total_imported} added, {summary.total_skipped} skipped")
    else:
        written = export_ledger_snapshot(
            args.path, tenant_id=ctx.config.tenant_id, unit_of_work_factory=ctx.uow
        )
        print(f"Wrote {written}")


_HANDLERS: dict[str, Callable[[argparse.Namespace, _Context], None]] = {
    "seed": _seed,
    "evidence": _evidence,
    "drafts": _drafts,
    "work-items": _work_items,
    "decisions": _decisions,
    "mappings": _mappings,
    "entities": _entities,
    "readiness": _readiness,
    "kpis": _kpis,
    "audit": _audit,
    "snapshot": _snapshot,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
        config = resolve_config(tenant_id=parsed_args.tenant, actor=parsed_args.actor)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        ctx = _Context(config=config, uow=ledger_unit_of_work_factory())
        _HANDLERS[parsed_args.command](parsed_args, ctx)
    except ActionFailedError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error running %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
