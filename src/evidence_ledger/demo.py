"""Deterministic demo data for the EmissionCore demo tenant.

The fixture is expressed as a snapshot document and loaded through the snapshot
adapter, so seeding twice leaves the store unchanged. Evidence hashes are
computed here so hash verification passes on every seeded record.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from evidence_ledger.adapters.snapshot import Snapshot, import_snapshot
from evidence_ledger.config import DEFAULT_TENANT_ID, SYSTEM_ACTOR
from evidence_ledger.domain.conflicts import SOURCE_TRUST_RANKS
from evidence_ledger.domain.dates import calculate_retention_end, parse_datetime
from evidence_ledger.domain.hashing import content_hash
from evidence_ledger.domain.model import DatasetType, IngestionMethod, metadata_document

if TYPE_CHECKING:
    from evidence_ledger.adapters.snapshot import ImportSummary
    from evidence_ledger.domain.ports import LedgerUnitOfWorkFactory


log = getLogger(__name__)

DEMO_TENANT_ID = DEFAULT_TENANT_ID
OTHER_TENANT_ID = "Other Tenant Inc"
OWNER_ACTOR = "info@emissioncore.io"


def _evidence(**document: Any) -> dict[str, Any]:
    """Fill hashes and retention the way sealing computes them."""
    document.setdefault("tenantId", DEMO_TENANT_ID)
    document.setdefault("sourceMetadata", {})
    metadata = metadata_document(
        dataset_type=DatasetType(document["datasetType"]),
        ingestion_method=IngestionMethod(document["ingestionMethod"]),
        source_system=document["sourceSystem"],
        ingested_by=document["ingestedBy"],
        source_metadata=document["sourceMetadata"],
    )
    document["payloadHash"] = content_hash(document["canonicalPayload"])
    document["metadataHash"] = content_hash(metadata)
    document["retentionEnd"] = calculate_retention_end(parse_datetime(document["ingestedAt"]))
    return document


def _source(evidence_id: str, display_id: str, value: object, source_system: str) -> dict[str, Any]:
    return {
        "evidenceId": evidence_id,
        "displayId": display_id,
        "value": value,
        "sourceSystem": source_system,
        "trustRank": SOURCE_TRUST_RANKS[source_system],
    }


def _supplier_country_sources() -> list[dict[str, Any]]:
    return [
        _source("rec_ev_001", "EV-2024-001", "DE", "Manual Upload"),
        _source("rec_ev_002", "EV-2024-002", "FR", "SAP S/4HANA"),
    ]


EVIDENCE: list[dict[str, Any]] = [
    _evidence(
        id="rec_ev_001",
        displayId="EV-2024-001",
        datasetType="SUPPLIER_MASTER",
        ingestionMethod="FILE_UPLOAD",
        sourceSystem="Manual Upload",
        ingestedBy=OWNER_ACTOR,
        ingestedAt="2026-01-15T10:30:00Z",
        sealedAt="2026-01-15T10:31:00Z",
        sealedStatus="SEALED",
        linkedEntities=[{"entityType": "SUPPLIER", "entityId": "SUP-123"}],
        canonicalPayload={
            "legalName": "Acme Manufacturing GmbH",
            "countryCode": "DE",
            "vatNumber": "DE123456789",
        },
    ),
    _evidence(
        id="rec_ev_002",
        displayId="EV-2024-002",
        datasetType="ERP_SYNC",
        ingestionMethod="API_PUSH",
        sourceSystem="SAP S/4HANA",
        ingestedBy=SYSTEM_ACTOR,
        ingestedAt="2026-01-20T14:15:00Z",
        sealedStatus="INGESTED",
        linkedEntities=[{"entityType": "SUPPLIER", "entityId": "SUP-123"}],
        canonicalPayload={
            "legalName": "Acme Manufacturing",
            "countryCode": "FR",
            "supplierCode": "SAP-10023",
        },
    ),
    _evidence(
        id="rec_ev_003",
        displayId="EV-2024-003",
        datasetType="INVOICE",
        ingestionMethod="FILE_UPLOAD",
        sourceSystem="Manual Upload",
        ingestedBy="procurement@emissioncore.io",
        ingestedAt="2026-01-22T09:45:00Z",
        sealedStatus="QUARANTINED",
        quarantineReason="MISSING_REQUIRED_FIELDS",
        linkedEntities=[{"entityType": "SUPPLIER", "entityId": "SUP-999"}],
        canonicalPayload={
            "invoiceNumber": "INV-2024-0045",
            "amount": 15000,
            "currency": "EUR",
            "missing_field": None,
        },
    ),
    _evidence(
        id="rec_ev_004",
        displayId="EV-2024-004",
        datasetType="BOM",
        ingestionMethod="FILE_UPLOAD",
        sourceSystem="Manual Upload",
        ingestedBy=OWNER_ACTOR,
        ingestedAt="2026-01-25T16:20:00Z",
        sealedAt="2026-01-25T16:21:00Z",
        sealedStatus="SEALED",
        linkedEntities=[{"entityType": "SKU", "entityId": "SKU-456"}],
        canonicalPayload={"bomName": "Widget Assembly A", "weight": 2.5, "weightUnit": "kg"},
    ),
    # belongs to another tenant and must never show up for the demo tenant
    _evidence(
        id="rec_005_uuid_e5f6g7h8i9j0",
        tenantId=OTHER_TENANT_ID,
        displayId="EV-2025-002",
        datasetType="SUPPLIER_MASTER",
        ingestionMethod="MANUAL_ENTRY",
        sourceSystem="Other System",
        ingestedBy="other@othertenant.com",
        ingestedAt="2025-01-15T08:00:00Z",
        sealedAt="2025-01-15T08:00:00Z",
        sealedStatus="SEALED",
        linkedEntities=[{"entityType": "SUPPLIER", "entityId": "supplier_other_001"}],
        canonicalPayload={
            "supplier_name": "Other Supplier",
            "country_code": "US",
            "primary_contact_email": "other@supplier.com",
        },
    ),
]

DRAFTS: list[dict[str, Any]] = [
    {
        "id": "draft_001",
        "displayId": "DR-2026-001",
        "datasetType": "SUPPLIER_MASTER",
        "ingestionMethod": "FILE_UPLOAD",
        "sourceSystem": "Manual Upload",
        "status": "READY_TO_SEAL",
        "createdBy": OWNER_ACTOR,
        "createdAt": "2026-02-05T10:00:00Z",
        "payload": {"legalName": "New Supplier Ltd", "countryCode": "FR", "vatNumber": "FR987654321"},
    },
    {
        "id": "draft_002",
        "displayId": "DR-2026-002",
        "datasetType": "BOM",
        "ingestionMethod": "API_PUSH",
        "sourceSystem": "ERP_EXPORT",
        "status": "VALIDATION_FAILED",
        "createdBy": SYSTEM_ACTOR,
        "createdAt": "2026-02-04T14:30:00Z",
        "payload": {"bomName": "Incomplete BOM", "weight": None},
        "validationErrors": ["Missing required field: weight", "Missing required field: weightUnit"],
    },
    {
        "id": "draft_003",
        "displayId": "DR-2026-003",
        "datasetType": "INVOICE",
        "ingestionMethod": "FILE_UPLOAD",
        "sourceSystem": "Supplier Portal",
        "status": "SUBMITTED_FOR_REVIEW",
        "createdBy": "procurement@emissioncore.io",
        "createdAt": "2026-02-03T09:15:00Z",
        "payload": {
            "invoiceNumber": "INV-2026-0012",
            "amount": 25000,
            "currency": "EUR",
            "invoiceDate": "2026-02-01",
        },
    },
]

ENTITIES: dict[str, list[dict[str, Any]]] = {
    "suppliers": [
        {
            "entityId": "SUP-123",
            "legalName": "Acme Corp",
            "countryCode": "DE",
            "masterConfidence": 0.92,
            "mappingStatus": "MAPPED",
            "conflictCount": 1,
            "evidenceCount": 2,
            "canonicalFields": {
                "legalName": "Acme Corp",
                "countryCode": "DE",
                "vatNumber": "DE123456789",
            },
        },
        {
            "entityId": "SUP-999",
            "legalName": "Beta Metals",
            "countryCode": None,
            "masterConfidence": 0.40,
            "mappingStatus": "UNMAPPED",
            "quarantinedEvidenceCount": 1,
            "missingRequiredFields": ["countryCode", "vatNumber"],
            "canonicalFields": {"legalName": "Beta Metals"},
        },
        {
            "entityId": "SUP-456",
            "legalName": "Global Plastics Inc",
            "countryCode": "US",
            "mappingStatus": "MAPPED",
            "evidenceCount": 1,
            "canonicalFields": {
                "legalName": "Global Plastics Inc",
                "countryCode": "US",
                "supplierCode": "GP-2001",
            },
        },
        {
            "entityId": "SUP-789",
            "legalName": "Precision Tools Ltd",
            "countryCode": "GB",
            "mappingStatus": "UNMAPPED",
            "missingRequiredFields": ["vatNumber", "primaryContact"],
            "canonicalFields": {"legalName": "Precision Tools Ltd", "countryCode": "GB"},
        },
    ],
    "skus": [
        {
            "entityId": "SKU-456",
            "name": "Steel Rod 10mm",
            "skuCode": "WDG-A-001",
            "hsCode": "7215",
            "annualSpendEur": 500000,
            "mappingStatus": "MAPPED",
            "conflictCount": 1,
            "evidenceCount": 2,
            "canonicalFields": {
                "name": "Steel Rod 10mm",
                "skuCode": "WDG-A-001",
                "hsCode": "7215",
                "weight": 2.5,
                "weightUnit": "kg",
            },
        },
        {
            "entityId": "SKU-789",
            "name": "Critical Part X",
            "skuCode": "CPX-789",
            "mappingStatus": "UNMAPPED",
            "missingRequiredFields": ["manufacturer", "material_composition"],
            "canonicalFields": {"name": "Critical Part X", "skuCode": "CPX-789"},
        },
        {
            "entityId": "SKU-101",
            "name": "Steel Rod 10mm",
            "skuCode": "SR-10MM-01",
            "mappingStatus": "MAPPED",
            "evidenceCount": 1,
            "canonicalFields": {
                "name": "Steel Rod 10mm",
                "skuCode": "SR-10MM-01",
                "weight": 0.5,
                "weightUnit": "kg",
            },
        },
    ],
    "boms": [
        {
            "entityId": "BOM-001",
            "name": "Widget Assembly BOM",
            "parentSKU": "SKU-456",
            "version": "1.2",
            "mappingStatus": "MAPPED",
            "evidenceCount": 1,
            "canonicalFields": {"name": "Widget Assembly BOM", "version": "1.2"},
            "lineItems": [
                {"lineId": "L001", "componentSKU": "SKU-101", "quantity": 2, "unit": "pieces"},
                {"lineId": "L002", "componentSKU": "SKU-789", "quantity": 4, "unit": "pieces"},
                {"lineId": "L003", "componentSKU": "SKU-456", "quantity": 1, "unit": "assembly"},
            ],
        },
        {
            "entityId": "BOM-002",
            "name": "Subassembly X BOM",
            "parentSKU": "SKU-789",
            "version": "2.0",
            "mappingStatus": "PENDING",
            "conflictCount": 1,
            "missingRequiredFields": ["lineItems"],
            "canonicalFields": {"name": "Subassembly X BOM", "version": "2.0"},
            "lineItems": [],
        },
    ],
}


def _work_item(
    item_id: str,
    item_type: str,
    *,
    status: str = "OPEN",
    priority: str = "MEDIUM",
    owner: str = "Unassigned",
    created_at: str,
    sla_hours: int,
    evidence_id: str | None,
    entity: tuple[str, str] | None,
    **details: Any,
) -> dict[str, Any]:
    return {
        "id": item_id,
        "type": item_type,
        "status": status,
        "priority": priority,
        "owner": owner,
        "createdAt": created_at,
        "updatedAt": created_at,
        "createdBy": SYSTEM_ACTOR,
        "slaHours": sla_hours,
        "linkedEvidenceId": evidence_id,
        "linkedEntityRef": (
            {"entityType": entity[0], "entityId": entity[1]} if entity is not None else None
        ),
        "details": details,
    }


WORK_ITEMS: list[dict[str, Any]] = [
    _work_item(
        "WI-001",
        "REVIEW",
        created_at="2026-01-20T15:00:00Z",
        sla_hours=72,
        evidence_id="rec_ev_002",
        entity=("SUPPLIER", "SUP-123"),
        reason="Manual review required for ERP sync data",
    ),
    _work_item(
        "WI-002",
        "EXTRACTION",
        status="IN_PROGRESS",
        owner="ai-agent@extraction",
        created_at="2026-01-22T10:00:00Z",
        sla_hours=48,
        evidence_id="rec_ev_003",
        entity=None,
        reason="Extract missing fields from quarantined invoice",
    ),
    _work_item(
        "WI-003",
        "MAPPING",
        priority="HIGH",
        created_at="2026-01-16T11:00:00Z",
        sla_hours=48,
        evidence_id="rec_ev_001",
        entity=("SUPPLIER", "SUP-123"),
        reason="Map supplier to canonical entity",
    ),
    _work_item(
        "WI-004",
        "CONFLICT",
        priority="HIGH",
        created_at="2026-01-21T09:00:00Z",
        sla_hours=72,
        evidence_id="rec_ev_001",
        entity=("SUPPLIER", "SUP-123"),
        reason="Country code conflict",
        field="countryCode",
        sources=_supplier_country_sources(),
    ),
    _work_item(
        "WI-005",
        "CONFLICT",
        created_at="2026-01-26T14:00:00Z",
        sla_hours=96,
        evidence_id="rec_ev_004",
        entity=("SKU", "SKU-456"),
        reason="BOM weight mismatch",
        field="weight",
        sources=[
            _source("rec_ev_004", "EV-2024-004", 2.5, "Manual Upload"),
            _source("rec_ev_002", "EV-2024-002", 2.8, "SAP S/4HANA"),
        ],
    ),
    _work_item(
        "WI-006",
        "BLOCKED",
        status="BLOCKED",
        priority="CRITICAL",
        owner=OWNER_ACTOR,
        created_at="2026-02-04T08:00:00Z",
        sla_hours=24,
        evidence_id=None,
        entity=("SKU", "SKU-789"),
        reason="Missing evidence for critical SKU",
        financialRiskExposure=125000,
        currency="EUR",
    ),
    _work_item(
        "WI-CT-001",
        "MAPPING",
        priority="CRITICAL",
        created_at="2026-02-04T12:00:00Z",
        sla_hours=48,
        evidence_id="rec_ev_001",
        entity=("SUPPLIER", "SUP-123"),
        reason='Supplier mapping suggestion for "Acme Manufacturing GmbH"',
        suggestionIds=["MSUG-001", "MSUG-002"],
    ),
    _work_item(
        "WI-CT-002",
        "CONFLICT",
        priority="HIGH",
        created_at="2026-02-05T09:00:00Z",
        sla_hours=72,
        evidence_id="rec_ev_002",
        entity=("SKU", "SKU-456"),
        reason="Country code conflict between data sources",
        field="countryCode",
        sources=_supplier_country_sources(),
    ),
    _work_item(
        "WI-CT-003",
        "REVIEW",
        created_at="2026-02-03T11:00:00Z",
        sla_hours=96,
        evidence_id="rec_ev_003",
        entity=("SUPPLIER", "SUP-999"),
        reason="Quarantined evidence requires manual review and validation - missing required fields",
    ),
    _work_item(
        "WI-CT-004",
        "CONFLICT",
        status="BLOCKED",
        priority="CRITICAL",
        created_at="2026-02-01T08:00:00Z",
        sla_hours=24,
        evidence_id=None,
        entity=("SUPPLIER", "SUP-999"),
        reason="Missing identity evidence - supplier cannot be validated",
        financialRiskExposure=75000,
        currency="EUR",
    ),
    _work_item(
        "WI-CT-005",
        "MAPPING",
        created_at="2026-01-26T10:00:00Z",
        sla_hours=96,
        evidence_id="rec_ev_004",
        entity=("SKU", "SKU-456"),
        reason="Map SKU-456 to BOM evidence EV-2024-004",
    ),
]


def _suggestion(
    suggestion_id: str,
    source: tuple[str, str],
    target: tuple[str, str],
    *,
    confidence: int,
    suggestion_type: str,
    model_reason: str,
    created_at: str,
) -> dict[str, Any]:
    return {
        "id": suggestion_id,
        "entityRef": {"entityType": source[0], "entityId": source[1]},
        "proposedTargetRef": {"entityType": target[0], "entityId": target[1]},
        "confidence": confidence,
        "suggestionType": suggestion_type,
        "modelReason": model_reason,
        "status": "PENDING",
        "createdAt": created_at,
    }


MAPPING_SUGGESTIONS: list[dict[str, Any]] = [
    _suggestion(
        "MSUG-001",
        ("SUPPLIER", "SUP-123"),
        ("SUPPLIER", "SUP-123"),
        confidence=95,
        suggestion_type="EXACT_MATCH",
        model_reason='Legal name exact match: "Acme Manufacturing GmbH"',
        created_at="2026-01-16T09:00:00Z",
    ),
    _suggestion(
        "MSUG-002",
        ("SUPPLIER", "SUP-NEW-001"),
        ("SUPPLIER", "SUP-123"),
        confidence=78,
        suggestion_type="FUZZY_MATCH",
        model_reason='Similar name: "Acme Manufacturing" vs "Acme Manufacturing GmbH"',
        created_at="2026-01-17T11:30:00Z",
    ),
    _suggestion(
        "MSUG-003",
        ("SKU", "SKU-456"),
        ("SKU", "SKU-456"),
        confidence=92,
        suggestion_type="EXACT_MATCH",
        model_reason='SKU code exact match: "WDG-A-001"',
        created_at="2026-01-25T15:00:00Z",
    ),
    _suggestion(
        "MSUG-004",
        ("SKU", "SKU-789"),
        ("SKU", "SKU-101"),
        confidence=65,
        suggestion_type="FUZZY_MATCH",
        model_reason="Similar description and material type",
        created_at="2026-01-26T10:20:00Z",
    ),
]

DECISIONS: list[dict[str, Any]] = [
    {
        "id": "DEC-00001",
        "workItemId": None,
        "entityRef": {"entityType": "SUPPLIER", "entityId": "SUP-123"},
        "decisionType": "DATA_QUALITY_VERIFIED",
        "reasonCode": "EXACT_MATCH",
        "comment": "Legal name matches across all sources",
        "actor": "reviewer@emissioncore.io",
        "createdAt": "2026-01-16T10:00:00Z",
    },
    {
        "id": "DEC-00002",
        "workItemId": "WI-003",
        "entityRef": {"entityType": "SUPPLIER", "entityId": "SUP-123"},
        "decisionType": "MAP_APPROVE",
        "reasonCode": "HIGH_CONFIDENCE_MATCH",
        "comment": "AI suggestion approved after manual verification",
        "actor": OWNER_ACTOR,
        "createdAt": "2026-01-18T14:30:00Z",
    },
    {
        "id": "DEC-00003",
        "workItemId": None,
        "entityRef": {"entityType": "SKU", "entityId": "SKU-456"},
        "decisionType": "EXTRACTION_VERIFIED",
        "reasonCode": "DATA_QUALITY_VERIFIED",
        "comment": "BOM weight data extracted successfully",
        "actor": SYSTEM_ACTOR,
        "createdAt": "2026-01-25T16:45:00Z",
    },
]


def _audit(
    event_id: str,
    event_type: str,
    target: tuple[str, str],
    *,
    actor: str,
    timestamp: str,
    **details: Any,
) -> dict[str, Any]:
    return {
        "id": event_id,
        "eventType": event_type,
        "objectType": target[0],
        "objectId": target[1],
        "actor": actor,
        "timestamp": timestamp,
        "details": details,
    }


AUDIT_EVENTS: list[dict[str, Any]] = [
    _audit(
        "AE-001",
        "EVIDENCE_SEALED",
        ("EVIDENCE", "rec_ev_001"),
        actor=OWNER_ACTOR,
        timestamp="2026-01-15T10:31:00Z",
        action="SEAL",
        reason="Supplier master data validated",
    ),
    _audit(
        "AE-002",
        "EVIDENCE_INGESTED",
        ("EVIDENCE", "rec_ev_002"),
        actor=SYSTEM_ACTOR,
        timestamp="2026-01-20T14:16:00Z",
        action="INGEST",
        sourceSystem="SAP S/4HANA",
    ),
    _audit(
        "AE-003",
        "EVIDENCE_QUARANTINED",
        ("EVIDENCE", "rec_ev_003"),
        actor=SYSTEM_ACTOR,
        timestamp="2026-01-22T09:46:00Z",
        action="QUARANTINE",
        reason="Missing required field: invoiceDate",
    ),
    _audit(
        "AE-004",
        "WORK_ITEM_CREATED",
        ("WORK_ITEM", "WI-004"),
        actor=SYSTEM_ACTOR,
        timestamp="2026-01-21T09:01:00Z",
        action="CREATE",
        type="CONFLICT",
        reason="Country code mismatch detected",
    ),
    _audit(
        "AE-005",
        "DECISION_LOGGED",
        ("DECISION", "DEC-00002"),
        actor=OWNER_ACTOR,
        timestamp="2026-01-18T14:30:00Z",
        action="APPROVE",
        decisionType="MAP_APPROVE",
    ),
    _audit(
        "AE-006",
        "EVIDENCE_SEALED",
        ("EVIDENCE", "rec_ev_004"),
        actor=OWNER_ACTOR,
        timestamp="2026-01-25T16:21:00Z",
        action="SEAL",
        reason="BOM data complete and validated",
    ),
]


def demo_snapshot() -> Snapshot:
    return Snapshot.model_validate(
        {
            "tenantId": DEMO_TENANT_ID,
            "evidence": EVIDENCE,
            "evidenceDrafts": DRAFTS,
            "entities": ENTITIES,
            "workItems": WORK_ITEMS,
            "mappingSuggestions": MAPPING_SUGGESTIONS,
            "decisions": DECISIONS,
            "auditEvents": AUDIT_EVENTS,
        }
    )


def seed_demo_data(unit_of_work_factory: LedgerUnitOfWorkFactory) -> ImportSummary:
    """Load the demo fixture; rows that already exist are left alone."""
    summary = import_snapshot(demo_snapshot(), unit_of_work_factory, tenant_id=DEMO_TENANT_ID)
    log.info("Seeded demo tenant %s (%d new rows)", DEMO_TENANT_ID, summary.total_imported)
    return summary
