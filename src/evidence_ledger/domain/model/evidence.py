"""Evidence records and the drafts they are sealed from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from evidence_ledger.domain.errors import ImmutableRecordError
from evidence_ledger.domain.model.enums import (
    DraftStatus,
    ReconciliationStatus,
    SealedStatus,
)

if TYPE_CHECKING:
    from datetime import datetime

    from evidence_ledger.domain.model.enums import DatasetType, IngestionMethod
    from evidence_ledger.domain.model.primitives import EntityRef, JsonObject


SCOPE_BINDING_ISSUE = "Scope binding not resolved"

# Fields frozen once a record reaches SEALED.
_SEALED_FIELDS = frozenset(
    {
        "tenant_id",
        "id",
        "display_id",
        "dataset_type",
        "ingestion_method",
        "source_system",
        "ingested_by",
        "ingested_at",
        "retention_end",
        "payload_hash",
        "metadata_hash",
        "canonical_payload",
        "source_metadata",
        "sealed_at",
        "draft_id",
        "quarantine_reason",
        "sealed_status",
    }
)


@dataclass(eq=False, kw_only=True)
class EvidenceRecord:
    """Ingested source data backing a compliance claim.

    Once ``sealed_status`` is SEALED the payload, hashes and provenance refuse
    further assignment. Linked entity references and the reconciliation status
    stay writable so a record can be sealed now and bound later.
    """

    tenant_id: str
    id: str
    display_id: str
    dataset_type: DatasetType
    ingestion_method: IngestionMethod
    source_system: str
    ingested_by: str
    ingested_at: datetime
    retention_end: datetime | None = None
    quarantine_reason: str | None = None
    payload_hash: str = ""
    metadata_hash: str = ""
    canonical_payload: JsonObject = field(default_factory=dict[str, Any])
    source_metadata: JsonObject = field(default_factory=dict[str, Any])
    linked_entities: list[EntityRef] = field(default_factory=list["EntityRef"])
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.BOUND
    blocking_issues: list[str] = field(default_factory=list[str])
    sealed_at: datetime | None = None
    draft_id: str | None = None
    # assigned last so __init__ can build an already sealed record
    sealed_status: SealedStatus = SealedStatus.INGESTED

    def __setattr__(self, name: str, value: object) -> None:
        if name in _SEALED_FIELDS and self.__dict__.get("sealed_status") == SealedStatus.SEALED:
            raise ImmutableRecordError(
                f"Evidence {self.__dict__.get('display_id')} is sealed; {name} cannot change"
            )
        super().__setattr__(name, value)

    @property
    def is_sealed(self) -> bool:
        return self.sealed_status == SealedStatus.SEALED

    def metadata_document(self) -> JsonObject:
        return metadata_document(
            dataset_type=self.dataset_type,
            ingestion_method=self.ingestion_method,
            source_system=self.source_system,
            ingested_by=self.ingested_by,
            source_metadata=self.source_metadata,
        )

    def quarantine(self, reason: str) -> None:
        if self.is_sealed:
            raise ImmutableRecordError(f"Evidence {self.display_id} is sealed and cannot be quarantined")
        self.quarantine_reason = reason
        self.sealed_status = SealedStatus.QUARANTINED

    def bind(self, refs: list[EntityRef]) -> None:
        """Attach entity references; an empty list leaves the record UNBOUND."""
        self.linked_entities = list(refs)
        if refs:
            self.reconciliation_status = ReconciliationStatus.BOUND
            self.blocking_issues = [
                issue for issue in self.blocking_issues if issue != SCOPE_BINDING_ISSUE
            ]
        else:
            self.reconciliation_status = ReconciliationStatus.UNBOUND
            if SCOPE_BINDING_ISSUE not in self.blocking_issues:
                self.blocking_issues = [*self.blocking_issues, SCOPE_BINDING_ISSUE]


@dataclass(eq=False, kw_only=True)
class EvidenceDraft:
    """Mutable staging object that validates into a sealed ``EvidenceRecord``."""

    tenant_id: str
    id: str
    display_id: str
    dataset_type: DatasetType
    ingestion_method: IngestionMethod
    source_system: str
    created_by: str
    created_at: datetime
    status: DraftStatus = DraftStatus.DRAFT
    payload: JsonObject = field(default_factory=dict[str, Any])
    source_metadata: JsonObject = field(default_factory=dict[str, Any])
    linked_entity: EntityRef | None = None
    validation_errors: list[str] = field(default_factory=list[str])
    sealed_record_id: str | None = None
    updated_at: datetime | None = None

    @property
    def can_seal(self) -> bool:
        return self.status == DraftStatus.READY_TO_SEAL


def metadata_document(
    *,
    dataset_type: DatasetType,
    ingestion_method: IngestionMethod,
    source_system: str,
    ingested_by: str,
    source_metadata: JsonObject,
) -> JsonObject:
    """Provenance fields covered by an evidence record's metadata hash."""

    return {
        "dataset_type": str(dataset_type),
        "ingestion_method": str(ingestion_method),
        "source_system": source_system,
        "ingested_by": ingested_by,
        "source_metadata": source_metadata,
    }
