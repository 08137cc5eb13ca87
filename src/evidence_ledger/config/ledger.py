"""Ledger policy defaults: active tenant, acting user, retention and SLA."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, positive_int_env_var

DEFAULT_TENANT_ID = "tenant_demo_emissioncore"
DEFAULT_ACTOR = "admin@emissioncore.io"
SYSTEM_ACTOR = "system@emissioncore.io"
DEFAULT_RETENTION_YEARS = 7
DEFAULT_SLA_HOURS = 48


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    tenant_id: str = DEFAULT_TENANT_ID
    actor: str = DEFAULT_ACTOR
    retention_years: int = DEFAULT_RETENTION_YEARS
    default_sla_hours: int = DEFAULT_SLA_HOURS


def get_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        tenant_id=optional_env_var("EVIDENCE_LEDGER_TENANT_ID", DEFAULT_TENANT_ID),
        actor=optional_env_var("EVIDENCE_LEDGER_ACTOR", DEFAULT_ACTOR),
        retention_years=positive_int_env_var(
            "EVIDENCE_LEDGER_RETENTION_YEARS", DEFAULT_RETENTION_YEARS
        ),
        default_sla_hours=positive_int_env_var(
            "EVIDENCE_LEDGER_DEFAULT_SLA_HOURS", DEFAULT_SLA_HOURS
        ),
    )
