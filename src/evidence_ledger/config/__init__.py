"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, positive_int_env_var
from .errors import ConfigurationError
from .ledger import (
    DEFAULT_ACTOR,
    DEFAULT_RETENTION_YEARS,
    DEFAULT_SLA_HOURS,
    DEFAULT_TENANT_ID,
    SYSTEM_ACTOR,
    LedgerConfig,
    get_ledger_config,
)
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_ACTOR",
    "DEFAULT_RETENTION_YEARS",
    "DEFAULT_SLA_HOURS",
    "DEFAULT_TENANT_ID",
    "SYSTEM_ACTOR",
    "ConfigurationError",
    "DatabaseConfig",
    "LedgerConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_ledger_config",
    "get_storage_config",
    "optional_env_var",
    "positive_int_env_var",
]
