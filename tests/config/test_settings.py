from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from evidence_ledger.config import (
    DEFAULT_ACTOR,
    DEFAULT_RETENTION_YEARS,
    DEFAULT_TENANT_ID,
    ConfigurationError,
    get_database_uri,
    get_ledger_config,
    get_storage_config,
    optional_env_var,
    positive_int_env_var,
)
from evidence_ledger.config.storage import DEFAULT_DB_FILENAME


def test_optional_env_var_falls_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")

    assert optional_env_var("EXAMPLE_VAR", "fallback") == "fallback"


@pytest.mark.parametrize("raw", ["0", "-3", "seven"])
def test_positive_int_env_var_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("EXAMPLE_INT", raw)

    with pytest.raises(ConfigurationError):
        positive_int_env_var("EXAMPLE_INT", 5)


def test_ledger_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "EVIDENCE_LEDGER_TENANT_ID",
        "EVIDENCE_LEDGER_ACTOR",
        "EVIDENCE_LEDGER_RETENTION_YEARS",
        "EVIDENCE_LEDGER_DEFAULT_SLA_HOURS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_ledger_config()

    assert config.tenant_id == DEFAULT_TENANT_ID
    assert config.actor == DEFAULT_ACTOR
    assert config.retention_years == DEFAULT_RETENTION_YEARS
    assert config.default_sla_hours == 48


def test_ledger_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVIDENCE_LEDGER_TENANT_ID", "tenant_x")
    monkeypatch.setenv("EVIDENCE_LEDGER_RETENTION_YEARS", "10")

    config = get_ledger_config()

    assert config.tenant_id == "tenant_x"
    assert config.retention_years == 10


def test_storage_prefers_explicit_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("EVIDENCE_LEDGER_DATA_DIR", str(custom))

    assert get_storage_config().resolve_data_dir() == custom.resolve()


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_uri() == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("EVIDENCE_LEDGER_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_uri()

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()
