"""Public interface for the JSON snapshot adapter."""

from __future__ import annotations

from .schema import FORMAT_VERSION, Snapshot
from .store import ImportSummary, export_snapshot, import_snapshot, load_snapshot, write_snapshot

__all__ = [
    "FORMAT_VERSION",
    "ImportSummary",
    "Snapshot",
    "export_snapshot",
    "import_snapshot",
    "load_snapshot",
    "write_snapshot",
]
