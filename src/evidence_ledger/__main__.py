from __future__ import annotations

from evidence_ledger.ui.cli import run

run()
