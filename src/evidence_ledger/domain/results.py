"""Result values returned by service actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evidence_ledger.domain.errors import LedgerError
    from evidence_ledger.domain.model import Decision, WorkItem


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a ledger action; failures carry a message instead of raising.

    ``value`` holds whatever else the action produced (an evidence record, a
    draft, a mapping suggestion) and ``created`` distinguishes a fresh follow-up
    from one returned by an idempotent replay.
    """

    success: bool
    decision: Decision | None = None
    work_item: WorkItem | None = None
    value: object = None
    created: bool = False
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(
        cls,
        *,
        decision: Decision | None = None,
        work_item: WorkItem | None = None,
        value: object = None,
        created: bool = False,
    ) -> ActionResult:
        return cls(
            success=True,
            decision=decision,
            work_item=work_item,
            value=value,
            created=created,
        )

    @classmethod
    def failure(cls, error: LedgerError) -> ActionResult:
        return cls(success=False, error=str(error), error_code=error.code)

    def __bool__(self) -> bool:
        return self.success
