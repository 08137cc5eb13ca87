"""Date helpers: tolerant parsing, display formatting, retention and SLA arithmetic."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

PLACEHOLDER = "—"
DEFAULT_RETENTION_YEARS = 7

_FORMATS = {
    "date": "%x",
    "time": "%X",
    "full": "%c",
}


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive values as UTC, convert aware values to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value: object) -> datetime | None:
    """Best-effort conversion of a date-like value; ``None`` when it cannot be read."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, int | float):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def safe_date(value: object, fmt: str = "date") -> str:
    """Format a date-like value for display, never raising on bad data.

    ``fmt`` is one of ``iso``, ``date``, ``time`` or ``full``; anything else is a
    programming error and raises ``ValueError``.
    """

    if fmt != "iso" and fmt not in _FORMATS:
        raise ValueError(f"Unknown date format: {fmt!r}")
    parsed = parse_datetime(value)
    if parsed is None:
        return PLACEHOLDER
    if fmt == "iso":
        return parsed.isoformat()
    return parsed.strftime(_FORMATS[fmt])


def add_years(value: datetime, years: int) -> datetime:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return value.replace(year=value.year + years, day=28)


def calculate_retention_end(
    start: datetime | None = None,
    *,
    years: int = DEFAULT_RETENTION_YEARS,
    clock: Clock = utcnow,
) -> datetime:
    """Retention end for evidence starting at ``start`` (default: now)."""

    if years < 0:
        raise ValueError("Retention period must be non-negative")
    anchor = ensure_utc(start) if start is not None else clock()
    return add_years(anchor, years)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_sla_remaining(
    created_at: object,
    sla_hours: object,
    *,
    now: datetime | None = None,
) -> int:
    """Whole hours left on an SLA, clamped at zero; 0 for unreadable input."""

    created = parse_datetime(created_at)
    if created is None or isinstance(sla_hours, bool):
        return 0
    try:
        hours = float(sla_hours)  # pyright: ignore[reportArgumentType]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(hours):
        return 0
    current = ensure_utc(now) if now is not None else utcnow()
    elapsed = (current - created) / timedelta(hours=1)
    return max(0, round_half_up(hours - elapsed))


__all__ = [
    "PLACEHOLDER",
    "Clock",
    "add_years",
    "calculate_retention_end",
    "calculate_sla_remaining",
    "ensure_utc",
    "parse_datetime",
    "round_half_up",
    "safe_date",
    "utcnow",
]
