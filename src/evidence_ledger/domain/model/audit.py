"""Append-only system audit log."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import AuditEventType, AuditObjectType
    from .primitives import JsonObject


@dataclass(eq=False, kw_only=True)
class AuditEvent:
    tenant_id: str
    id: str
    event_type: AuditEventType
    object_type: AuditObjectType
    object_id: str
    actor: str
    timestamp: datetime
    details: JsonObject = field(default_factory=dict[str, Any])
