"""Audit records for snapshot and component lifecycle decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .entity import Entity

if TYPE_CHECKING:
    from uuid import UUID

    from .enums import AuditAction


@dataclass(eq=False, kw_only=True)
class SnapshotAuditEvent(Entity):
    line_item_id: UUID
    action: AuditAction
    actor: str | None = None
    note: str | None = None
    details: dict[str, object] = field(default_factory=dict[str, object])
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
