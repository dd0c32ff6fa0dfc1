# Overview: Service-layer operations for the action log; encapsulates business logic and database work.

from __future__ import annotations

from typing import Any

from ..extensions import db
from ..models import ActionLog
from ferreteria.time_utils import utcnow
from .store_guard import store_read
"""
Action Log Invariants

- Append-only audit trail of user actions.
- Entries are written inside the same DB transaction as the change they record;
  callers commit.
- No updates or deletes of existing entries.
"""


def log_action(
    *,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    details: dict[str, Any] | None = None,
) -> ActionLog:
    entry = ActionLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        created_at=utcnow(),
    )
    db.session.add(entry)
    return entry


def list_actions(*, limit: int = 100, entity_type: str | None = None) -> list[ActionLog]:
    limit = max(1, min(limit, 500))
    with store_read("list action logs"):
        query = db.session.query(ActionLog)
        if entity_type:
            query = query.filter(ActionLog.entity_type == entity_type)
        return (
            query.order_by(ActionLog.created_at.desc(), ActionLog.id.desc())
            .limit(limit)
            .all()
        )
