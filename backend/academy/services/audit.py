from __future__ import annotations

from sqlalchemy.orm import Session

from academy.models.activity_log import ActivityLog
from academy.models.user import User


def log_activity(
    db: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        actor_id=actor.id if actor is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        summary=summary,
        details=details or {},
    )
    db.add(entry)
    return entry
