from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
import logging

from anyio import from_thread
from sqlalchemy import event, select, update
from sqlalchemy.orm import Session

from academy.models.notification import Notification, NotificationType
from academy.models.user import User, UserStatus
from academy.services.email import EmailDeliveryError, render_letter, send_email
from academy.services.notification_hub import notification_hub

logger = logging.getLogger(__name__)


def _isoformat(value: datetime | None) -> str:
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def realtime_payload(notification: Notification, *, event: str) -> dict:
    return {
        "event": event,
        "notification": {
            "id": notification.id,
            "user_id": notification.user_id,
            "title": notification.title,
            "message": notification.message,
            "notification_type": notification.notification_type.value,
            "link": notification.link,
            "is_read": notification.is_read,
            "created_at": _isoformat(notification.created_at),
        },
    }


REALTIME_OUTBOX_KEY = "realtime_outbox"


def queue_realtime(db: Session, notification: Notification, *, event: str = "notification.created") -> None:
    """Hold a realtime payload until the session commits; a rollback discards it."""
    db.info.setdefault(REALTIME_OUTBOX_KEY, []).append(
        (notification.user_id, realtime_payload(notification, event=event))
    )


def dispatch_realtime(messages: list[tuple[str, dict]]) -> None:
    # Route handlers run in a worker thread; outside of one there is no loop to reach.
    try:
        from_thread.run(notification_hub.publish_many, messages)
    except Exception:  # pragma: no cover - runtime environment dependent
        logger.debug("Realtime push skipped for %d message(s)", len(messages), exc_info=True)


@event.listens_for(Session, "after_commit")
def _flush_realtime_outbox(session: Session) -> None:
    messages = session.info.pop(REALTIME_OUTBOX_KEY, None)
    if messages:
        dispatch_realtime(messages)


@event.listens_for(Session, "after_transaction_end")
def _drop_realtime_outbox(session: Session, transaction) -> None:
    # after_commit has already drained the outbox; anything left was rolled back or closed.
    if transaction.parent is None:
        session.info.pop(REALTIME_OUTBOX_KEY, None)


def email_recipient(recipient: User, *, subject: str, message: str, signature: str = "The Academy Team") -> bool:
    if not recipient.email:
        return False
    try:
        send_email(
            to_email=recipient.email,
            subject=subject,
            text_content=render_letter(name=recipient.name, message=message, signature=signature),
        )
    except EmailDeliveryError:
        logger.warning("Email to %s failed", recipient.email, exc_info=True)
        return False
    return True


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.general,
    link: str | None = None,
    deliver_realtime: bool = True,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        link=link,
    )
    db.add(record)
    db.flush()
    if deliver_realtime:
        queue_realtime(db, record)
    return record


def active_recipients(db: Session, user_ids: Iterable[str]) -> list[User]:
    wanted = [item for item in dict.fromkeys(user_ids) if item]
    if not wanted:
        return []
    return list(
        db.execute(
            select(User).where(
                User.id.in_(wanted),
                User.is_deleted.is_(False),
                User.status != UserStatus.inactive,
            )
        ).scalars()
    )


def notify_users(
    db: Session,
    *,
    user_ids: Iterable[str],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.general,
    link: str | None = None,
) -> list[Notification]:
    return [
        create_notification(
            db,
            user_id=recipient.id,
            title=title,
            message=message,
            notification_type=notification_type,
            link=link,
        )
        for recipient in active_recipients(db, user_ids)
    ]


def mark_all_read(db: Session, user_id: str) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0
