import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db, require_admin, user_from_token
from academy.core.exceptions import RecipientSelectionError
from academy.models.batch import Batch
from academy.models.content import CONTENT_MODELS, ContentType
from academy.models.course import Course
from academy.models.notification import Notification, NotificationType
from academy.models.user import User, UserRole, UserStatus
from academy.schemas.notification import (
    AdminNotificationOut,
    AdminNotificationRequest,
    ContentSendOut,
    ContentSendRequest,
    NotificationOut,
    NotificationReadAllOut,
    RecipientResolveOut,
    RecipientResolveRequest,
)
from academy.services.audit import log_activity
from academy.services.notification_hub import notification_hub
from academy.services.notifications import active_recipients, email_recipient, mark_all_read, notify_users, queue_realtime
from academy.services.recipients import RecipientDirectory, resolve_recipients
from academy.services.whatsapp import send_whatsapp_bulk

router = APIRouter()
logger = logging.getLogger(__name__)

CONTENT_LABELS: dict[ContentType, str] = {
    ContentType.event: "event",
    ContentType.notice: "notice",
    ContentType.book_material: "book material",
    ContentType.grade_exam: "grade exam",
}


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    is_read: bool | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    query = select(Notification).where(Notification.user_id == current_user.id)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)
    query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    return list(db.execute(query).scalars())


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    notification.is_read = True
    queue_realtime(db, notification, event="notification.read")
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/notifications/read-all", response_model=NotificationReadAllOut)
def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationReadAllOut:
    updated = mark_all_read(db, current_user.id)
    db.commit()
    return NotificationReadAllOut(updated=updated)


def _ws_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    scheme, _, value = (websocket.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


@router.websocket("/notifications/ws")
async def notifications_websocket(websocket: WebSocket, db: Session = Depends(get_db)) -> None:
    token = _ws_token(websocket)
    user = user_from_token(db, token) if token else None
    if user is None or user.status == UserStatus.inactive:
        await websocket.close(code=1008)
        return

    user_id = user.id
    await notification_hub.connect(user_id, websocket)
    try:
        await websocket.send_json({"event": "connected", "user_id": user_id})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await notification_hub.disconnect(user_id, websocket)


def _recipient_directory(db: Session) -> RecipientDirectory:
    users = db.execute(select(User).where(User.role != UserRole.admin)).scalars()
    batches = db.execute(select(Batch)).scalars()
    courses = db.execute(select(Course)).scalars()
    return RecipientDirectory.from_users(users, batches, courses)


@router.post("/admin/recipients/resolve", response_model=RecipientResolveOut)
def resolve_recipient_selection(
    payload: RecipientResolveRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> RecipientResolveOut:
    user_ids = sorted(resolve_recipients(payload.mode, payload.selection, _recipient_directory(db)))
    return RecipientResolveOut(user_ids=user_ids, count=len(user_ids))


@router.post("/admin/notifications", response_model=AdminNotificationOut)
def send_admin_notification(
    payload: AdminNotificationRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AdminNotificationOut:
    if not payload.user_ids:
        raise RecipientSelectionError()

    records = notify_users(db, user_ids=payload.user_ids, title=payload.subject, message=payload.message)
    emailed = 0
    if payload.send_email:
        for recipient in active_recipients(db, payload.user_ids):
            emailed += email_recipient(recipient, subject=payload.subject, message=payload.message)
    log_activity(
        db,
        actor=current_user,
        action="notification.sent",
        entity_type="notification",
        summary=payload.subject,
        details={"recipients": len(records), "emailed": emailed},
    )
    db.commit()
    return AdminNotificationOut(success=True, notified=len(records), emailed=emailed)


@router.post("/admin/content/send", response_model=ContentSendOut)
def send_content_notification(
    payload: ContentSendRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ContentSendOut:
    if not payload.user_ids:
        raise RecipientSelectionError()

    item = db.get(CONTENT_MODELS[payload.content_type], payload.content_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{payload.content_type.value} not found")

    subject = payload.subject or f"{payload.content_type.value}: {item.title}"
    message = payload.message or (
        f'A new {CONTENT_LABELS[payload.content_type]} has been posted: "{item.title}". '
        "Please log in to your dashboard to view the details."
    )

    item.recipient_ids = list(dict.fromkeys([*(item.recipient_ids or []), *payload.user_ids]))
    records = notify_users(
        db,
        user_ids=payload.user_ids,
        title=subject,
        message=message,
        notification_type=NotificationType.content,
        link=f"/content/{payload.content_type.value}/{item.id}",
    )
    recipients = active_recipients(db, payload.user_ids)
    emailed = 0
    if payload.send_email:
        for recipient in recipients:
            emailed += email_recipient(recipient, subject=subject, message=message)
    whatsapp_sent = 0
    if payload.send_whatsapp:
        whatsapp_sent = send_whatsapp_bulk(
            [(recipient.id, recipient.contact_number) for recipient in recipients],
            f"{subject}\n\n{message}",
        )

    log_activity(
        db,
        actor=current_user,
        action="content.sent",
        entity_type=payload.content_type.value,
        entity_id=item.id,
        summary=subject,
        details={"notified": len(records), "emailed": emailed, "whatsapp": whatsapp_sent},
    )
    db.commit()
    logger.info("Sent %s %s to %d recipient(s)", payload.content_type.value, item.id, len(records))
    return ContentSendOut(
        success=True,
        message=f"Notification sent to {len(records)} recipient(s).",
        notified=len(records),
        emailed=emailed,
        whatsapp_sent=whatsapp_sent,
    )
