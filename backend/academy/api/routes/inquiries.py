from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from academy.api.deps import get_db, require_admin
from academy.models.inquiry import ContactMessage, DemoBooking, DemoBookingStatus
from academy.models.user import User, UserRole
from academy.schemas.inquiry import (
    ContactCreate,
    ContactMessageOut,
    DemoBookingCreate,
    DemoBookingOut,
    DemoBookingStatsOut,
    DemoBookingUpdate,
)
from academy.services.audit import log_activity
from academy.services.email import EmailDeliveryError, render_letter, send_email
from academy.services.notifications import notify_users
from academy.services.rate_limit import enforce_public_form_rate_limit

router = APIRouter()
logger = logging.getLogger(__name__)


def _admin_ids(db: Session) -> list[str]:
    return list(
        db.execute(select(User.id).where(User.role == UserRole.admin, User.is_deleted.is_(False))).scalars()
    )


def _get_booking(db: Session, booking_id: str) -> DemoBooking:
    booking = db.get(DemoBooking, booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Demo booking not found")
    return booking


def _confirm_booking_by_email(booking: DemoBooking) -> bool:
    message = (
        f"We have received your demo class request for {booking.course_name}. "
        "Our team will contact you within 24 hours to schedule your demo class."
    )
    try:
        send_email(
            to_email=booking.email,
            subject="Demo Class Booking Confirmation",
            text_content=render_letter(name=booking.name, message=message, signature="The Academy Team"),
        )
    except EmailDeliveryError:
        logger.warning("Demo booking confirmation to %s failed", booking.email, exc_info=True)
        return False
    return True


@router.post("/demo-bookings", response_model=DemoBookingOut, status_code=status.HTTP_201_CREATED)
def create_demo_booking(payload: DemoBookingCreate, request: Request, db: Session = Depends(get_db)) -> DemoBookingOut:
    enforce_public_form_rate_limit(request, "demo-booking")
    booking = DemoBooking(**payload.model_dump())
    db.add(booking)
    db.flush()
    notify_users(
        db,
        user_ids=_admin_ids(db),
        title="New Demo Class Booking",
        message=(
            f"{booking.name} has requested a demo class for {booking.course_name}. "
            f"Email: {booking.email}, Phone: {booking.phone_number}"
        ),
        link=f"/admin/demo-bookings/{booking.id}",
    )
    db.commit()
    db.refresh(booking)
    _confirm_booking_by_email(booking)
    return booking


@router.get("/admin/demo-bookings", response_model=list[DemoBookingOut])
def list_demo_bookings(
    status_filter: DemoBookingStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=200),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[DemoBookingOut]:
    query = select(DemoBooking)
    if status_filter is not None:
        query = query.where(DemoBooking.status == status_filter)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(DemoBooking.name).like(pattern),
                func.lower(DemoBooking.email).like(pattern),
                func.lower(DemoBooking.course_name).like(pattern),
            )
        )
    return list(db.execute(query.order_by(DemoBooking.created_at.desc())).scalars())


@router.get("/admin/demo-bookings/stats", response_model=DemoBookingStatsOut)
def demo_booking_stats(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> DemoBookingStatsOut:
    counts = dict(db.execute(select(DemoBooking.status, func.count()).group_by(DemoBooking.status)).all())
    now = datetime.now(timezone.utc)
    this_month = sum(
        1
        for created_at in db.execute(select(DemoBooking.created_at)).scalars()
        if created_at is not None and (created_at.year, created_at.month) == (now.year, now.month)
    )
    return DemoBookingStatsOut(
        total=sum(counts.values()),
        pending=counts.get(DemoBookingStatus.pending, 0),
        confirmed=counts.get(DemoBookingStatus.confirmed, 0),
        completed=counts.get(DemoBookingStatus.completed, 0),
        cancelled=counts.get(DemoBookingStatus.cancelled, 0),
        this_month=this_month,
    )


@router.put("/admin/demo-bookings/{booking_id}", response_model=DemoBookingOut)
def update_demo_booking(
    booking_id: str,
    payload: DemoBookingUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DemoBookingOut:
    booking = _get_booking(db, booking_id)
    data = payload.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)
    if new_status is not None and new_status != booking.status:
        # The first move out of pending marks when the academy reached out.
        if booking.contacted_at is None and booking.status == DemoBookingStatus.pending:
            booking.contacted_at = datetime.now(timezone.utc)
        booking.status = new_status
    for key, value in data.items():
        setattr(booking, key, value)
    log_activity(
        db,
        actor=current_user,
        action="demo_booking.updated",
        entity_type="demo_booking",
        entity_id=booking.id,
        details={"status": booking.status.value},
    )
    db.commit()
    db.refresh(booking)
    return booking


@router.delete("/admin/demo-bookings/{booking_id}")
def delete_demo_booking(booking_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    booking = _get_booking(db, booking_id)
    log_activity(db, actor=current_user, action="demo_booking.deleted", entity_type="demo_booking", entity_id=booking.id)
    db.delete(booking)
    db.commit()
    return {"success": True}


@router.post("/contact")
def submit_contact_form(payload: ContactCreate, request: Request, db: Session = Depends(get_db)) -> dict:
    enforce_public_form_rate_limit(request, "contact")
    contact = ContactMessage(**payload.model_dump())
    db.add(contact)
    db.flush()
    notify_users(
        db,
        user_ids=_admin_ids(db),
        title=f"New message from {contact.name}",
        message=contact.subject or contact.message[:200],
    )
    db.commit()
    return {"success": True}


@router.get("/admin/contact-messages", response_model=list[ContactMessageOut])
def list_contact_messages(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ContactMessageOut]:
    return list(db.execute(select(ContactMessage).order_by(ContactMessage.created_at.desc())).scalars())


@router.put("/admin/contact-messages/{message_id}/read", response_model=ContactMessageOut)
def mark_contact_message_read(
    message_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ContactMessageOut:
    contact = db.get(ContactMessage, message_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    contact.is_read = True
    db.commit()
    db.refresh(contact)
    return contact
