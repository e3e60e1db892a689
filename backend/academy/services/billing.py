from __future__ import annotations

from datetime import date, timedelta
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from academy.core.config import get_settings
from academy.models.fee import BillingCycle, FeeStructure, Invoice, InvoiceStatus
from academy.models.user import User, UserRole, UserStatus

logger = logging.getLogger(__name__)


def billing_period_label(cycle: BillingCycle, issue_date: date) -> str:
    if cycle == BillingCycle.monthly:
        return issue_date.strftime("%B %Y")
    if cycle == BillingCycle.quarterly:
        return f"Q{(issue_date.month - 1) // 3 + 1} {issue_date.year}"
    return str(issue_date.year)


def refresh_overdue(db: Session, *, today: date | None = None) -> int:
    today = today or date.today()
    result = db.execute(
        update(Invoice)
        .where(Invoice.status == InvoiceStatus.pending, Invoice.due_date < today)
        .values(status=InvoiceStatus.overdue)
    )
    return result.rowcount or 0


def generate_invoices(db: Session, *, issue_date: date | None = None) -> tuple[list[Invoice], int]:
    """Issue one pending invoice per student, fee structure and billing period.

    Returns the new invoices and how many were skipped because an invoice
    for the same period already exists.
    """
    issue_date = issue_date or date.today()
    due_date = issue_date + timedelta(days=get_settings().invoice_due_days)
    structures = {item.course_name: item for item in db.execute(select(FeeStructure)).scalars()}
    students = db.execute(
        select(User).where(
            User.role == UserRole.student,
            User.status == UserStatus.active,
            User.is_deleted.is_(False),
        )
    ).scalars()
    existing = {
        (row.student_id, row.fee_structure_id, row.billing_period)
        for row in db.execute(select(Invoice)).scalars()
    }

    created: list[Invoice] = []
    skipped = 0
    for student in students:
        for course_name in student.courses or []:
            structure = structures.get(course_name)
            if structure is None:
                continue
            period = billing_period_label(structure.billing_cycle, issue_date)
            key = (student.id, structure.id, period)
            if key in existing:
                skipped += 1
                continue
            invoice = Invoice(
                student_id=student.id,
                fee_structure_id=structure.id,
                course_name=structure.course_name,
                amount=structure.amount,
                currency=structure.currency,
                issue_date=issue_date,
                due_date=due_date,
                billing_period=period,
                status=InvoiceStatus.pending,
            )
            db.add(invoice)
            existing.add(key)
            created.append(invoice)

    db.flush()
    logger.info("Generated %d invoice(s), skipped %d existing", len(created), skipped)
    return created, skipped
