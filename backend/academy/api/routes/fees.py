from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db, require_admin
from academy.models.course import Course
from academy.models.fee import FeeStructure, Invoice, InvoiceStatus
from academy.models.notification import NotificationType
from academy.models.user import User
from academy.schemas.fee import (
    FeeStructureCreate,
    FeeStructureOut,
    FeeStructureUpdate,
    InvoiceGenerateOut,
    InvoiceGenerateRequest,
    InvoiceOut,
    PaymentDetails,
)
from academy.services.audit import log_activity
from academy.services.billing import generate_invoices, refresh_overdue
from academy.services.notifications import create_notification

router = APIRouter()


def _get_structure(db: Session, structure_id: str) -> FeeStructure:
    structure = db.get(FeeStructure, structure_id)
    if structure is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee structure not found")
    return structure


@router.get("/admin/feestructures", response_model=list[FeeStructureOut])
def list_fee_structures(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[FeeStructureOut]:
    return list(db.execute(select(FeeStructure).order_by(FeeStructure.course_name.asc())).scalars())


@router.post("/admin/feestructures", response_model=FeeStructureOut, status_code=status.HTTP_201_CREATED)
def create_fee_structure(
    payload: FeeStructureCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> FeeStructureOut:
    course = db.get(Course, payload.course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    if db.execute(select(FeeStructure.id).where(FeeStructure.course_id == course.id)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already has a fee structure")
    structure = FeeStructure(**payload.model_dump(), course_name=course.name)
    db.add(structure)
    db.commit()
    db.refresh(structure)
    return structure


@router.put("/admin/feestructures/{structure_id}", response_model=FeeStructureOut)
def update_fee_structure(
    structure_id: str,
    payload: FeeStructureUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> FeeStructureOut:
    structure = _get_structure(db, structure_id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(structure, key, value)
    db.commit()
    db.refresh(structure)
    return structure


@router.delete("/admin/feestructures/{structure_id}")
def delete_fee_structure(
    structure_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    db.delete(_get_structure(db, structure_id))
    db.commit()
    return {"success": True}


@router.get("/admin/invoices", response_model=list[InvoiceOut])
def list_invoices(
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    student_id: str | None = Query(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[InvoiceOut]:
    refresh_overdue(db)
    db.commit()
    query = select(Invoice).order_by(Invoice.issue_date.desc())
    if status_filter is not None:
        query = query.where(Invoice.status == status_filter)
    if student_id:
        query = query.where(Invoice.student_id == student_id)
    return list(db.execute(query).scalars())


@router.post("/admin/invoices/generate", response_model=InvoiceGenerateOut)
def generate_invoice_run(
    payload: InvoiceGenerateRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> InvoiceGenerateOut:
    refresh_overdue(db)
    created, skipped = generate_invoices(db, issue_date=payload.issue_date)
    for invoice in created:
        create_notification(
            db,
            user_id=invoice.student_id,
            title="New invoice",
            message=(
                f"An invoice of {invoice.amount:.2f} {invoice.currency.value} for {invoice.course_name} "
                f"({invoice.billing_period}) is due on {invoice.due_date.isoformat()}."
            ),
            notification_type=NotificationType.billing,
        )
    log_activity(
        db,
        actor=current_user,
        action="invoices.generated",
        entity_type="invoice",
        details={"created": len(created), "skipped": skipped},
    )
    db.commit()
    for invoice in created:
        db.refresh(invoice)
    return InvoiceGenerateOut(created=len(created), skipped=skipped, invoices=created)


@router.put("/admin/invoices/{invoice_id}/pay", response_model=InvoiceOut)
def record_payment(
    invoice_id: str,
    payload: PaymentDetails,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> InvoiceOut:
    invoice = db.get(Invoice, invoice_id)
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if invoice.status == InvoiceStatus.paid:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invoice is already paid")
    invoice.status = InvoiceStatus.paid
    invoice.payment_details = payload.model_dump(mode="json")
    log_activity(db, actor=current_user, action="invoice.paid", entity_type="invoice", entity_id=invoice.id)
    db.commit()
    db.refresh(invoice)
    return invoice


def invoices_for(db: Session, student_id: str) -> list[Invoice]:
    refresh_overdue(db)
    db.commit()
    query = select(Invoice).where(Invoice.student_id == student_id).order_by(Invoice.issue_date.desc())
    return list(db.execute(query).scalars())


@router.get("/invoices", response_model=list[InvoiceOut])
def my_invoices(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[InvoiceOut]:
    return invoices_for(db, current_user.id)
