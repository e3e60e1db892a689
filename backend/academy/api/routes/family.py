from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_db, require_roles
from academy.api.routes.auth import register_students
from academy.api.routes.batches import enrollments_for
from academy.api.routes.fees import invoices_for
from academy.core.security import verify_password
from academy.models.user import User, UserRole
from academy.schemas.batch import StudentEnrollmentOut
from academy.schemas.fee import InvoiceOut
from academy.schemas.inquiry import EmailCheckOut, EmailCheckRequest
from academy.schemas.user import FamilyStudentCreate, StudentRegister, UserOut
from academy.services.audit import log_activity
from academy.services.family import family_key, family_members, next_family_email
from academy.services.rate_limit import enforce_public_form_rate_limit

router = APIRouter()

require_student = require_roles(UserRole.student)


def _live_students(db: Session) -> list[User]:
    return list(
        db.execute(
            select(User)
            .where(User.role == UserRole.student, User.is_deleted.is_(False))
            .order_by(User.created_at.asc(), User.name.asc())
        ).scalars()
    )


def _family_student(db: Session, guardian: User, student_id: str) -> User:
    for student in family_members(guardian.email, _live_students(db)):
        if student.id == student_id:
            return student
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found in this family")


@router.post("/users/check-email", response_model=EmailCheckOut)
def check_email(payload: EmailCheckRequest, request: Request, db: Session = Depends(get_db)) -> EmailCheckOut:
    enforce_public_form_rate_limit(request, "check-email")
    exists = db.execute(select(User.id).where(User.email == payload.email)).first() is not None
    return EmailCheckOut(exists=exists)


@router.get("/family/students", response_model=list[UserOut])
def family_students(current_user: User = Depends(require_student), db: Session = Depends(get_db)) -> list[UserOut]:
    return family_members(current_user.email, _live_students(db))


@router.post("/family/students", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def add_family_student(
    payload: FamilyStudentCreate,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> UserOut:
    if not verify_password(payload.guardian_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Password is incorrect")

    key = family_key(current_user.email)
    local, _, domain = key.partition("@")
    taken = db.execute(select(User.email).where(User.email.like(f"{local}+student%@{domain}"))).scalars()
    data = payload.model_dump(exclude={"guardian_password"})
    data["contact_number"] = data.get("contact_number") or current_user.contact_number
    registration = StudentRegister(
        **data,
        email=next_family_email(current_user.email, taken),
        password=payload.guardian_password,
        father_name=current_user.name,
    )
    (student,) = register_students(db, [registration])
    log_activity(
        db,
        actor=current_user,
        action="family.student_added",
        entity_type="user",
        entity_id=student.id,
        summary=f"Added {student.name} to the {key} family",
    )
    db.commit()
    db.refresh(student)
    return student


@router.get("/family/students/{student_id}/invoices", response_model=list[InvoiceOut])
def family_student_invoices(
    student_id: str,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> list[InvoiceOut]:
    student = _family_student(db, current_user, student_id)
    return invoices_for(db, student.id)


@router.get("/family/students/{student_id}/enrollments", response_model=list[StudentEnrollmentOut])
def family_student_enrollments(
    student_id: str,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
) -> list[StudentEnrollmentOut]:
    student = _family_student(db, current_user, student_id)
    return enrollments_for(db, student)
