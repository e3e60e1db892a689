from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db, require_admin
from academy.core.config import get_settings
from academy.core.exceptions import ScheduleConflictError
from academy.core.security import get_password_hash
from academy.models.batch import Batch
from academy.models.course import Course
from academy.models.fee import Invoice, InvoiceStatus
from academy.models.user import ClassPreference, User, UserRole, UserStatus
from academy.schemas.user import AdminStatsOut, ProfileUpdate, TrashedUserOut, UserCreate, UserOut, UserUpdate
from academy.services.audit import log_activity
from academy.services.schedules import AssignmentWorkspace

router = APIRouter()

_REQUIRED_FIELDS = {"name", "email", "status", "courses", "schedules", "course_expertise"}


def _live_users(db: Session) -> list[User]:
    return list(db.execute(select(User).where(User.is_deleted.is_(False))).scalars())


def _get_live_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None or user.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _email_taken(db: Session, email: str, *, exclude_id: str | None = None) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_id:
        query = query.where(User.id != exclude_id)
    return db.execute(query).first() is not None


def _ensure_no_teacher_double_booking(db: Session, student_id: str, schedules: list[dict]) -> None:
    workspace = AssignmentWorkspace(_live_users(db))
    conflicts = workspace.schedule_conflicts(student_id, schedules)
    if conflicts:
        first = conflicts[0]
        raise ScheduleConflictError(
            f"Teacher is already booked with {first.student_name} at {first.timing}",
            [conflict.model_dump() for conflict in conflicts],
        )


@router.get("/admin/users", response_model=list[UserOut])
def list_users(
    role: UserRole | None = Query(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[UserOut]:
    query = select(User).where(User.is_deleted.is_(False), User.role != UserRole.admin)
    if role is not None:
        query = query.where(User.role == role)
    return list(db.execute(query.order_by(User.name.asc())).scalars())


@router.get("/admin/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> UserOut:
    return _get_live_user(db, user_id)


@router.post("/admin/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserOut:
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    data = payload.model_dump(exclude={"password"})
    password = payload.password or get_settings().default_student_password
    user = User(**data, hashed_password=get_password_hash(password))
    db.add(user)
    db.flush()
    if user.schedules:
        _ensure_no_teacher_double_booking(db, user.id, user.schedules)

    log_activity(
        db,
        actor=current_user,
        action="user.created",
        entity_type="user",
        entity_id=user.id,
        summary=f"Created {user.role.value.lower()} {user.name}",
    )
    db.commit()
    db.refresh(user)
    return user


@router.put("/admin/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> UserOut:
    user = _get_live_user(db, user_id)
    data = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key not in _REQUIRED_FIELDS
    }

    if data.get("email") and _email_taken(db, data["email"], exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    password = data.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)

    if user.role != UserRole.student:
        data.pop("courses", None)
        data.pop("schedules", None)
    if user.role != UserRole.teacher:
        data.pop("course_expertise", None)

    if user.role == UserRole.student:
        courses = data.get("courses", user.courses) or []
        schedules = data.get("schedules", user.schedules) or []
        # Dropping a course drops its timing and teacher.
        schedules = [entry for entry in schedules if entry.get("course") in courses]
        if "courses" in data or "schedules" in data:
            _ensure_no_teacher_double_booking(db, user.id, schedules)
            data["schedules"] = schedules

    for key, value in data.items():
        setattr(user, key, value)

    log_activity(
        db,
        actor=current_user,
        action="user.updated",
        entity_type="user",
        entity_id=user.id,
        details={"fields": sorted(data)},
    )
    db.commit()
    db.refresh(user)
    return user


@router.delete("/admin/users/{user_id}")
def delete_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    user = _get_live_user(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    user.is_deleted = True
    user.deleted_at = datetime.now(timezone.utc)
    log_activity(db, actor=current_user, action="user.trashed", entity_type="user", entity_id=user.id)
    db.commit()
    return {"success": True}


@router.get("/admin/trash", response_model=list[TrashedUserOut])
def list_trash(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[TrashedUserOut]:
    query = select(User).where(User.is_deleted.is_(True)).order_by(User.deleted_at.desc())
    return list(db.execute(query).scalars())


@router.put("/admin/trash/{user_id}/restore", response_model=UserOut)
def restore_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> UserOut:
    user = db.get(User, user_id)
    if user is None or not user.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found in trash")
    user.is_deleted = False
    user.deleted_at = None
    log_activity(db, actor=current_user, action="user.restored", entity_type="user", entity_id=user.id)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/admin/users/{user_id}/permanent")
def delete_user_permanently(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not user.is_deleted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Move the user to trash first")

    for batch in db.execute(select(Batch)).scalars():
        changed = False
        schedule = []
        for entry in batch.schedule or []:
            ids = [item for item in entry.get("student_ids", []) if item != user.id]
            changed = changed or len(ids) != len(entry.get("student_ids", []))
            schedule.append({**entry, "student_ids": ids})
        if changed:
            batch.schedule = schedule
        if batch.teacher_id == user.id:
            batch.teacher_id = None

    log_activity(
        db,
        actor=current_user,
        action="user.deleted",
        entity_type="user",
        entity_id=user.id,
        summary=f"Permanently deleted {user.name}",
    )
    db.delete(user)
    db.commit()
    return {"success": True}


@router.get("/admin/stats", response_model=AdminStatsOut)
def admin_stats(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> AdminStatsOut:
    students = list(
        db.execute(select(User).where(User.role == UserRole.student, User.is_deleted.is_(False))).scalars()
    )
    teachers = db.execute(
        select(func.count()).select_from(User).where(User.role == UserRole.teacher, User.is_deleted.is_(False))
    ).scalar_one()

    def invoice_count(invoice_status: InvoiceStatus) -> int:
        return db.execute(
            select(func.count()).select_from(Invoice).where(Invoice.status == invoice_status)
        ).scalar_one()

    def preference_count(preference: ClassPreference) -> int:
        return sum(1 for student in students if student.class_preference == preference)

    return AdminStatsOut(
        total_students=len(students),
        total_teachers=teachers,
        active_students=sum(1 for student in students if student.status == UserStatus.active),
        online_preference=preference_count(ClassPreference.online),
        offline_preference=preference_count(ClassPreference.offline),
        hybrid_preference=preference_count(ClassPreference.hybrid),
        total_batches=db.execute(select(func.count()).select_from(Batch)).scalar_one(),
        total_courses=db.execute(select(func.count()).select_from(Course)).scalar_one(),
        pending_invoices=invoice_count(InvoiceStatus.pending),
        overdue_invoices=invoice_count(InvoiceStatus.overdue),
    )


@router.put("/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserOut:
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "name" and not value:
            continue
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return current_user
