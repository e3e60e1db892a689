import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db, require_admin
from academy.core.exceptions import ScheduleConflictError
from academy.models.batch import Batch
from academy.models.course import Course
from academy.models.notification import NotificationType
from academy.models.user import User, UserRole
from academy.schemas.batch import (
    BatchCreate,
    BatchOut,
    BatchUpdate,
    RosterCandidate,
    RosterUpdate,
    StudentEnrollmentOut,
    TeacherAvailabilityOut,
    TeacherAvailabilityRequest,
    TeacherSummary,
)
from academy.services.audit import log_activity
from academy.services.conflict_service import ScheduleConflictService, batch_student_ids, batch_timings
from academy.services.notifications import notify_users
from academy.services.timing_catalog import sort_timings

router = APIRouter()
logger = logging.getLogger(__name__)


def conflict_service_for(db: Session) -> ScheduleConflictService:
    batches = db.execute(select(Batch)).scalars().all()
    teachers = db.execute(
        select(User).where(User.role == UserRole.teacher, User.is_deleted.is_(False))
    ).scalars().all()
    return ScheduleConflictService(batches, teachers)


def _get_batch(db: Session, batch_id: str) -> Batch:
    batch = db.get(Batch, batch_id)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    return batch


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _schedule_pairs(schedule: list[dict]) -> set[tuple[str, str]]:
    return {(student_id, entry["timing"]) for entry in schedule for student_id in entry.get("student_ids", [])}


def _check_teacher(
    service: ScheduleConflictService,
    db: Session,
    *,
    teacher_id: str | None,
    course_name: str,
    timings: set[str],
    batch_id: str | None,
) -> None:
    if not teacher_id:
        return
    teacher = db.get(User, teacher_id)
    if teacher is None or teacher.is_deleted or teacher.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    if course_name not in (teacher.course_expertise or []):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{teacher.name} does not teach {course_name}",
        )
    conflicts = service.teacher_conflicts(teacher_id, timings, exclude_batch_id=batch_id)
    if conflicts:
        raise ScheduleConflictError(
            f"{teacher.name} already teaches {conflicts[0].batch_name} at {conflicts[0].timing}",
            [conflict.model_dump() for conflict in conflicts],
        )


def _check_new_students(
    service: ScheduleConflictService,
    *,
    batch_id: str | None,
    schedule: list[dict],
    previous: list[dict] | None = None,
) -> None:
    """Block students newly placed at a timing they already hold in another batch.

    Students already enrolled at a timing keep their place even if another
    batch has since claimed that slot.
    """
    added = _schedule_pairs(schedule) - _schedule_pairs(previous or [])
    timings_by_student: dict[str, set[str]] = {}
    for student_id, timing in added:
        timings_by_student.setdefault(student_id, set()).add(timing)

    conflicts = []
    for student_id, timings in timings_by_student.items():
        for conflict in service.student_conflicts(student_id, timings, exclude_batch_id=batch_id):
            conflicts.append({"student_id": student_id, **conflict.model_dump()})
    if conflicts:
        raise ScheduleConflictError(
            f"{len({item['student_id'] for item in conflicts})} student(s) are already booked at these timings",
            conflicts,
        )


def _notify_added_students(db: Session, batch: Batch, student_ids: set[str]) -> None:
    if not student_ids:
        return
    timings = ", ".join(sort_timings(batch_timings(batch))) or "timings to be announced"
    notify_users(
        db,
        user_ids=sorted(student_ids),
        title=f"Added to {batch.name}",
        message=f"You have been enrolled in {batch.name} ({batch.course_name}): {timings}.",
        notification_type=NotificationType.schedule,
    )


@router.get("/admin/batches", response_model=list[BatchOut])
def list_batches(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[BatchOut]:
    return list(db.execute(select(Batch).order_by(Batch.name.asc())).scalars())


@router.post("/admin/batches", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
def create_batch(
    payload: BatchCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> BatchOut:
    course = _get_course(db, payload.course_id)
    schedule = [entry.model_dump() for entry in payload.schedule]
    timings = {entry["timing"] for entry in schedule}

    service = conflict_service_for(db)
    _check_teacher(service, db, teacher_id=payload.teacher_id, course_name=course.name, timings=timings, batch_id=None)
    _check_new_students(service, batch_id=None, schedule=schedule)

    batch = Batch(**payload.model_dump(exclude={"schedule"}), course_name=course.name, schedule=schedule)
    db.add(batch)
    db.flush()
    _notify_added_students(db, batch, batch_student_ids(batch))
    log_activity(
        db,
        actor=current_user,
        action="batch.created",
        entity_type="batch",
        entity_id=batch.id,
        summary=f"Created batch {batch.name} for {course.name}",
    )
    db.commit()
    db.refresh(batch)
    return batch


@router.put("/admin/batches/{batch_id}", response_model=BatchOut)
def update_batch(
    batch_id: str,
    payload: BatchUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> BatchOut:
    batch = _get_batch(db, batch_id)
    data = payload.model_dump(exclude_unset=True)

    course_name = batch.course_name
    if data.get("course_id") and data["course_id"] != batch.course_id:
        course_name = _get_course(db, data["course_id"]).name
        data["course_name"] = course_name
    elif "course_id" in data and not data["course_id"]:
        data.pop("course_id")

    previous = [dict(entry) for entry in batch.schedule or []]
    schedule = data.pop("schedule", None)
    if schedule is None:
        schedule = previous
    timings = {entry["timing"] for entry in schedule}
    teacher_id = data["teacher_id"] if "teacher_id" in data else batch.teacher_id

    service = conflict_service_for(db)
    _check_teacher(service, db, teacher_id=teacher_id or None, course_name=course_name, timings=timings, batch_id=batch.id)
    _check_new_students(service, batch_id=batch.id, schedule=schedule, previous=previous)

    if data.get("mode") == "Online":
        data["location_id"] = None
    for key, value in data.items():
        if value is None and key in {"name", "description", "is_active"}:
            continue
        setattr(batch, key, value)
    batch.teacher_id = teacher_id or None
    batch.schedule = schedule

    added = {student_id for student_id, _ in _schedule_pairs(schedule)} - {
        student_id for student_id, _ in _schedule_pairs(previous)
    }
    _notify_added_students(db, batch, added)
    log_activity(db, actor=current_user, action="batch.updated", entity_type="batch", entity_id=batch.id)
    db.commit()
    db.refresh(batch)
    return batch


@router.delete("/admin/batches/{batch_id}")
def delete_batch(batch_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    batch = _get_batch(db, batch_id)
    log_activity(
        db,
        actor=current_user,
        action="batch.deleted",
        entity_type="batch",
        entity_id=batch.id,
        summary=f"Deleted batch {batch.name}",
    )
    db.delete(batch)
    db.commit()
    return {"success": True}


@router.get("/admin/batches/{batch_id}/candidates", response_model=list[RosterCandidate])
def roster_candidates(
    batch_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[RosterCandidate]:
    batch = _get_batch(db, batch_id)
    students = db.execute(
        select(User)
        .where(User.role == UserRole.student, User.is_deleted.is_(False))
        .order_by(User.name.asc())
    ).scalars()
    return conflict_service_for(db).roster_candidates(batch, students)


@router.put("/admin/batches/{batch_id}/roster", response_model=BatchOut)
def update_roster(
    batch_id: str,
    payload: RosterUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> BatchOut:
    batch = _get_batch(db, batch_id)
    student_ids = list(dict.fromkeys(item for item in payload.student_ids if item))
    previous = [dict(entry) for entry in batch.schedule or []]
    # Rosters live on schedule entries, so a batch without timings cannot hold students.
    if student_ids and not previous:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Add at least one timing to {batch.name} before enrolling students",
        )
    schedule = [{"timing": entry["timing"], "student_ids": list(student_ids)} for entry in previous]

    _check_new_students(conflict_service_for(db), batch_id=batch.id, schedule=schedule, previous=previous)

    enrolled_before = batch_student_ids(batch)
    batch.schedule = schedule
    enrolled_after = batch_student_ids(batch)
    _notify_added_students(db, batch, enrolled_after - enrolled_before)
    log_activity(
        db,
        actor=current_user,
        action="batch.roster_updated",
        entity_type="batch",
        entity_id=batch.id,
        details={
            "added": sorted(enrolled_after - enrolled_before),
            "removed": sorted(enrolled_before - enrolled_after),
        },
    )
    db.commit()
    db.refresh(batch)
    return batch


@router.post("/admin/batches/teacher-availability", response_model=TeacherAvailabilityOut)
def teacher_availability(
    payload: TeacherAvailabilityRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TeacherAvailabilityOut:
    course = _get_course(db, payload.course_id)
    service = conflict_service_for(db)
    return TeacherAvailabilityOut(
        course_name=course.name,
        teachers_with_expertise=[
            TeacherSummary.model_validate(teacher) for teacher in service.teachers_with_expertise(course.name)
        ],
        available_teachers=[
            TeacherSummary.model_validate(teacher)
            for teacher in service.available_teachers(
                course.name,
                payload.timings,
                exclude_batch_id=payload.exclude_batch_id,
            )
        ],
    )


def enrollments_for(db: Session, user: User) -> list[StudentEnrollmentOut]:
    """Active batches a student sits in, or a teacher runs."""
    batches = db.execute(select(Batch).where(Batch.is_active.is_(True)).order_by(Batch.name.asc())).scalars().all()
    teacher_ids = {batch.teacher_id for batch in batches if batch.teacher_id}
    teachers = {}
    if teacher_ids:
        teachers = {teacher.id: teacher for teacher in db.execute(select(User).where(User.id.in_(teacher_ids))).scalars()}

    enrollments: list[StudentEnrollmentOut] = []
    for batch in batches:
        if user.role == UserRole.teacher:
            if batch.teacher_id != user.id:
                continue
            timings = batch_timings(batch)
        else:
            timings = {
                entry["timing"] for entry in batch.schedule or [] if user.id in entry.get("student_ids", [])
            }
            if not timings:
                continue
        teacher = teachers.get(batch.teacher_id)
        enrollments.append(
            StudentEnrollmentOut(
                student_id=user.id,
                batch_id=batch.id,
                batch_name=batch.name,
                course_name=batch.course_name,
                timings=sort_timings(timings),
                teacher=TeacherSummary.model_validate(teacher) if teacher is not None else None,
                mode=batch.mode,
                location_id=batch.location_id,
            )
        )
    return enrollments


@router.get("/student/enrollments", response_model=list[StudentEnrollmentOut])
def my_enrollments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[StudentEnrollmentOut]:
    return enrollments_for(db, current_user)
