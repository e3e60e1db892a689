import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_db, require_admin
from academy.models.batch import Batch
from academy.models.course import Course
from academy.models.fee import FeeStructure
from academy.models.user import User
from academy.schemas.course import CourseCreate, CourseOut, CourseUpdate
from academy.services.audit import log_activity

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _name_taken(db: Session, name: str, *, exclude_id: str | None = None) -> bool:
    query = select(Course.id).where(Course.name == name)
    if exclude_id:
        query = query.where(Course.id != exclude_id)
    return db.execute(query).first() is not None


def _rename_in_users(db: Session, old_name: str, new_name: str) -> int:
    """Rewrite a course name in enrolments, expertise and per-course schedules.

    JSON columns are reassigned rather than mutated so the change is flushed.
    """
    renamed = 0
    for user in db.execute(select(User).where(User.is_deleted.is_(False))).scalars():
        courses = [new_name if name == old_name else name for name in user.courses or []]
        expertise = [new_name if name == old_name else name for name in user.course_expertise or []]
        schedules = [
            {**entry, "course": new_name} if entry.get("course") == old_name else dict(entry)
            for entry in user.schedules or []
        ]
        if courses == (user.courses or []) and expertise == (user.course_expertise or []) and schedules == (
            user.schedules or []
        ):
            continue
        user.courses = courses
        user.course_expertise = expertise
        user.schedules = schedules
        renamed += 1
    return renamed


@router.get("/courses", response_model=list[CourseOut])
def list_courses(db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.name.asc())).scalars())


@router.get("/admin/courses", response_model=list[CourseOut])
def admin_list_courses(current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.name.asc())).scalars())


@router.post("/admin/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> CourseOut:
    if _name_taken(db, payload.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course name already exists")
    course = Course(**payload.model_dump())
    db.add(course)
    db.flush()
    log_activity(db, actor=current_user, action="course.created", entity_type="course", entity_id=course.id)
    db.commit()
    db.refresh(course)
    return course


@router.put("/admin/courses/{course_id}", response_model=CourseOut)
def update_course(
    course_id: str,
    payload: CourseUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = _get_course(db, course_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in data:
        data["name"] = data["name"].strip()
        if _name_taken(db, data["name"], exclude_id=course.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course name already exists")

    # Batches, fee structures and user records carry the course name; keep them in step.
    if data.get("name") and data["name"] != course.name:
        for batch in db.execute(select(Batch).where(Batch.course_id == course.id)).scalars():
            batch.course_name = data["name"]
        for structure in db.execute(select(FeeStructure).where(FeeStructure.course_id == course.id)).scalars():
            structure.course_name = data["name"]
        renamed = _rename_in_users(db, course.name, data["name"])
        if renamed:
            logger.info("Renamed course %r to %r on %d user(s)", course.name, data["name"], renamed)

    for key, value in data.items():
        setattr(course, key, value)
    log_activity(db, actor=current_user, action="course.updated", entity_type="course", entity_id=course.id)
    db.commit()
    db.refresh(course)
    return course


@router.delete("/admin/courses/{course_id}")
def delete_course(course_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    course = _get_course(db, course_id)
    in_use = db.execute(select(Batch.id).where(Batch.course_id == course.id)).first()
    if in_use is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course still has batches")
    log_activity(db, actor=current_user, action="course.deleted", entity_type="course", entity_id=course.id)
    db.delete(course)
    db.commit()
    return {"success": True}
