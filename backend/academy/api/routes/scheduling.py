import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_db, require_admin
from academy.models.notification import NotificationType
from academy.models.user import User, UserRole
from academy.schemas.assignment import AssignmentApplyOut, AssignmentChangeSet, AssignmentPreviewOut
from academy.services.audit import log_activity
from academy.services.notifications import notify_users
from academy.services.schedules import AssignmentWorkspace
from academy.services.timing_catalog import ALL_TIMINGS, TIME_SLOTS, WEEKDAYS, catalog_by_day, sort_timings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/timings")
def list_timings() -> dict:
    return {
        "weekdays": list(WEEKDAYS),
        "time_slots": list(TIME_SLOTS),
        "by_day": catalog_by_day(),
        "all": list(ALL_TIMINGS),
    }


def _load_workspace(db: Session) -> AssignmentWorkspace:
    users = db.execute(
        select(User).where(User.is_deleted.is_(False), User.role != UserRole.admin)
    ).scalars()
    return AssignmentWorkspace(users)


def _get_teacher(workspace: AssignmentWorkspace, teacher_id: str) -> User:
    teacher = workspace.users.get(teacher_id)
    if teacher is None or teacher.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return teacher


def _apply_changes(workspace: AssignmentWorkspace, teacher: User, payload: AssignmentChangeSet) -> None:
    for change in payload.changes:
        if change.action == "timing":
            workspace.change_timing(change.student_id, change.course, change.timing or "")
        elif change.action == "assign":
            workspace.assign(change.student_id, change.course, teacher.id)
        else:
            workspace.assign(change.student_id, change.course, None)


def _preview(workspace: AssignmentWorkspace, teacher: User, search: str | None) -> dict:
    return {
        "teacher_id": teacher.id,
        "teacher_name": teacher.name,
        "teacher_schedule": sort_timings(workspace.teacher_schedule(teacher.id)),
        "rows": workspace.assignment_rows(teacher, search=search),
    }


@router.get("/admin/teachers/{teacher_id}/assignments", response_model=AssignmentPreviewOut)
def teacher_assignments(
    teacher_id: str,
    search: str | None = Query(default=None, max_length=200),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentPreviewOut:
    workspace = _load_workspace(db)
    teacher = _get_teacher(workspace, teacher_id)
    return AssignmentPreviewOut(**_preview(workspace, teacher, search))


@router.post("/admin/teachers/{teacher_id}/assignments/preview", response_model=AssignmentPreviewOut)
def preview_assignments(
    teacher_id: str,
    payload: AssignmentChangeSet,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentPreviewOut:
    workspace = _load_workspace(db)
    teacher = _get_teacher(workspace, teacher_id)
    _apply_changes(workspace, teacher, payload)
    return AssignmentPreviewOut(**_preview(workspace, teacher, payload.search))


@router.post("/admin/teachers/{teacher_id}/assignments", response_model=AssignmentApplyOut)
def apply_assignments(
    teacher_id: str,
    payload: AssignmentChangeSet,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AssignmentApplyOut:
    workspace = _load_workspace(db)
    teacher = _get_teacher(workspace, teacher_id)
    _apply_changes(workspace, teacher, payload)

    updated = workspace.touched_student_ids()
    for student_id in updated:
        workspace.users[student_id].schedules = workspace.resulting_schedules(student_id)

    taught = sorted(
        {row.student_id for row in workspace.assignment_rows(teacher) if row.is_assigned_to_teacher} & set(updated)
    )
    if taught:
        notify_users(
            db,
            user_ids=[*taught, teacher.id],
            title="Class schedule updated",
            message=f"Your class schedule with {teacher.name} has been updated.",
            notification_type=NotificationType.schedule,
        )
    log_activity(
        db,
        actor=current_user,
        action="assignments.saved",
        entity_type="teacher",
        entity_id=teacher.id,
        summary=f"Saved {len(payload.changes)} assignment change(s) for {teacher.name}",
        details={"students": updated},
    )
    # Every touched student is written in one commit.
    db.commit()
    logger.info("Saved assignments for teacher %s across %d student(s)", teacher.id, len(updated))
    return AssignmentApplyOut(**_preview(workspace, teacher, payload.search), updated_student_ids=updated)
