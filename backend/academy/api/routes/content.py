from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy.api.deps import get_current_user, get_db, require_admin
from academy.models.content import BookMaterial, ContentType, Event, GradeExam, Notice
from academy.models.course import Course
from academy.models.user import User, UserRole
from academy.schemas.content import (
    BookMaterialBase,
    BookMaterialOut,
    BookMaterialUpdate,
    EventBase,
    EventOut,
    EventUpdate,
    GradeExamBase,
    GradeExamOut,
    GradeExamUpdate,
    NoticeBase,
    NoticeOut,
    NoticeUpdate,
)
from academy.services.audit import log_activity

router = APIRouter()


def _with_course_name(db: Session, data: dict) -> dict:
    if data.get("course_id"):
        course = db.get(Course, data["course_id"])
        if course is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        data["course_name"] = course.name
    return data


def _unchanged(db: Session, data: dict) -> dict:
    return data


def _visible_to(user: User, item: Any) -> bool:
    if user.role == UserRole.admin:
        return True
    if isinstance(item, Event) and item.is_public and item.is_active:
        return True
    return user.id in (item.recipient_ids or [])


def register_content_routes(
    path: str,
    model: type,
    content_type: ContentType,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
    *,
    order_by: Any,
    prepare: Callable[[Session, dict], dict] = _unchanged,
) -> None:
    """Add the member listing and admin CRUD endpoints for one content type."""
    label = content_type.value
    entity_type = label.lower()

    def get_item(db: Session, item_id: str) -> Any:
        item = db.get(model, item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return item

    @router.get(f"/{path}", response_model=list[out_schema], name=f"list_{entity_type}_for_member")
    def list_for_member(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
        items = db.execute(select(model).order_by(order_by.desc())).scalars()
        return [item for item in items if _visible_to(current_user, item)]

    @router.get(f"/admin/{path}", response_model=list[out_schema], name=f"list_{entity_type}")
    def list_all(current_user: User = Depends(require_admin), db: Session = Depends(get_db)):
        return list(db.execute(select(model).order_by(order_by.desc())).scalars())

    @router.post(
        f"/admin/{path}",
        response_model=out_schema,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{entity_type}",
    )
    def create_item(
        payload: create_schema,
        current_user: User = Depends(require_admin),
        db: Session = Depends(get_db),
    ):
        data = prepare(db, payload.model_dump())
        if model is Event:
            data["created_by"] = current_user.id
        item = model(**data)
        db.add(item)
        db.flush()
        log_activity(db, actor=current_user, action=f"{entity_type}.created", entity_type=entity_type, entity_id=item.id)
        db.commit()
        db.refresh(item)
        return item

    @router.put(f"/admin/{path}/{{item_id}}", response_model=out_schema, name=f"update_{entity_type}")
    def update_item(
        item_id: str,
        payload: update_schema,
        current_user: User = Depends(require_admin),
        db: Session = Depends(get_db),
    ):
        item = get_item(db, item_id)
        data = prepare(db, payload.model_dump(exclude_unset=True, exclude_none=True))
        for key, value in data.items():
            setattr(item, key, value)
        log_activity(db, actor=current_user, action=f"{entity_type}.updated", entity_type=entity_type, entity_id=item.id)
        db.commit()
        db.refresh(item)
        return item

    @router.delete(f"/admin/{path}/{{item_id}}", name=f"delete_{entity_type}")
    def delete_item(item_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
        item = get_item(db, item_id)
        log_activity(db, actor=current_user, action=f"{entity_type}.deleted", entity_type=entity_type, entity_id=item.id)
        db.delete(item)
        db.commit()
        return {"success": True}


register_content_routes(
    "events", Event, ContentType.event, EventBase, EventUpdate, EventOut, order_by=Event.event_date
)
register_content_routes(
    "notices", Notice, ContentType.notice, NoticeBase, NoticeUpdate, NoticeOut, order_by=Notice.issued_at
)
register_content_routes(
    "book-materials",
    BookMaterial,
    ContentType.book_material,
    BookMaterialBase,
    BookMaterialUpdate,
    BookMaterialOut,
    order_by=BookMaterial.uploaded_at,
    prepare=_with_course_name,
)
register_content_routes(
    "grade-exams",
    GradeExam,
    ContentType.grade_exam,
    GradeExamBase,
    GradeExamUpdate,
    GradeExamOut,
    order_by=GradeExam.exam_date,
)
