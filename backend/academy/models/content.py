import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Float, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from academy.db.base import Base


class ContentType(str, Enum):
    event = "Event"
    grade_exam = "GradeExam"
    book_material = "BookMaterial"
    notice = "Notice"


class EventPriority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"


class EventCategory(str, Enum):
    general = "General"
    academic = "Academic"
    cultural = "Cultural"
    sports = "Sports"
    notice = "Notice"


class BookMaterialType(str, Enum):
    pdf = "PDF"
    video = "Video"
    youtube = "YouTube"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    time: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[EventPriority] = mapped_column(
        SAEnum(EventPriority, name="event_priority"), nullable=False, default=EventPriority.medium
    )
    event_type: Mapped[EventCategory] = mapped_column(
        SAEnum(EventCategory, name="event_category"), nullable=False, default=EventCategory.general
    )
    target_audience: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    recipient_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class Notice(Base):
    __tablename__ = "notices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    target_audience: Mapped[str | None] = mapped_column(String(200), nullable=True)
    course_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    recipient_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class BookMaterial(Base):
    __tablename__ = "book_materials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[BookMaterialType] = mapped_column(SAEnum(BookMaterialType, name="book_material_type"), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class GradeExam(Base):
    __tablename__ = "grade_exams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    exam_date: Mapped[date] = mapped_column(Date, nullable=False)
    time: Mapped[str | None] = mapped_column(String(50), nullable=True)
    duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    course: Mapped[str | None] = mapped_column(String(200), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    syllabus_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    registration_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    registration_deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    recipient_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


CONTENT_MODELS: dict[ContentType, type[Base]] = {
    ContentType.event: Event,
    ContentType.notice: Notice,
    ContentType.book_material: BookMaterial,
    ContentType.grade_exam: GradeExam,
}
