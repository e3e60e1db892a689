from datetime import date, datetime

from pydantic import BaseModel, Field

from academy.models.content import BookMaterialType, EventCategory, EventPriority


class EventImage(BaseModel):
    url: str
    caption: str | None = Field(default=None, max_length=300)


class EventBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(default="", max_length=10000)
    event_date: date
    time: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=300)
    is_public: bool = False
    is_active: bool = True
    priority: EventPriority = EventPriority.medium
    event_type: EventCategory = EventCategory.general
    target_audience: list[str] = Field(default_factory=list, max_length=20)
    images: list[EventImage] = Field(default_factory=list, max_length=20)
    recipient_ids: list[str] = Field(default_factory=list, max_length=5000)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=10000)
    event_date: date | None = None
    time: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=300)
    is_public: bool | None = None
    is_active: bool | None = None
    priority: EventPriority | None = None
    event_type: EventCategory | None = None
    target_audience: list[str] | None = Field(default=None, max_length=20)
    images: list[EventImage] | None = Field(default=None, max_length=20)
    recipient_ids: list[str] | None = Field(default=None, max_length=5000)


class EventOut(EventBase):
    id: str
    created_by: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NoticeBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1, max_length=10000)
    target_audience: str | None = Field(default=None, max_length=200)
    course_name: str | None = Field(default=None, max_length=200)
    recipient_ids: list[str] = Field(default_factory=list, max_length=5000)


class NoticeUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = Field(default=None, min_length=1, max_length=10000)
    target_audience: str | None = Field(default=None, max_length=200)
    course_name: str | None = Field(default=None, max_length=200)
    recipient_ids: list[str] | None = Field(default=None, max_length=5000)


class NoticeOut(NoticeBase):
    id: str
    issued_at: datetime

    model_config = {"from_attributes": True}


class BookMaterialBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(default="", max_length=4000)
    course_id: str = Field(min_length=1, max_length=36)
    type: BookMaterialType
    url: str = Field(min_length=1)
    recipient_ids: list[str] = Field(default_factory=list, max_length=5000)


class BookMaterialUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=4000)
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    type: BookMaterialType | None = None
    url: str | None = Field(default=None, min_length=1)
    recipient_ids: list[str] | None = Field(default=None, max_length=5000)


class BookMaterialOut(BookMaterialBase):
    id: str
    course_name: str
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class GradeExamBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(default="", max_length=10000)
    exam_date: date
    time: str | None = Field(default=None, max_length=50)
    duration: str | None = Field(default=None, max_length=50)
    course: str | None = Field(default=None, max_length=200)
    grade: str | None = Field(default=None, max_length=50)
    syllabus_url: str | None = None
    registration_fee: float | None = Field(default=None, ge=0)
    registration_deadline: date | None = None
    is_open: bool = True
    recipient_ids: list[str] = Field(default_factory=list, max_length=5000)


class GradeExamUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=10000)
    exam_date: date | None = None
    time: str | None = Field(default=None, max_length=50)
    duration: str | None = Field(default=None, max_length=50)
    course: str | None = Field(default=None, max_length=200)
    grade: str | None = Field(default=None, max_length=50)
    syllabus_url: str | None = None
    registration_fee: float | None = Field(default=None, ge=0)
    registration_deadline: date | None = None
    is_open: bool | None = None
    recipient_ids: list[str] | None = Field(default=None, max_length=5000)


class GradeExamOut(GradeExamBase):
    id: str
    created_at: datetime

    model_config = {"from_attributes": True}
