from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from academy.models.inquiry import ContactMethod, DemoBookingStatus


def _strip_required(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Field cannot be empty")
    return trimmed


class DemoBookingCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone_number: str = Field(min_length=5, max_length=50)
    country: str = Field(default="India", min_length=1, max_length=100)
    course_name: str = Field(min_length=1, max_length=200)
    course_id: str | None = Field(default=None, max_length=36)
    message: str | None = Field(default=None, max_length=4000)
    preferred_contact_method: ContactMethod | None = None
    source: str | None = Field(default=None, max_length=100)

    @field_validator("name", "phone_number", "country", "course_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class DemoBookingUpdate(BaseModel):
    status: DemoBookingStatus | None = None
    admin_notes: str | None = Field(default=None, max_length=4000)
    demo_scheduled_at: datetime | None = None


class DemoBookingOut(BaseModel):
    id: str
    name: str
    email: str
    phone_number: str
    country: str
    course_name: str
    course_id: str | None = None
    status: DemoBookingStatus
    message: str | None = None
    admin_notes: str | None = None
    preferred_contact_method: ContactMethod | None = None
    source: str | None = None
    contacted_at: datetime | None = None
    demo_scheduled_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DemoBookingStatsOut(BaseModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    this_month: int


class ContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(min_length=1, max_length=4000)
    subject: str | None = Field(default=None, max_length=300)
    phone: str | None = Field(default=None, max_length=50)

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ContactMessageOut(BaseModel):
    id: str
    name: str
    email: str
    subject: str | None = None
    phone: str | None = None
    message: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EmailCheckRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class EmailCheckOut(BaseModel):
    exists: bool
