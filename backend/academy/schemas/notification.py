from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from academy.models.content import ContentType
from academy.models.notification import NotificationType
from academy.services.recipients import BroadcastOption, RecipientMode


class NotificationOut(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    notification_type: NotificationType
    link: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationReadAllOut(BaseModel):
    updated: int


class RecipientSelection(BaseModel):
    student_ids: list[str] = Field(default_factory=list, max_length=5000)
    teacher_ids: list[str] = Field(default_factory=list, max_length=5000)
    batch_ids: list[str] = Field(default_factory=list, max_length=1000)
    course_ids: list[str] = Field(default_factory=list, max_length=1000)
    broadcast: BroadcastOption | None = None


class RecipientResolveRequest(BaseModel):
    mode: RecipientMode
    selection: RecipientSelection = Field(default_factory=RecipientSelection)


class RecipientResolveOut(BaseModel):
    user_ids: list[str]
    count: int


def _clean_ids(value: list[str]) -> list[str]:
    return list(dict.fromkeys(item.strip() for item in value if item and item.strip()))


class AdminNotificationRequest(BaseModel):
    user_ids: list[str] = Field(default_factory=list, max_length=5000)
    subject: str = Field(min_length=1, max_length=300)
    message: str = Field(min_length=1, max_length=10000)
    send_email: bool = False

    @field_validator("user_ids")
    @classmethod
    def normalize_user_ids(cls, value: list[str]) -> list[str]:
        return _clean_ids(value)


class AdminNotificationOut(BaseModel):
    success: bool
    notified: int
    emailed: int


class ContentSendRequest(BaseModel):
    content_id: str = Field(min_length=1, max_length=36)
    content_type: ContentType
    user_ids: list[str] = Field(default_factory=list, max_length=5000)
    subject: str | None = Field(default=None, max_length=300)
    message: str | None = Field(default=None, max_length=10000)
    send_whatsapp: bool = False
    send_email: bool = True

    @field_validator("user_ids")
    @classmethod
    def normalize_user_ids(cls, value: list[str]) -> list[str]:
        return _clean_ids(value)


class ContentSendOut(BaseModel):
    success: bool
    message: str
    notified: int
    emailed: int
    whatsapp_sent: int
