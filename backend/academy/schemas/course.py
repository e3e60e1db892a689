from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CourseBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=4000)
    icon: str | None = Field(default=None, max_length=100)
    image: str | None = None
    icon_url: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Course name cannot be empty")
        return trimmed


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    icon: str | None = Field(default=None, max_length=100)
    image: str | None = None
    icon_url: str | None = None


class CourseOut(CourseBase):
    id: str
    created_at: datetime

    model_config = {"from_attributes": True}
