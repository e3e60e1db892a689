import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from academy.db.base import Base


class UserRole(str, Enum):
    student = "Student"
    teacher = "Teacher"
    admin = "Admin"


class ClassPreference(str, Enum):
    online = "Online"
    offline = "Offline"
    hybrid = "Hybrid"


class UserStatus(str, Enum):
    active = "Active"
    inactive = "Inactive"
    on_hold = "On Hold"
    graduated = "Graduated"


class Sex(str, Enum):
    male = "Male"
    female = "Female"
    other = "Other"


class EmploymentType(str, Enum):
    part_time = "Part-time"
    full_time = "Full-time"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False)
    status: Mapped[UserStatus] = mapped_column(
        SAEnum(UserStatus, name="user_status"), nullable=False, default=UserStatus.active
    )
    class_preference: Mapped[ClassPreference | None] = mapped_column(
        SAEnum(ClassPreference, name="class_preference"), nullable=True
    )

    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    sex: Mapped[Sex | None] = mapped_column(SAEnum(Sex, name="user_sex"), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    alternate_contact_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    date_of_joining: Mapped[date | None] = mapped_column(Date, nullable=True)
    location_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    schedules: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)

    # Student
    courses: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    father_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    standard: Mapped[str | None] = mapped_column(String(50), nullable=True)
    school_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Teacher
    course_expertise: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    educational_qualifications: Mapped[str | None] = mapped_column(Text, nullable=True)
    employment_type: Mapped[EmploymentType | None] = mapped_column(
        SAEnum(EmploymentType, name="employment_type"), nullable=True
    )
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
