from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from academy.models.user import ClassPreference, EmploymentType, Sex, UserRole, UserStatus
from academy.services.schedules import validate_schedules


class CourseSchedule(BaseModel):
    course: str = Field(min_length=1, max_length=200)
    timing: str = Field(default="", max_length=100)
    teacher_id: str | None = Field(default=None, max_length=36)


def _normalize_names(value: list[str]) -> list[str]:
    return list(dict.fromkeys(item.strip() for item in value if item and item.strip()))


class UserProfileFields(BaseModel):
    class_preference: ClassPreference | None = None
    photo_url: str | None = None
    dob: date | None = None
    sex: Sex | None = None
    contact_number: str | None = Field(default=None, max_length=50)
    alternate_contact_number: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=1000)
    country: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    timezone: str | None = Field(default=None, max_length=64)
    location_id: str | None = Field(default=None, max_length=36)


class UserBase(UserProfileFields):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole
    status: UserStatus = UserStatus.active
    date_of_joining: date | None = None

    courses: list[str] = Field(default_factory=list, max_length=50)
    father_name: str | None = Field(default=None, max_length=200)
    standard: str | None = Field(default=None, max_length=50)
    school_name: str | None = Field(default=None, max_length=200)
    grade: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=4000)
    schedules: list[CourseSchedule] = Field(default_factory=list, max_length=50)

    course_expertise: list[str] = Field(default_factory=list, max_length=50)
    educational_qualifications: str | None = Field(default=None, max_length=2000)
    employment_type: EmploymentType | None = None
    years_of_experience: int | None = Field(default=None, ge=0, le=80)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("courses", "course_expertise")
    @classmethod
    def normalize_course_names(cls, value: list[str]) -> list[str]:
        return _normalize_names(value)

    @model_validator(mode="after")
    def validate_role_fields(self) -> "UserBase":
        if self.role == UserRole.student:
            schedules = validate_schedules(entry.model_dump() for entry in self.schedules)
            self.schedules = [CourseSchedule(**entry) for entry in schedules]
            self.course_expertise = []
        else:
            self.schedules = []
            self.courses = []
        if self.role != UserRole.teacher:
            self.course_expertise = []
        return self


class UserCreate(UserBase):
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserUpdate(UserProfileFields):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    status: UserStatus | None = None
    date_of_joining: date | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)

    courses: list[str] | None = Field(default=None, max_length=50)
    father_name: str | None = Field(default=None, max_length=200)
    standard: str | None = Field(default=None, max_length=50)
    school_name: str | None = Field(default=None, max_length=200)
    grade: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=4000)
    schedules: list[CourseSchedule] | None = Field(default=None, max_length=50)

    course_expertise: list[str] | None = Field(default=None, max_length=50)
    educational_qualifications: str | None = Field(default=None, max_length=2000)
    employment_type: EmploymentType | None = None
    years_of_experience: int | None = Field(default=None, ge=0, le=80)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else value

    @field_validator("courses", "course_expertise")
    @classmethod
    def normalize_course_names(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_names(value) if value is not None else None

    @field_validator("schedules")
    @classmethod
    def validate_schedule_entries(cls, value: list[CourseSchedule] | None) -> list[CourseSchedule] | None:
        if value is None:
            return None
        return [CourseSchedule(**entry) for entry in validate_schedules(item.model_dump() for item in value)]


class StudentRegister(UserProfileFields):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    courses: list[str] = Field(default_factory=list, max_length=50)
    father_name: str | None = Field(default=None, max_length=200)
    standard: str | None = Field(default=None, max_length=50)
    school_name: str | None = Field(default=None, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("courses")
    @classmethod
    def normalize_course_names(cls, value: list[str]) -> list[str]:
        return _normalize_names(value)


class FamilyStudentCreate(UserProfileFields):
    name: str = Field(min_length=1, max_length=200)
    courses: list[str] = Field(default_factory=list, max_length=50)
    standard: str | None = Field(default=None, max_length=50)
    school_name: str | None = Field(default=None, max_length=200)
    guardian_password: str = Field(min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("courses")
    @classmethod
    def normalize_course_names(cls, value: list[str]) -> list[str]:
        return _normalize_names(value)


class ProfileUpdate(UserProfileFields):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    father_name: str | None = Field(default=None, max_length=200)
    school_name: str | None = Field(default=None, max_length=200)
    educational_qualifications: str | None = Field(default=None, max_length=2000)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(UserProfileFields):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    date_of_joining: date | None = None
    courses: list[str]
    father_name: str | None = None
    standard: str | None = None
    school_name: str | None = None
    grade: str | None = None
    notes: str | None = None
    schedules: list[CourseSchedule]
    course_expertise: list[str]
    educational_qualifications: str | None = None
    employment_type: EmploymentType | None = None
    years_of_experience: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TrashedUserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    deleted_at: datetime | None = None

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserOut


class AdminStatsOut(BaseModel):
    total_students: int
    total_teachers: int
    active_students: int
    online_preference: int
    offline_preference: int
    hybrid_preference: int
    total_batches: int
    total_courses: int
    pending_invoices: int
    overdue_invoices: int
