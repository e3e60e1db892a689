from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from academy.models.batch import BatchMode
from academy.schemas.conflict import BatchConflict
from academy.services.timing_catalog import is_valid_timing


class BatchScheduleEntry(BaseModel):
    timing: str
    student_ids: list[str] = Field(default_factory=list)

    @field_validator("timing")
    @classmethod
    def validate_timing(cls, value: str) -> str:
        timing = " ".join(value.split())
        if not is_valid_timing(timing):
            raise ValueError(f"Unknown timing slot: {value}")
        return timing

    @field_validator("student_ids")
    @classmethod
    def dedupe_student_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(item for item in value if item))


def _reject_duplicate_timings(schedule: list[BatchScheduleEntry] | None) -> None:
    if not schedule:
        return
    timings = [entry.timing for entry in schedule]
    if len(set(timings)) != len(timings):
        raise ValueError("A batch cannot list the same timing twice")


class BatchBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    course_id: str = Field(min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)
    schedule: list[BatchScheduleEntry] = Field(default_factory=list, max_length=70)
    capacity: int | None = Field(default=None, ge=1, le=500)
    mode: BatchMode | None = None
    location_id: str | None = Field(default=None, max_length=36)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_batch(self) -> "BatchBase":
        _reject_duplicate_timings(self.schedule)
        if self.mode == BatchMode.online:
            self.location_id = None
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if not self.teacher_id:
            self.teacher_id = None
        return self


class BatchCreate(BatchBase):
    pass


class BatchUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)
    schedule: list[BatchScheduleEntry] | None = Field(default=None, max_length=70)
    capacity: int | None = Field(default=None, ge=1, le=500)
    mode: BatchMode | None = None
    location_id: str | None = Field(default=None, max_length=36)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def validate_schedule(self) -> "BatchUpdate":
        _reject_duplicate_timings(self.schedule)
        return self


class BatchOut(BaseModel):
    id: str
    name: str
    description: str
    course_id: str
    course_name: str
    teacher_id: str | None = None
    schedule: list[BatchScheduleEntry]
    capacity: int | None = None
    mode: BatchMode | None = None
    location_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RosterUpdate(BaseModel):
    student_ids: list[str] = Field(default_factory=list, max_length=500)


class RosterCandidate(BaseModel):
    student_id: str
    name: str
    father_name: str | None = None
    is_enrolled: bool
    is_available: bool
    conflicts: list[BatchConflict]


class TeacherAvailabilityRequest(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    timings: list[str] = Field(default_factory=list, max_length=70)
    exclude_batch_id: str | None = None


class TeacherSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class TeacherAvailabilityOut(BaseModel):
    course_name: str
    teachers_with_expertise: list[TeacherSummary]
    available_teachers: list[TeacherSummary]


class StudentEnrollmentOut(BaseModel):
    student_id: str
    batch_id: str
    batch_name: str
    course_name: str
    timings: list[str]
    teacher: TeacherSummary | None = None
    mode: BatchMode | None = None
    location_id: str | None = None
