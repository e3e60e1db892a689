from typing import Literal

from pydantic import BaseModel, Field, model_validator


class AssignmentRow(BaseModel):
    student_id: str
    student_name: str
    course: str
    timing: str | None = None
    teacher_id: str | None = None
    teacher_name: str | None = None
    is_assigned_to_teacher: bool
    has_conflict: bool
    booked_slots: dict[str, str] = Field(default_factory=dict)


class AssignmentChange(BaseModel):
    """One edit in an assignment session, applied in order.

    ``timing`` moves the student's course to a new slot (empty clears it).
    ``assign`` assigns the teacher the session belongs to, ``unassign``
    removes whoever is assigned.
    """

    student_id: str = Field(min_length=1, max_length=36)
    course: str = Field(min_length=1, max_length=200)
    action: Literal["timing", "assign", "unassign"]
    timing: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def validate_timing_payload(self) -> "AssignmentChange":
        if self.action == "timing" and self.timing is None:
            raise ValueError("timing is required when action is 'timing'")
        return self


class AssignmentChangeSet(BaseModel):
    changes: list[AssignmentChange] = Field(default_factory=list, max_length=500)
    search: str | None = Field(default=None, max_length=200)


class AssignmentPreviewOut(BaseModel):
    teacher_id: str
    teacher_name: str
    teacher_schedule: list[str]
    rows: list[AssignmentRow]


class AssignmentApplyOut(AssignmentPreviewOut):
    updated_student_ids: list[str]
