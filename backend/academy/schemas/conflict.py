from pydantic import BaseModel


class BatchConflict(BaseModel):
    """Why a student cannot join a batch at a given timing."""

    timing: str
    batch_id: str
    batch_name: str
    teacher_name: str


class AssignmentConflict(BaseModel):
    """A teacher already teaches another student at this timing."""

    timing: str
    teacher_id: str
    student_id: str
    student_name: str
    course: str


class SlotConflict(BaseModel):
    """The student already holds this timing for a different course."""

    timing: str
    student_id: str
    course: str
