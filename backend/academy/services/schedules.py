"""Per-student course schedules and the teacher assignment workspace.

A student's ``schedules`` holds at most one ``{course, timing, teacher_id}``
entry per course. The workspace layers pending edits over a snapshot of
users so that every check sees the edits made earlier in the same session.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Any

from academy.core.exceptions import AppError, ResourceNotFoundError, ScheduleConflictError
from academy.models.user import UserRole
from academy.schemas.assignment import AssignmentRow
from academy.schemas.conflict import AssignmentConflict, SlotConflict
from academy.services.timing_catalog import is_valid_timing

logger = logging.getLogger(__name__)


def booked_slots(schedules: Iterable[dict]) -> dict[str, str]:
    booked: dict[str, str] = {}
    for entry in schedules:
        if entry.get("timing"):
            booked[entry["timing"]] = entry["course"]
    return booked


def set_course_timing(schedules: Iterable[dict], course: str, timing: str) -> list[dict]:
    """Return new schedules with ``course`` moved to ``timing``.

    An empty timing drops the course entry, and with it any teacher.
    """
    updated = [dict(entry) for entry in schedules]
    index = next((i for i, entry in enumerate(updated) if entry.get("course") == course), None)
    if not timing:
        return [entry for entry in updated if entry.get("course") != course]
    if index is None:
        updated.append({"course": course, "timing": timing, "teacher_id": None})
    else:
        updated[index]["timing"] = timing
    return updated


def validate_schedules(schedules: Iterable[dict]) -> list[dict]:
    seen_courses: set[str] = set()
    owners: dict[str, str] = {}
    normalized: list[dict] = []
    for entry in schedules:
        course = (entry.get("course") or "").strip()
        timing = " ".join((entry.get("timing") or "").split())
        if not course:
            raise ValueError("Schedule entries require a course")
        if course in seen_courses:
            raise ValueError(f"Course {course} has more than one timing")
        seen_courses.add(course)
        if not timing:
            continue
        if not is_valid_timing(timing):
            raise ValueError(f"Unknown timing slot: {timing}")
        if timing in owners:
            raise ValueError(f"{timing} is already booked for {owners[timing]}")
        owners[timing] = course
        normalized.append({"course": course, "timing": timing, "teacher_id": entry.get("teacher_id") or None})
    return normalized


@dataclass
class PendingChange:
    timing: str | None = None
    teacher_id: str | None = None
    timing_changed: bool = False
    teacher_changed: bool = False


@dataclass(frozen=True)
class EffectiveSchedule:
    timing: str | None
    teacher_id: str | None


class AssignmentWorkspace:
    def __init__(self, users: Iterable[Any]):
        self.users = {user.id: user for user in users}
        self.students = [user for user in self.users.values() if user.role == UserRole.student]
        self._pending: dict[tuple[str, str], PendingChange] = {}

    def _student(self, student_id: str, course: str | None = None) -> Any:
        student = self.users.get(student_id)
        if student is None or student.role != UserRole.student:
            raise ResourceNotFoundError("Student", student_id)
        if course is not None and course not in (student.courses or []):
            raise AppError(f"{student.name} is not enrolled in {course}", status_code=400)
        return student

    def _stored_entry(self, student: Any, course: str) -> dict | None:
        return next((entry for entry in student.schedules or [] if entry.get("course") == course), None)

    def effective_schedule(self, student_id: str, course: str) -> EffectiveSchedule:
        student = self.users.get(student_id)
        stored = self._stored_entry(student, course) if student is not None else None
        pending = self._pending.get((student_id, course))

        timing = stored.get("timing") if stored else None
        teacher_id = (stored.get("teacher_id") or None) if stored else None
        if pending is not None and pending.timing_changed:
            timing = pending.timing
        if pending is not None and pending.teacher_changed:
            teacher_id = pending.teacher_id
        return EffectiveSchedule(timing=timing or None, teacher_id=teacher_id)

    def student_booked_slots(self, student_id: str) -> dict[str, str]:
        student = self.users.get(student_id)
        if student is None:
            return {}
        booked: dict[str, str] = {}
        for course in student.courses or []:
            timing = self.effective_schedule(student_id, course).timing
            if timing:
                booked[timing] = course
        return booked

    def teacher_schedule(self, teacher_id: str) -> set[str]:
        busy: set[str] = set()
        for student in self.students:
            for course in student.courses or []:
                effective = self.effective_schedule(student.id, course)
                if effective.timing and effective.teacher_id == teacher_id:
                    busy.add(effective.timing)
        return busy

    def _bookings_at(
        self,
        teacher_id: str,
        timing: str,
        *,
        skip_student_id: str | None = None,
        skip: tuple[str, str] | None = None,
    ) -> list[AssignmentConflict]:
        clashes: list[AssignmentConflict] = []
        for student in self.students:
            if student.id == skip_student_id:
                continue
            for course in student.courses or []:
                if (student.id, course) == skip:
                    continue
                effective = self.effective_schedule(student.id, course)
                if effective.teacher_id == teacher_id and effective.timing == timing:
                    clashes.append(
                        AssignmentConflict(
                            timing=timing,
                            teacher_id=teacher_id,
                            student_id=student.id,
                            student_name=student.name,
                            course=course,
                        )
                    )
        return clashes

    def teacher_conflicts(self, teacher_id: str, student_id: str, course: str) -> list[AssignmentConflict]:
        effective = self.effective_schedule(student_id, course)
        if not effective.timing or effective.teacher_id == teacher_id:
            return []
        return self._bookings_at(teacher_id, effective.timing, skip=(student_id, course))

    def schedule_conflicts(self, student_id: str, schedules: Iterable[dict]) -> list[AssignmentConflict]:
        """Teacher double-bookings that saving ``schedules`` for the student would create."""
        conflicts: list[AssignmentConflict] = []
        for entry in schedules:
            if entry.get("teacher_id") and entry.get("timing"):
                conflicts += self._bookings_at(entry["teacher_id"], entry["timing"], skip_student_id=student_id)
        return conflicts

    def _change(self, student_id: str, course: str) -> PendingChange:
        return self._pending.setdefault((student_id, course), PendingChange())

    def assign(self, student_id: str, course: str, teacher_id: str | None) -> None:
        student = self._student(student_id, course)
        if teacher_id is None:
            change = self._change(student_id, course)
            change.teacher_id = None
            change.teacher_changed = True
            return

        teacher = self.users.get(teacher_id)
        if teacher is None or teacher.role != UserRole.teacher:
            raise ResourceNotFoundError("Teacher", teacher_id)
        if not self.effective_schedule(student_id, course).timing:
            raise AppError(f"{student.name} has no timing for {course}", status_code=400)

        conflicts = self.teacher_conflicts(teacher_id, student_id, course)
        if conflicts:
            raise ScheduleConflictError(
                f"{teacher.name} already teaches another student at {conflicts[0].timing}",
                [conflict.model_dump() for conflict in conflicts],
            )
        change = self._change(student_id, course)
        change.teacher_id = teacher_id
        change.teacher_changed = True

    def change_timing(self, student_id: str, course: str, new_timing: str) -> None:
        student = self._student(student_id, course)
        new_timing = " ".join((new_timing or "").split())
        if new_timing and not is_valid_timing(new_timing):
            raise AppError(f"Unknown timing slot: {new_timing}", status_code=400)

        owner = self.student_booked_slots(student_id).get(new_timing) if new_timing else None
        if owner and owner != course:
            conflict = SlotConflict(timing=new_timing, student_id=student_id, course=owner)
            raise ScheduleConflictError(
                f"{student.name} is already booked for {owner} at {new_timing}",
                [conflict.model_dump()],
            )

        current_teacher_id = self.effective_schedule(student_id, course).teacher_id
        change = self._change(student_id, course)
        change.timing = new_timing
        change.timing_changed = True

        if not new_timing:
            change.teacher_id = None
            change.teacher_changed = True
        elif current_teacher_id and self._bookings_at(current_teacher_id, new_timing, skip_student_id=student_id):
            # Moving into a slot the teacher already uses elsewhere drops the teacher.
            logger.info(
                "Unassigned teacher %s from %s/%s after timing change to %s",
                current_teacher_id,
                student_id,
                course,
                new_timing,
            )
            change.teacher_id = None
            change.teacher_changed = True

    def assignment_rows(self, teacher: Any, *, search: str | None = None) -> list[AssignmentRow]:
        expertise = teacher.course_expertise or []
        query = (search or "").strip().lower()
        busy = self.teacher_schedule(teacher.id)
        rows: list[AssignmentRow] = []
        for student in self.students:
            if query and query not in student.name.lower():
                continue
            for course in expertise:
                if course not in (student.courses or []):
                    continue
                effective = self.effective_schedule(student.id, course)
                assigned = self.users.get(effective.teacher_id) if effective.teacher_id else None
                is_mine = effective.teacher_id == teacher.id
                rows.append(
                    AssignmentRow(
                        student_id=student.id,
                        student_name=student.name,
                        course=course,
                        timing=effective.timing,
                        teacher_id=effective.teacher_id,
                        teacher_name=assigned.name if assigned is not None else None,
                        is_assigned_to_teacher=is_mine,
                        has_conflict=bool(effective.timing) and effective.timing in busy and not is_mine,
                        booked_slots=self.student_booked_slots(student.id),
                    )
                )
        return rows

    def touched_student_ids(self) -> list[str]:
        return list(dict.fromkeys(student_id for student_id, _ in self._pending))

    def resulting_schedules(self, student_id: str) -> list[dict]:
        student = self._student(student_id)
        stored = [entry.get("course") for entry in student.schedules or []]
        courses = list(dict.fromkeys(stored + list(student.courses or [])))
        result: list[dict] = []
        for course in courses:
            if not course:
                continue
            effective = self.effective_schedule(student_id, course)
            if effective.timing:
                result.append({"course": course, "timing": effective.timing, "teacher_id": effective.teacher_id})
        return result
