"""Turns an admin's recipient selection into a deduplicated set of user ids."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from academy.models.user import UserRole


class RecipientMode(str, Enum):
    individual = "individual"
    group = "group"
    broadcast = "broadcast"


class BroadcastOption(str, Enum):
    all_students = "allStudents"
    all_teachers = "allTeachers"
    everyone = "everyone"


@dataclass
class RecipientDirectory:
    students: list[Any] = field(default_factory=list)
    teachers: list[Any] = field(default_factory=list)
    batches: list[Any] = field(default_factory=list)
    courses: list[Any] = field(default_factory=list)

    @classmethod
    def from_users(cls, users: Iterable[Any], batches: Iterable[Any], courses: Iterable[Any]) -> "RecipientDirectory":
        live = [user for user in users if not getattr(user, "is_deleted", False)]
        return cls(
            students=[user for user in live if user.role == UserRole.student],
            teachers=[user for user in live if user.role == UserRole.teacher],
            batches=list(batches),
            courses=list(courses),
        )


def _batch_members(directory: RecipientDirectory, batch_ids: Iterable[str]) -> set[str]:
    wanted = set(batch_ids)
    members: set[str] = set()
    for batch in directory.batches:
        if batch.id not in wanted:
            continue
        for entry in batch.schedule or []:
            members.update(entry.get("student_ids", []))
    return members


def _course_members(directory: RecipientDirectory, course_ids: Iterable[str]) -> set[str]:
    wanted = set(course_ids)
    names = {course.name for course in directory.courses if course.id in wanted}
    members: set[str] = set()
    for name in names:
        members.update(student.id for student in directory.students if name in (student.courses or []))
        members.update(teacher.id for teacher in directory.teachers if name in (teacher.course_expertise or []))
    return members


def resolve_recipients(mode: RecipientMode | str, selection: Any, directory: RecipientDirectory) -> set[str]:
    """Resolve ``selection`` under ``mode``.

    ``selection`` exposes ``student_ids``, ``teacher_ids``, ``batch_ids``,
    ``course_ids`` and ``broadcast``; only the fields relevant to ``mode`` are
    read. Unknown batch and course ids contribute nobody.
    """
    mode = RecipientMode(mode)
    recipients: set[str] = set()

    if mode == RecipientMode.individual:
        recipients.update(selection.student_ids or [])
        recipients.update(selection.teacher_ids or [])
    elif mode == RecipientMode.group:
        recipients |= _batch_members(directory, selection.batch_ids or [])
        recipients |= _course_members(directory, selection.course_ids or [])
    else:
        option = BroadcastOption(selection.broadcast) if selection.broadcast else None
        if option in (BroadcastOption.all_students, BroadcastOption.everyone):
            recipients.update(student.id for student in directory.students)
        if option in (BroadcastOption.all_teachers, BroadcastOption.everyone):
            recipients.update(teacher.id for teacher in directory.teachers)

    recipients.discard("")
    return recipients
