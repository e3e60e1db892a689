from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from academy.schemas.batch import RosterCandidate
from academy.schemas.conflict import BatchConflict


def batch_timings(batch: Any) -> set[str]:
    return {entry["timing"] for entry in batch.schedule or [] if entry.get("timing")}


def batch_student_ids(batch: Any) -> set[str]:
    return {student_id for entry in batch.schedule or [] for student_id in entry.get("student_ids", [])}


class ScheduleConflictService:
    """Student and teacher double-booking checks against a batch snapshot.

    The snapshot is whatever the caller loaded for this request; the checks
    are recomputed from scratch on every call.
    """

    def __init__(self, batches: Iterable[Any], teachers: Iterable[Any]):
        self.batches = list(batches)
        self.teachers = list(teachers)
        self.teacher_names = {teacher.id: teacher.name for teacher in self.teachers}

    def _teacher_name(self, teacher_id: str | None) -> str:
        if not teacher_id:
            return "N/A"
        return self.teacher_names.get(teacher_id, "N/A")

    def student_conflicts(
        self,
        student_id: str,
        candidate_timings: Iterable[str],
        *,
        exclude_batch_id: str | None = None,
    ) -> list[BatchConflict]:
        candidates = set(candidate_timings)
        if not candidates:
            return []

        conflicts: list[BatchConflict] = []
        for batch in self.batches:
            if batch.id == exclude_batch_id:
                continue
            for entry in batch.schedule or []:
                if entry.get("timing") in candidates and student_id in entry.get("student_ids", []):
                    conflicts.append(
                        BatchConflict(
                            timing=entry["timing"],
                            batch_id=batch.id,
                            batch_name=batch.name,
                            teacher_name=self._teacher_name(batch.teacher_id),
                        )
                    )
        return conflicts

    def is_student_available(
        self,
        student_id: str,
        candidate_timings: Iterable[str],
        *,
        exclude_batch_id: str | None = None,
    ) -> bool:
        return not self.student_conflicts(student_id, candidate_timings, exclude_batch_id=exclude_batch_id)

    def student_booked_timings(self, student_id: str, *, exclude_batch_id: str | None = None) -> set[str]:
        booked: set[str] = set()
        for batch in self.batches:
            if batch.id == exclude_batch_id:
                continue
            for entry in batch.schedule or []:
                if student_id in entry.get("student_ids", []):
                    booked.add(entry["timing"])
        return booked

    def roster_conflicts(
        self,
        *,
        batch_id: str | None,
        timings: Iterable[str],
        student_ids: Iterable[str],
    ) -> dict[str, list[BatchConflict]]:
        timings = set(timings)
        blocked: dict[str, list[BatchConflict]] = {}
        for student_id in dict.fromkeys(student_ids):
            conflicts = self.student_conflicts(student_id, timings, exclude_batch_id=batch_id)
            if conflicts:
                blocked[student_id] = conflicts
        return blocked

    def roster_candidates(self, batch: Any, students: Iterable[Any]) -> list[RosterCandidate]:
        timings = batch_timings(batch)
        enrolled = batch_student_ids(batch)
        candidates: list[RosterCandidate] = []
        for student in students:
            if batch.course_name not in (student.courses or []):
                continue
            conflicts = self.student_conflicts(student.id, timings, exclude_batch_id=batch.id)
            candidates.append(
                RosterCandidate(
                    student_id=student.id,
                    name=student.name,
                    father_name=getattr(student, "father_name", None),
                    is_enrolled=student.id in enrolled,
                    is_available=not conflicts,
                    conflicts=conflicts,
                )
            )
        return candidates

    def teacher_busy_timings(self, teacher_id: str, *, exclude_batch_id: str | None = None) -> set[str]:
        busy: set[str] = set()
        for batch in self.batches:
            if batch.id == exclude_batch_id or batch.teacher_id != teacher_id:
                continue
            busy |= batch_timings(batch)
        return busy

    def teacher_conflicts(
        self,
        teacher_id: str,
        candidate_timings: Iterable[str],
        *,
        exclude_batch_id: str | None = None,
    ) -> list[BatchConflict]:
        candidates = set(candidate_timings)
        conflicts: list[BatchConflict] = []
        for batch in self.batches:
            if batch.id == exclude_batch_id or batch.teacher_id != teacher_id:
                continue
            for timing in sorted(batch_timings(batch) & candidates):
                conflicts.append(
                    BatchConflict(
                        timing=timing,
                        batch_id=batch.id,
                        batch_name=batch.name,
                        teacher_name=self._teacher_name(teacher_id),
                    )
                )
        return conflicts

    def teachers_with_expertise(self, course_name: str) -> list[Any]:
        return [teacher for teacher in self.teachers if course_name in (teacher.course_expertise or [])]

    def available_teachers(
        self,
        course_name: str,
        timings: Iterable[str],
        *,
        exclude_batch_id: str | None = None,
    ) -> list[Any]:
        selected = {timing for timing in timings if timing}
        experts = self.teachers_with_expertise(course_name)
        if not selected:
            return experts
        return [
            teacher
            for teacher in experts
            if not (self.teacher_busy_timings(teacher.id, exclude_batch_id=exclude_batch_id) & selected)
        ]
