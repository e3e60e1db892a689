from types import SimpleNamespace

import pytest

from academy.core.exceptions import AppError, ScheduleConflictError
from academy.models.user import UserRole
from academy.services.schedules import AssignmentWorkspace, booked_slots, set_course_timing, validate_schedules

MON_9 = "Monday 09:00 - 10:00"
MON_10 = "Monday 10:00 - 11:00"
TUE_9 = "Tuesday 09:00 - 10:00"


def _student(student_id, name, courses, schedules=()):
    return SimpleNamespace(
        id=student_id,
        name=name,
        role=UserRole.student,
        courses=list(courses),
        schedules=[dict(entry) for entry in schedules],
        course_expertise=[],
    )


def _teacher(teacher_id, name, expertise):
    return SimpleNamespace(
        id=teacher_id,
        name=name,
        role=UserRole.teacher,
        courses=[],
        schedules=[],
        course_expertise=list(expertise),
    )


@pytest.fixture
def workspace():
    users = [
        _teacher("t1", "Lakshmi", ["Bharatanatyam", "Carnatic Vocal"]),
        _teacher("t2", "Ravi", ["Bharatanatyam"]),
        _student(
            "s1",
            "Anu",
            ["Bharatanatyam", "Carnatic Vocal"],
            [
                {"course": "Bharatanatyam", "timing": MON_9, "teacher_id": "t1"},
                {"course": "Carnatic Vocal", "timing": TUE_9, "teacher_id": None},
            ],
        ),
        _student("s2", "Bala", ["Bharatanatyam"], [{"course": "Bharatanatyam", "timing": MON_10, "teacher_id": None}]),
        _student("s3", "Chitra", ["Bharatanatyam"]),
    ]
    return AssignmentWorkspace(users)


def test_set_course_timing_updates_appends_and_clears():
    schedules = [{"course": "Bharatanatyam", "timing": MON_9, "teacher_id": "t1"}]

    moved = set_course_timing(schedules, "Bharatanatyam", MON_10)
    assert moved == [{"course": "Bharatanatyam", "timing": MON_10, "teacher_id": "t1"}]
    assert schedules[0]["timing"] == MON_9

    added = set_course_timing(schedules, "Kathak", TUE_9)
    assert added[-1] == {"course": "Kathak", "timing": TUE_9, "teacher_id": None}

    assert set_course_timing(schedules, "Bharatanatyam", "") == []


def test_booked_slots_maps_timing_to_course():
    schedules = [
        {"course": "Bharatanatyam", "timing": MON_9},
        {"course": "Kathak", "timing": ""},
    ]
    assert booked_slots(schedules) == {MON_9: "Bharatanatyam"}


def test_validate_schedules_rejects_one_slot_for_two_courses():
    with pytest.raises(ValueError, match="already booked for Bharatanatyam"):
        validate_schedules(
            [
                {"course": "Bharatanatyam", "timing": MON_9},
                {"course": "Kathak", "timing": MON_9},
            ]
        )


def test_validate_schedules_rejects_unknown_slots_and_repeated_courses():
    with pytest.raises(ValueError, match="Unknown timing slot"):
        validate_schedules([{"course": "Kathak", "timing": "Monday 8am"}])
    with pytest.raises(ValueError, match="more than one timing"):
        validate_schedules([{"course": "Kathak", "timing": MON_9}, {"course": "Kathak", "timing": MON_10}])


def test_validate_schedules_normalizes_and_drops_blank_timings():
    result = validate_schedules(
        [
            {"course": " Kathak ", "timing": "Monday  09:00 -  10:00", "teacher_id": ""},
            {"course": "Bharatanatyam", "timing": ""},
        ]
    )
    assert result == [{"course": "Kathak", "timing": MON_9, "teacher_id": None}]


def test_teacher_cannot_take_two_students_at_once(workspace):
    workspace.change_timing("s2", "Bharatanatyam", MON_9)

    with pytest.raises(ScheduleConflictError) as excinfo:
        workspace.assign("s2", "Bharatanatyam", "t1")

    conflicts = excinfo.value.details["conflicts"]
    assert excinfo.value.status_code == 409
    assert conflicts == [
        {
            "timing": MON_9,
            "teacher_id": "t1",
            "student_id": "s1",
            "student_name": "Anu",
            "course": "Bharatanatyam",
        }
    ]
    assert workspace.effective_schedule("s2", "Bharatanatyam").teacher_id is None


def test_another_teacher_can_take_the_same_slot(workspace):
    workspace.change_timing("s2", "Bharatanatyam", MON_9)
    workspace.assign("s2", "Bharatanatyam", "t2")

    assert workspace.effective_schedule("s2", "Bharatanatyam").teacher_id == "t2"
    assert workspace.teacher_schedule("t2") == {MON_9}


def test_reassigning_the_same_teacher_is_not_a_conflict(workspace):
    assert workspace.teacher_conflicts("t1", "s1", "Bharatanatyam") == []
    workspace.assign("s1", "Bharatanatyam", "t1")


def test_pending_unassign_frees_the_teacher(workspace):
    workspace.assign("s1", "Bharatanatyam", None)
    workspace.change_timing("s2", "Bharatanatyam", MON_9)
    workspace.assign("s2", "Bharatanatyam", "t1")

    assert workspace.teacher_schedule("t1") == {MON_9}
    assert workspace.effective_schedule("s2", "Bharatanatyam").teacher_id == "t1"


def test_assign_requires_a_timing_and_an_enrolment(workspace):
    with pytest.raises(AppError, match="has no timing"):
        workspace.assign("s3", "Bharatanatyam", "t1")
    with pytest.raises(AppError, match="not enrolled"):
        workspace.assign("s3", "Carnatic Vocal", "t1")
    with pytest.raises(AppError) as excinfo:
        workspace.assign("s2", "Bharatanatyam", "nobody")
    assert excinfo.value.status_code == 404


def test_timing_change_into_teacher_busy_slot_unassigns(workspace):
    workspace.change_timing("s2", "Bharatanatyam", MON_9)
    workspace.assign("s2", "Bharatanatyam", "t2")
    workspace.change_timing("s1", "Bharatanatyam", MON_10)
    workspace.assign("s1", "Bharatanatyam", "t2")

    workspace.change_timing("s1", "Bharatanatyam", MON_9)

    effective = workspace.effective_schedule("s1", "Bharatanatyam")
    assert effective.timing == MON_9
    assert effective.teacher_id is None
    assert workspace.teacher_schedule("t2") == {MON_9}


def test_timing_change_into_free_slot_keeps_teacher(workspace):
    workspace.change_timing("s1", "Bharatanatyam", MON_10)

    effective = workspace.effective_schedule("s1", "Bharatanatyam")
    assert effective.timing == MON_10
    assert effective.teacher_id == "t1"


def test_clearing_timing_clears_teacher(workspace):
    workspace.change_timing("s1", "Bharatanatyam", "")

    effective = workspace.effective_schedule("s1", "Bharatanatyam")
    assert effective.timing is None
    assert effective.teacher_id is None
    assert workspace.teacher_schedule("t1") == set()


def test_student_cannot_hold_one_slot_for_two_courses(workspace):
    with pytest.raises(ScheduleConflictError) as excinfo:
        workspace.change_timing("s1", "Bharatanatyam", TUE_9)

    assert excinfo.value.details["conflicts"] == [
        {"timing": TUE_9, "student_id": "s1", "course": "Carnatic Vocal"}
    ]
    assert workspace.effective_schedule("s1", "Bharatanatyam").timing == MON_9


def test_unknown_timing_is_rejected(workspace):
    with pytest.raises(AppError, match="Unknown timing slot"):
        workspace.change_timing("s1", "Bharatanatyam", "Monday 07:00 - 08:00")


def test_assignment_rows_flag_busy_slots(workspace):
    workspace.change_timing("s2", "Bharatanatyam", MON_9)

    rows = {(row.student_id, row.course): row for row in workspace.assignment_rows(workspace.users["t1"])}

    assert set(rows) == {
        ("s1", "Bharatanatyam"),
        ("s1", "Carnatic Vocal"),
        ("s2", "Bharatanatyam"),
        ("s3", "Bharatanatyam"),
    }
    mine = rows[("s1", "Bharatanatyam")]
    assert mine.is_assigned_to_teacher
    assert not mine.has_conflict
    assert mine.teacher_name == "Lakshmi"
    assert mine.booked_slots == {MON_9: "Bharatanatyam", TUE_9: "Carnatic Vocal"}

    clash = rows[("s2", "Bharatanatyam")]
    assert clash.has_conflict
    assert not clash.is_assigned_to_teacher
    assert rows[("s3", "Bharatanatyam")].timing is None


def test_assignment_rows_search_by_student_name(workspace):
    rows = workspace.assignment_rows(workspace.users["t2"], search="  CHIT ")
    assert [(row.student_id, row.course) for row in rows] == [("s3", "Bharatanatyam")]


def test_schedule_conflicts_check_other_students(workspace):
    proposed = [{"course": "Bharatanatyam", "timing": MON_9, "teacher_id": "t1"}]

    assert workspace.schedule_conflicts("s1", proposed) == []
    conflicts = workspace.schedule_conflicts("s3", proposed)
    assert [(item.student_id, item.timing) for item in conflicts] == [("s1", MON_9)]


def test_resulting_schedules_reflect_pending_changes(workspace):
    workspace.change_timing("s3", "Bharatanatyam", TUE_9)
    workspace.assign("s3", "Bharatanatyam", "t2")
    workspace.change_timing("s1", "Carnatic Vocal", "")

    assert workspace.touched_student_ids() == ["s3", "s1"]
    assert workspace.resulting_schedules("s3") == [
        {"course": "Bharatanatyam", "timing": TUE_9, "teacher_id": "t2"}
    ]
    assert workspace.resulting_schedules("s1") == [
        {"course": "Bharatanatyam", "timing": MON_9, "teacher_id": "t1"}
    ]


def test_clearing_timing_twice_is_a_no_op(workspace):
    workspace.change_timing("s1", "Bharatanatyam", "")
    workspace.change_timing("s1", "Bharatanatyam", "  ")

    assert workspace.effective_schedule("s1", "Bharatanatyam") == workspace.effective_schedule("s3", "Bharatanatyam")
    assert workspace.resulting_schedules("s1") == [
        {"course": "Carnatic Vocal", "timing": TUE_9, "teacher_id": None}
    ]
