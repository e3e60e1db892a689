"""The fixed universe of weekly bookable slots.

Every batch timing and every student schedule entry is one of these strings,
``"<Weekday> <HH:MM> - <HH:MM>"``. Conflict checks compare slots by string
equality, so anything stored must come from this catalog.
"""
from __future__ import annotations

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

WEEKDAY_CODES: dict[str, str] = {
    "MO": "Monday",
    "TU": "Tuesday",
    "WE": "Wednesday",
    "TH": "Thursday",
    "FR": "Friday",
    "SA": "Saturday",
    "SU": "Sunday",
}

TIME_SLOTS: tuple[str, ...] = (
    "09:00 - 10:00",
    "10:00 - 11:00",
    "11:00 - 12:00",
    "12:00 - 13:00",
    "13:00 - 14:00",
    "14:00 - 15:00",
    "15:00 - 16:00",
    "16:00 - 17:00",
    "17:00 - 18:00",
    "18:00 - 19:00",
)


def build_timing_catalog() -> tuple[str, ...]:
    return tuple(f"{day} {slot}" for day in WEEKDAYS for slot in TIME_SLOTS)


ALL_TIMINGS: tuple[str, ...] = build_timing_catalog()
_TIMING_SET = frozenset(ALL_TIMINGS)


def is_valid_timing(value: str) -> bool:
    return value in _TIMING_SET


def timing_day(value: str) -> str | None:
    day, _, _ = value.partition(" ")
    return day if day in WEEKDAYS else None


def timings_for_day(day: str) -> list[str]:
    day = WEEKDAY_CODES.get(day.upper(), day)
    return [timing for timing in ALL_TIMINGS if timing.startswith(f"{day} ")]


def catalog_by_day() -> dict[str, list[str]]:
    return {day: timings_for_day(day) for day in WEEKDAYS}


def sort_timings(values) -> list[str]:
    """Order timings by their catalog position; unknown values go last."""
    position = {timing: index for index, timing in enumerate(ALL_TIMINGS)}
    return sorted(set(values), key=lambda value: (position.get(value, len(ALL_TIMINGS)), value))
