from academy.services.timing_catalog import (
    ALL_TIMINGS,
    TIME_SLOTS,
    WEEKDAYS,
    catalog_by_day,
    is_valid_timing,
    sort_timings,
    timing_day,
    timings_for_day,
)


def test_catalog_has_ten_slots_for_each_weekday():
    assert len(ALL_TIMINGS) == 70
    assert len(set(ALL_TIMINGS)) == 70
    assert ALL_TIMINGS[0] == "Monday 09:00 - 10:00"
    assert ALL_TIMINGS[-1] == "Sunday 18:00 - 19:00"
    for day in WEEKDAYS:
        assert len(timings_for_day(day)) == len(TIME_SLOTS) == 10


def test_catalog_membership_is_exact():
    assert is_valid_timing("Wednesday 13:00 - 14:00")
    assert not is_valid_timing("Wednesday 13:00-14:00")
    assert not is_valid_timing("wednesday 13:00 - 14:00")
    assert not is_valid_timing("Wednesday 19:00 - 20:00")
    assert not is_valid_timing("")


def test_day_codes_and_grouping():
    assert timings_for_day("SA") == timings_for_day("Saturday")
    assert timing_day("Friday 10:00 - 11:00") == "Friday"
    assert timing_day("Someday 10:00 - 11:00") is None

    grouped = catalog_by_day()
    assert list(grouped) == list(WEEKDAYS)
    assert sum(len(values) for values in grouped.values()) == 70


def test_sort_timings_follows_catalog_order():
    values = ["Tuesday 09:00 - 10:00", "Monday 18:00 - 19:00", "bogus", "Monday 09:00 - 10:00", "Monday 09:00 - 10:00"]
    assert sort_timings(values) == [
        "Monday 09:00 - 10:00",
        "Monday 18:00 - 19:00",
        "Tuesday 09:00 - 10:00",
        "bogus",
    ]
