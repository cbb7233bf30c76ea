# tests/test_deadlines.py
# PURPOSE: urgency classification with an injected "now".

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from foxlist.deadlines import (
    classify_deadline,
    day_difference,
    format_date,
    format_datetime,
    format_time,
    parse_date,
)

NOW = datetime(2024, 6, 10, 0, 0)


def test_day_difference_basics():
    assert day_difference(NOW, NOW) == 0
    assert day_difference(date(2024, 6, 10), date(2024, 6, 13)) == 3
    assert day_difference(date(2024, 6, 13), date(2024, 6, 10)) == -3
    # partial days round up
    assert day_difference(NOW, NOW + timedelta(hours=1)) == 1


@pytest.mark.parametrize(
    "deadline, status, rank",
    [
        ("2024-06-10T23:59", "today", 3),
        ("2024-06-11T00:00", "warning", 2),
        ("2024-06-13T00:00", "warning", 2),
        ("2024-06-14T00:00", "ok", 1),
        ("2024-06-09T00:00", "overdue", 4),
    ],
)
def test_classification_boundaries(deadline, status, rank):
    alert = classify_deadline(deadline, now=NOW)
    assert alert.status == status
    assert alert.severity_rank == rank


def test_messages_carry_day_counts():
    assert classify_deadline("2024-06-13T00:00", now=NOW).message == "Due in 3 day(s)"
    assert classify_deadline("2024-06-20T00:00", now=NOW).message == "Due in 10 day(s)"
    assert classify_deadline("2024-06-08T12:00", now=NOW).message == "Overdue by 2 day(s)"
    assert classify_deadline("2024-06-10T18:00", now=NOW).message == "Due today!"


def test_time_of_day_is_ignored():
    late_now = datetime(2024, 6, 10, 23, 30)
    assert classify_deadline("2024-06-10T00:05", now=late_now).status == "today"
    assert classify_deadline("2024-06-11T00:05", now=late_now).status == "warning"


@pytest.mark.parametrize("value", [None, "", "Sem prazo"])
def test_sentinel_means_no_deadline(value):
    alert = classify_deadline(value, now=NOW)
    assert alert.status == "no-deadline"
    assert alert.severity_rank == 0
    assert alert.icon is None


@pytest.mark.parametrize("value", ["Hoje, 14:00", "31/12/2024", "not a date", 12345])
def test_malformed_input_maps_to_error(value):
    alert = classify_deadline(value, now=NOW)
    assert alert.status == "error"
    assert alert.severity_rank == 0
    assert alert.message == "Invalid date"


@pytest.mark.parametrize(
    "value", ["9999-12-31T23:00:00-05:00", "0001-01-01T00:00:00+05:00"]
)
def test_out_of_range_after_zone_shift_maps_to_error(value):
    alert = classify_deadline(value, now=datetime(2024, 6, 10, tzinfo=UTC))
    assert alert.status == "error"
    assert alert.message == "Invalid date"


def test_aware_values_use_the_zone_of_now():
    now = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)
    # 01:00 on the 11th at +02:00 is still the 10th in UTC
    assert classify_deadline("2024-06-11T01:00:00+02:00", now=now).status == "today"
    shifted = datetime(2024, 6, 10, 12, 0, tzinfo=timezone(timedelta(hours=3)))
    assert classify_deadline("2024-06-10T22:00:00+00:00", now=shifted).status == "warning"


def test_datetime_values_are_accepted():
    assert classify_deadline(datetime(2024, 6, 12, 9, 0), now=NOW).status == "warning"


def test_display_helpers():
    value = datetime(2024, 6, 5, 7, 3)
    assert format_date(value) == "05/06/2024"
    assert format_time(value) == "07:03"
    assert format_datetime(value) == "05/06/2024 07:03"
    assert parse_date("2024-06-05T07:03:00") == value
    assert parse_date("garbage") is None
