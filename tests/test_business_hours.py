"""Tests for the business-hours calendar."""
from datetime import datetime, timezone

import pytest

from inbox_sla.core import BusinessCalendarException
from inbox_sla.sla.domain import BusinessHoursCalendar

UTC = timezone.utc


def weekday_calendar(tz: str = "UTC") -> BusinessHoursCalendar:
    return BusinessHoursCalendar.from_json({
        "enabled": True,
        "startTime": "09:00",
        "endTime": "18:00",
        "timezone": tz,
        "workingDays": [1, 2, 3, 4, 5],
    })


class TestDeadline:
    def test_friday_evening_rolls_over_weekend(self):
        # Friday 2024-01-19 17:00 + 120 business minutes -> Monday 10:00
        start = datetime(2024, 1, 19, 17, 0, tzinfo=UTC)
        assert weekday_calendar().deadline(start, 120) == datetime(2024, 1, 22, 10, 0, tzinfo=UTC)

    def test_walk_happens_in_calendar_timezone(self):
        # 17:00 in Cordoba (UTC-3) is 20:00 UTC
        start = datetime(2024, 1, 19, 20, 0, tzinfo=UTC)
        deadline = weekday_calendar("America/Argentina/Cordoba").deadline(start, 120)
        assert deadline == datetime(2024, 1, 22, 13, 0, tzinfo=UTC)

    def test_start_before_opening_waits_for_opening(self):
        start = datetime(2024, 1, 15, 7, 30, tzinfo=UTC)
        assert weekday_calendar().deadline(start, 30) == datetime(2024, 1, 15, 9, 30, tzinfo=UTC)

    def test_start_after_closing_moves_to_next_day(self):
        start = datetime(2024, 1, 15, 19, 0, tzinfo=UTC)
        assert weekday_calendar().deadline(start, 60) == datetime(2024, 1, 16, 10, 0, tzinfo=UTC)

    def test_budget_spanning_several_days(self):
        # 9h per day: Monday 09:00 + 20h -> Wednesday 11:00
        start = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        assert weekday_calendar().deadline(start, 20 * 60) == datetime(2024, 1, 17, 11, 0, tzinfo=UTC)

    def test_naive_start_is_utc(self):
        start = datetime(2024, 1, 15, 10, 0)
        assert weekday_calendar().deadline(start, 15) == datetime(2024, 1, 15, 10, 15, tzinfo=UTC)

    def test_disabled_calendar_uses_wall_clock(self):
        calendar = BusinessHoursCalendar.from_json({
            "enabled": False, "startTime": "09:00", "endTime": "18:00", "timezone": "UTC"
        })
        start = datetime(2024, 1, 19, 17, 0, tzinfo=UTC)
        assert calendar.deadline(start, 120) == datetime(2024, 1, 19, 19, 0, tzinfo=UTC)

    def test_walk_is_bounded(self):
        calendar = BusinessHoursCalendar.from_json({
            "startTime": "09:00", "endTime": "10:00", "timezone": "UTC", "workingDays": [1]
        })
        start = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        with pytest.raises(BusinessCalendarException):
            calendar.deadline(start, 60 * 10, max_days=14)


class TestParsing:
    def test_empty_data_means_no_calendar(self):
        assert BusinessHoursCalendar.from_json(None) is None
        assert BusinessHoursCalendar.from_json({}) is None

    def test_per_day_shape(self):
        calendar = BusinessHoursCalendar.from_json({
            "timezone": "UTC",
            "monday": {"start": "08:00", "end": "12:00"},
            "saturday": {"start": "10:00", "end": "14:00"},
        })
        assert calendar.working_days == [1, 6]
        assert calendar.weekly_minutes == 8 * 60

    def test_default_timezone(self):
        calendar = BusinessHoursCalendar.from_json({"startTime": "09:00", "endTime": "18:00"})
        assert calendar.timezone == "America/Argentina/Cordoba"

    def test_zero_working_days_is_rejected(self):
        with pytest.raises(BusinessCalendarException):
            BusinessHoursCalendar.from_json({"enabled": True, "workingDays": [], "timezone": "UTC"})

    @pytest.mark.parametrize("data", [
        {"startTime": "18:00", "endTime": "09:00", "timezone": "UTC"},
        {"startTime": "9am", "endTime": "18:00", "timezone": "UTC"},
        {"startTime": "09:00", "endTime": "18:00", "timezone": "Mars/Olympus"},
        {"startTime": "09:00", "endTime": "18:00", "workingDays": [7]},
    ])
    def test_invalid_calendars(self, data):
        with pytest.raises(BusinessCalendarException):
            BusinessHoursCalendar.from_json(data)

    def test_is_business_time(self):
        calendar = weekday_calendar()
        assert calendar.is_business_time(datetime(2024, 1, 15, 9, 0, tzinfo=UTC))
        assert not calendar.is_business_time(datetime(2024, 1, 15, 18, 0, tzinfo=UTC))
        assert not calendar.is_business_time(datetime(2024, 1, 20, 12, 0, tzinfo=UTC))
