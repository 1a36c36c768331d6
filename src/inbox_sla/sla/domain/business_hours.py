"""
Business Hours Calendar
=======================

Weekly working-hours calendar used to compute "in-calendar" SLA deadlines.

Days are numbered the way the stored calendars number them:
0 = Sunday, 1 = Monday ... 6 = Saturday. Minute-level precision; the walk
happens in the calendar's own timezone and the result is returned in UTC.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from inbox_sla.config import settings
from inbox_sla.core import BusinessCalendarException

DAY_NAMES = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}
DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]


def day_index(dt: datetime) -> int:
    """Sunday-based day number (Python's weekday() is Monday-based)."""
    return (dt.weekday() + 1) % 7


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` string."""
    try:
        hour, minute = (int(part) for part in value.split(":"))
        return time(hour=hour, minute=minute)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time format (HH:MM expected): {value!r}")


class DailyWindow(BaseModel):
    """Opening and closing wall-clock time for one working day."""

    open: time
    close: time

    @field_validator("open", "close", mode="before")
    @classmethod
    def coerce_clock(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_clock(v)
        return v

    @model_validator(mode="after")
    def check_order(self) -> "DailyWindow":
        if self.close <= self.open:
            raise ValueError("closing time must be after opening time")
        return self

    @property
    def minutes(self) -> int:
        return (self.close.hour * 60 + self.close.minute) - (self.open.hour * 60 + self.open.minute)


class BusinessHoursCalendar(BaseModel):
    """
    A weekly recurring set of working windows in a timezone.

    Immutable value object; build it from stored JSON with ``from_json``.
    """

    model_config = {"frozen": True}

    enabled: bool = True
    timezone: str = Field(default_factory=lambda: settings.default_business_timezone)
    windows: Dict[int, DailyWindow] = Field(default_factory=dict)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v!r}")
        return v

    @field_validator("windows")
    @classmethod
    def validate_days(cls, v: Dict[int, DailyWindow]) -> Dict[int, DailyWindow]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Day number out of range 0-6: {day}")
        return v

    @model_validator(mode="after")
    def require_working_day(self) -> "BusinessHoursCalendar":
        # An enabled calendar with no working day never reaches a deadline
        if self.enabled and not self.windows:
            raise ValueError("an enabled business-hours calendar needs at least one working day")
        return self

    @classmethod
    def from_json(cls, data: Optional[dict]) -> Optional["BusinessHoursCalendar"]:
        """
        Build a calendar from either stored shape.

        Accepts the settings-form shape::

            {"enabled": true, "startTime": "09:00", "endTime": "18:00",
             "timezone": "America/Argentina/Cordoba", "workingDays": [1, 2, 3, 4, 5]}

        the per-day shape::

            {"monday": {"start": "09:00", "end": "18:00"}, ...}

        or the native ``{"timezone": ..., "windows": {...}}`` shape.

        Returns None for empty data.

        Raises:
            BusinessCalendarException: If the data does not describe a usable calendar
        """
        if not data:
            return None

        try:
            if "windows" in data:
                return cls.model_validate(data)

            enabled = data.get("enabled", True)
            tz = data.get("timezone") or settings.default_business_timezone

            if "startTime" in data or "workingDays" in data:
                window = {"open": data.get("startTime", "09:00"), "close": data.get("endTime", "18:00")}
                days = data.get("workingDays", DEFAULT_WORKING_DAYS)
                windows = {int(day): window for day in days}
            else:
                windows = {
                    DAY_NAMES[name.lower()]: {"open": spec["start"], "close": spec["end"]}
                    for name, spec in data.items()
                    if name.lower() in DAY_NAMES and spec
                }

            return cls(enabled=enabled, timezone=tz, windows=windows)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            raise BusinessCalendarException(f"Invalid business-hours calendar: {e}", data)

    @property
    def working_days(self) -> list[int]:
        return sorted(self.windows)

    @property
    def weekly_minutes(self) -> int:
        return sum(w.minutes for w in self.windows.values())

    def is_business_time(self, dt: datetime) -> bool:
        """Check whether an instant falls inside a working window."""
        local = _as_aware(dt).astimezone(ZoneInfo(self.timezone))
        window = self.windows.get(day_index(local))
        if window is None:
            return False
        return window.open <= local.time() < window.close

    def deadline(
        self,
        start: datetime,
        budget_minutes: float,
        max_days: Optional[int] = None
    ) -> datetime:
        """
        Instant at which ``budget_minutes`` of in-calendar time has elapsed.

        Args:
            start: Start instant (naive values are treated as UTC)
            budget_minutes: In-calendar minutes to consume
            max_days: Cap on day steps (defaults to settings.business_calendar_max_days)

        Returns:
            Deadline in UTC

        Raises:
            BusinessCalendarException: If the walk exceeds ``max_days``
        """
        start = _as_aware(start)
        if not self.enabled:
            return (start + timedelta(minutes=budget_minutes)).astimezone(timezone.utc)

        max_days = max_days or settings.business_calendar_max_days
        tz = ZoneInfo(self.timezone)
        current = start.astimezone(tz)
        remaining = float(budget_minutes)
        day_steps = 0

        while remaining > 0:
            window = self.windows.get(day_index(current))
            if window is not None:
                opening = current.replace(
                    hour=window.open.hour, minute=window.open.minute, second=0, microsecond=0
                )
                closing = current.replace(
                    hour=window.close.hour, minute=window.close.minute, second=0, microsecond=0
                )

                if current < opening:
                    current = opening
                    continue

                if current < closing:
                    available = (closing - current).total_seconds() / 60
                    if remaining <= available:
                        current = current + timedelta(minutes=remaining)
                        remaining = 0
                        break
                    remaining -= available

            day_steps += 1
            if day_steps > max_days:
                raise BusinessCalendarException(
                    f"Business-hours deadline not reached within {max_days} days",
                    self.model_dump(mode="json"),
                )
            current = _start_of_next_day(current)

        return current.astimezone(timezone.utc)


def _as_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _start_of_next_day(dt: datetime) -> datetime:
    return (dt + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
