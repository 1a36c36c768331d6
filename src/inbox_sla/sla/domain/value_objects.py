"""
SLA Value Objects
==================

Stateless SLA arithmetic shared by the classifiers.
"""

import math
from datetime import datetime, timedelta

from inbox_sla.config import ExpiredSeverity, WarningLevel


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all threshold arithmetic in one place.
    """

    @staticmethod
    def elapsed_minutes(created_at: datetime, now: datetime) -> int:
        """Whole wall-clock minutes between creation and now (floored)."""
        return math.floor((now - created_at).total_seconds() / 60)

    @staticmethod
    def time_remaining(budget_minutes: int, elapsed_minutes: int) -> int:
        return max(0, budget_minutes - elapsed_minutes)

    @staticmethod
    def percentage_used(budget_minutes: int, elapsed_minutes: int) -> float:
        """Share of the budget consumed, capped at 100."""
        return min(100.0, (elapsed_minutes / budget_minutes) * 100)

    @staticmethod
    def percent(part: float, whole: float) -> int:
        """``part`` as a whole-number percentage of ``whole``; halves round up, 0 for an empty whole."""
        if whole <= 0:
            return 0
        return math.floor((part / whole) * 100 + 0.5)

    @staticmethod
    def percentage_overdue(budget_minutes: int, overdue_minutes: int) -> int:
        """Overdue time as a rounded percentage of the budget."""
        return SLACalculator.percent(overdue_minutes, budget_minutes)

    @staticmethod
    def round_half_up(value: float) -> int:
        return math.floor(value + 0.5)

    @staticmethod
    def budget_deadline(created_at: datetime, budget_minutes: int) -> datetime:
        """Instant the wall-clock budget lapses."""
        return created_at + timedelta(minutes=budget_minutes)

    @staticmethod
    def warning_level(percentage_used: float, time_remaining: int) -> WarningLevel:
        """
        Warning severity from budget usage and minutes left.

        Either condition is enough to reach a level.
        """
        if percentage_used >= 95 or time_remaining <= 5:
            return WarningLevel.CRITICAL
        if percentage_used >= 90 or time_remaining <= 15:
            return WarningLevel.HIGH
        if percentage_used >= 85 or time_remaining <= 30:
            return WarningLevel.MEDIUM
        return WarningLevel.LOW

    @staticmethod
    def expired_severity(time_overdue: int, percentage_overdue: int) -> ExpiredSeverity:
        """Expiry severity: 2h+ or 200%+ is urgent, 1h+ or 150%+ is critical."""
        if time_overdue >= 120 or percentage_overdue >= 200:
            return ExpiredSeverity.URGENT
        if time_overdue >= 60 or percentage_overdue >= 150:
            return ExpiredSeverity.CRITICAL
        return ExpiredSeverity.OVERDUE
