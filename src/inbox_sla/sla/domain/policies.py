"""
Breach Policies
===============

Threshold and severity strategies plugged into the shared detection
traversal. A policy turns an ``SLAEvaluationContext`` into a result (or
None when the conversation does not qualify) and defines the result order.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from inbox_sla.config import (
    EXPIRED_SEVERITY_RANK,
    WARNING_LEVEL_RANK,
    ExpiredSeverity,
    WarningLevel,
)
from inbox_sla.sla.domain.entities import SLAEvaluationContext, SLAExpired, SLAWarning
from inbox_sla.sla.domain.value_objects import SLACalculator

R = TypeVar("R")


def _common_fields(ctx: SLAEvaluationContext) -> Dict[str, Any]:
    conversation = ctx.conversation
    sla = ctx.sla
    return {
        "conversation_id": conversation.id,
        "subject": conversation.subject or "No subject",
        "contact_name": conversation.contact_name or "Unknown",
        "contact_handle": conversation.contact_handle or "N/A",
        "channel_type": conversation.channel_type,
        "location_id": conversation.location_id,
        "location_name": conversation.location_name,
        "sla_id": sla.id,
        "sla_name": sla.name,
        "sla_source": ctx.resolution.source,
        "response_time_minutes": sla.first_response_minutes,
        "resolution_time_minutes": sla.effective_resolution_minutes,
        "time_elapsed": ctx.elapsed_minutes,
        "created_at": conversation.created_at,
        "last_message_at": conversation.last_message_at,
        "assigned_to": conversation.assignee_id,
        "assigned_to_name": conversation.assignee_name,
        "business_deadline": ctx.business_deadline,
    }


class BreachPolicy(ABC, Generic[R]):
    """Strategy deciding which evaluated conversations are reported and how."""

    name: str = ""
    severities: List[Any] = []

    @abstractmethod
    def classify(self, ctx: SLAEvaluationContext) -> Optional[R]:
        """Build a result for the context, or None when it does not qualify."""

    @abstractmethod
    def sort_key(self, item: R) -> Tuple:
        """Key producing the reporting order (most urgent first)."""

    def sort(self, items: List[R]) -> List[R]:
        return sorted(items, key=self.sort_key)


class WarningPolicy(BreachPolicy[SLAWarning]):
    """Conversations at or past 75% of the first-response budget."""

    name = "warning"
    severities = list(WarningLevel)
    threshold_percent = 75.0

    def classify(self, ctx: SLAEvaluationContext) -> Optional[SLAWarning]:
        budget = ctx.sla.first_response_minutes
        remaining = SLACalculator.time_remaining(budget, ctx.elapsed_minutes)
        percentage_used = SLACalculator.percentage_used(budget, ctx.elapsed_minutes)

        if percentage_used < self.threshold_percent:
            return None

        return SLAWarning(
            **_common_fields(ctx),
            time_remaining=remaining,
            percentage_used=percentage_used,
            severity=SLACalculator.warning_level(percentage_used, remaining),
        )

    def sort_key(self, item: SLAWarning) -> Tuple:
        return (-WARNING_LEVEL_RANK[item.severity], item.time_remaining)


class ExpiryPolicy(BreachPolicy[SLAExpired]):
    """Conversations past 100% of the first-response budget."""

    name = "expired"
    severities = list(ExpiredSeverity)

    def classify(self, ctx: SLAEvaluationContext) -> Optional[SLAExpired]:
        budget = ctx.sla.first_response_minutes
        if ctx.elapsed_minutes <= budget:
            return None

        overdue = ctx.elapsed_minutes - budget
        percentage_overdue = SLACalculator.percentage_overdue(budget, overdue)

        return SLAExpired(
            **_common_fields(ctx),
            time_overdue=overdue,
            percentage_overdue=percentage_overdue,
            severity=SLACalculator.expired_severity(overdue, percentage_overdue),
            expired_at=SLACalculator.budget_deadline(ctx.conversation.created_at, budget),
        )

    def sort_key(self, item: SLAExpired) -> Tuple:
        return (-EXPIRED_SEVERITY_RANK[item.severity], -item.time_overdue)
