"""
SLA Domain Layer
================

Domain layer for SLA resolution and breach detection.

Contains:
- Entities: SLA definitions, scope bindings, conversation snapshots and
  classification results
- Value Objects: SLA arithmetic (SLACalculator) and business-hours calendars
- Policies: Warning / expiry threshold strategies

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from inbox_sla.sla.domain.business_hours import BusinessHoursCalendar, DailyWindow
from inbox_sla.sla.domain.entities import (
    ConversationSLAStatus,
    ConversationSnapshot,
    DetectionResult,
    Location,
    ScopeBinding,
    SLABreachEntry,
    SLABreachStats,
    SLADefinition,
    SLAEvaluationContext,
    SLAExpired,
    SLAHierarchyResolution,
    SLAHierarchyView,
    SLAWarning,
    SLAApplicability,
    SLAHierarchyStats,
    SLARecommendations,
    SLASimulationReport,
    SimulatedResolution,
    TierCoverage,
)
from inbox_sla.sla.domain.policies import BreachPolicy, ExpiryPolicy, WarningPolicy
from inbox_sla.sla.domain.value_objects import SLACalculator

__all__ = [
    # Entities
    "ConversationSLAStatus",
    "ConversationSnapshot",
    "DetectionResult",
    "Location",
    "ScopeBinding",
    "SLABreachEntry",
    "SLABreachStats",
    "SLADefinition",
    "SLAEvaluationContext",
    "SLAExpired",
    "SLAHierarchyResolution",
    "SLAHierarchyView",
    "SLAWarning",
    "SLAApplicability",
    "SLAHierarchyStats",
    "SLARecommendations",
    "SLASimulationReport",
    "SimulatedResolution",
    "TierCoverage",
    # Value Objects & Policies
    "BusinessHoursCalendar",
    "DailyWindow",
    "SLACalculator",
    "BreachPolicy",
    "WarningPolicy",
    "ExpiryPolicy",
]
