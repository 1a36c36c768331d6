"""
SLA Application Layer
======================

Application layer for SLA resolution and breach detection.

Contains:
- Services: Hierarchy resolution, insights, breach detection and aggregation
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from inbox_sla.sla.application.dto import (
    ConversationSLAStatusResponse,
    SLAApplicabilityResponse,
    SLABreachStatsResponse,
    SLAExpiredListResponse,
    SLAExpiredResponse,
    SLAHierarchyResponse,
    SLAHierarchyStatsResponse,
    SLARecommendationsResponse,
    SLAResolutionResponse,
    SLASimulationResponse,
    SLAWarningListResponse,
    SLAWarningResponse,
)
from inbox_sla.sla.application.services import (
    BreachDetectionService,
    IConversationRepository,
    ISLARepository,
    SLAHierarchyInsightsService,
    SLAHierarchyResolver,
    SLAStatsService,
)

__all__ = [
    # DTOs
    "ConversationSLAStatusResponse",
    "SLAApplicabilityResponse",
    "SLABreachStatsResponse",
    "SLAExpiredListResponse",
    "SLAExpiredResponse",
    "SLAHierarchyResponse",
    "SLAHierarchyStatsResponse",
    "SLARecommendationsResponse",
    "SLAResolutionResponse",
    "SLASimulationResponse",
    "SLAWarningListResponse",
    "SLAWarningResponse",
    # Services
    "SLAHierarchyResolver",
    "SLAHierarchyInsightsService",
    "BreachDetectionService",
    "SLAStatsService",
    # Repository Interfaces
    "ISLARepository",
    "IConversationRepository",
]
