"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA resolution and breach-detection endpoints.

Controllers are thin - they delegate to application services. Every route
is read-only; results are recomputed on each request.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from inbox_sla.config import ChannelType
from inbox_sla.infrastructure.database import get_session_maker
from inbox_sla.shared.infrastructure.logging import get_logger
from inbox_sla.sla.application import (
    BreachDetectionService,
    ConversationSLAStatusResponse,
    IConversationRepository,
    ISLARepository,
    SLAApplicabilityResponse,
    SLABreachStatsResponse,
    SLAExpiredListResponse,
    SLAHierarchyInsightsService,
    SLAHierarchyResolver,
    SLAHierarchyResponse,
    SLAHierarchyStatsResponse,
    SLARecommendationsResponse,
    SLAResolutionResponse,
    SLASimulationResponse,
    SLAStatsService,
    SLAWarningListResponse,
)
from inbox_sla.sla.infrastructure import SQLAlchemyConversationRepository, SQLAlchemySLARepository

logger = get_logger(__name__)
sla_router = APIRouter(prefix="/sla/tenants/{tenant_id}", tags=["SLA"])


# ========== Example payloads for Swagger ==========

RESOLUTION_EXAMPLE = {
    "source": "channel",
    "sla_id": "sla-whatsapp",
    "sla": {
        "id": "sla-whatsapp",
        "tenant_id": "tenant-1",
        "name": "WhatsApp 15 min",
        "first_response_minutes": 15,
        "resolution_minutes": None,
        "effective_resolution_minutes": 30,
        "priority": "HIGH",
        "is_active": True,
        "business_hours": None,
        "created_at": "2024-01-15T10:00:00Z"
    },
    "local_binding": None,
    "channel_binding": {
        "id": "binding-1",
        "sla_id": "sla-whatsapp",
        "scope": "channel",
        "location_id": None,
        "location_name": None,
        "channel_type": "WHATSAPP"
    },
    "tenant_sla_id": None
}

WARNING_LIST_EXAMPLE = {
    "items": [
        {
            "conversation_id": "conv-1",
            "subject": "Order status",
            "contact_name": "Ana",
            "contact_handle": "+5493510000000",
            "channel_type": "WHATSAPP",
            "location_id": "loc-cordoba",
            "location_name": "Cordoba",
            "sla_id": "sla-whatsapp",
            "sla_name": "WhatsApp 15 min",
            "sla_source": "channel",
            "response_time_minutes": 15,
            "resolution_time_minutes": 30,
            "time_elapsed": 13,
            "created_at": "2024-01-15T10:00:00Z",
            "last_message_at": "2024-01-15T10:02:00Z",
            "assigned_to": None,
            "assigned_to_name": None,
            "business_deadline": None,
            "time_remaining": 2,
            "percentage_used": 86.67,
            "severity": "critical"
        }
    ],
    "evaluated_count": 12,
    "skipped_count": 0,
    "failed_count": 0,
    "timed_out": False,
    "degraded": False,
    "error": None
}


# ========== Dependencies ==========

def get_sla_repository(request: Request) -> ISLARepository:
    """YAML store when one is configured, the database otherwise."""
    repository = getattr(request.app.state, "sla_repository", None)
    if repository is not None:
        return repository
    return SQLAlchemySLARepository(get_session_maker())


def get_conversation_repository() -> IConversationRepository:
    return SQLAlchemyConversationRepository(get_session_maker())


def get_resolver(
    sla_repository: ISLARepository = Depends(get_sla_repository)
) -> SLAHierarchyResolver:
    return SLAHierarchyResolver(sla_repository)


def get_insights_service(
    sla_repository: ISLARepository = Depends(get_sla_repository),
    resolver: SLAHierarchyResolver = Depends(get_resolver)
) -> SLAHierarchyInsightsService:
    return SLAHierarchyInsightsService(sla_repository, resolver)


def get_detection_service(
    conversation_repository: IConversationRepository = Depends(get_conversation_repository),
    resolver: SLAHierarchyResolver = Depends(get_resolver)
) -> BreachDetectionService:
    return BreachDetectionService(conversation_repository, resolver)


def get_stats_service(
    detection_service: BreachDetectionService = Depends(get_detection_service)
) -> SLAStatsService:
    return SLAStatsService(detection_service)


# ========== Hierarchy Routes ==========

@sla_router.get(
    "/resolve",
    response_model=SLAResolutionResponse,
    summary="Resolve the applicable SLA",
    description="""
    Resolve the SLA for a context using strict precedence:

    1. **local** - SLA bound to the location
    2. **channel** - SLA bound to the channel type
    3. **tenant** - earliest-created SLA of the tenant
    4. **none** - nothing configured
    """,
    responses={200: {"content": {"application/json": {"example": RESOLUTION_EXAMPLE}}}}
)
async def resolve_sla(
    tenant_id: str,
    location_id: Optional[str] = Query(None, description="Location of the conversation"),
    channel_type: Optional[ChannelType] = Query(None, description="Channel type of the conversation"),
    resolver: SLAHierarchyResolver = Depends(get_resolver)
):
    resolution = await resolver.resolve(tenant_id, location_id, channel_type)
    return SLAResolutionResponse.model_validate(resolution)


@sla_router.get(
    "/hierarchy",
    response_model=SLAHierarchyResponse,
    summary="Full SLA hierarchy for a context",
    description="Applicable SLA, every configured tier and recommendations."
)
async def get_hierarchy(
    tenant_id: str,
    location_id: Optional[str] = Query(None),
    channel_type: Optional[ChannelType] = Query(None),
    resolver: SLAHierarchyResolver = Depends(get_resolver)
):
    view = await resolver.get_hierarchy(tenant_id, location_id, channel_type)
    return SLAHierarchyResponse.model_validate(view)


@sla_router.get(
    "/hierarchy/stats",
    response_model=SLAHierarchyStatsResponse,
    summary="Hierarchy coverage statistics"
)
async def get_hierarchy_stats(
    tenant_id: str,
    insights: SLAHierarchyInsightsService = Depends(get_insights_service)
):
    return SLAHierarchyStatsResponse.model_validate(await insights.hierarchy_stats(tenant_id))


@sla_router.get(
    "/hierarchy/recommendations",
    response_model=SLARecommendationsResponse,
    summary="Hierarchy optimisation recommendations"
)
async def get_recommendations(
    tenant_id: str,
    insights: SLAHierarchyInsightsService = Depends(get_insights_service)
):
    return SLARecommendationsResponse.model_validate(
        await insights.optimization_recommendations(tenant_id)
    )


@sla_router.get(
    "/hierarchy/simulate",
    response_model=SLASimulationResponse,
    summary="Simulate SLA resolution",
    description="Resolve the tenant default, every channel type and the first locations."
)
async def simulate_hierarchy(
    tenant_id: str,
    insights: SLAHierarchyInsightsService = Depends(get_insights_service)
):
    return SLASimulationResponse.model_validate(await insights.simulate(tenant_id))


@sla_router.get(
    "/validate/{sla_id}",
    response_model=SLAApplicabilityResponse,
    summary="Check whether an SLA applies to a context"
)
async def validate_applicability(
    tenant_id: str,
    sla_id: str,
    location_id: Optional[str] = Query(None),
    channel_type: Optional[ChannelType] = Query(None),
    insights: SLAHierarchyInsightsService = Depends(get_insights_service)
):
    result = await insights.validate_applicability(sla_id, tenant_id, location_id, channel_type)
    return SLAApplicabilityResponse.model_validate(result)


# ========== Detection Routes ==========

@sla_router.get(
    "/warnings",
    response_model=SLAWarningListResponse,
    summary="Conversations close to their first-response deadline",
    description="""
    Active conversations that used at least 75% of their first-response budget.

    **Levels**: `critical` (95% or 5 min left), `high` (90% or 15 min),
    `medium` (85% or 30 min), `low`.

    `degraded=true` means the pass did not complete cleanly and the list may
    be incomplete.
    """,
    responses={200: {"content": {"application/json": {"example": WARNING_LIST_EXAMPLE}}}}
)
async def list_warnings(
    tenant_id: str,
    agent_id: Optional[str] = Query(None, description="Only conversations assigned to this agent"),
    channel_type: Optional[ChannelType] = Query(None),
    location_id: Optional[str] = Query(None),
    detection: BreachDetectionService = Depends(get_detection_service)
):
    result = await detection.detect_warnings(
        tenant_id,
        agent_id=agent_id,
        channel_type=channel_type,
        location_id=location_id
    )
    return SLAWarningListResponse.model_validate(result)


@sla_router.get(
    "/warnings/stats",
    response_model=SLABreachStatsResponse,
    summary="Warning breakdown"
)
async def get_warning_stats(
    tenant_id: str,
    stats: SLAStatsService = Depends(get_stats_service)
):
    return SLABreachStatsResponse.model_validate(await stats.warning_stats(tenant_id))


@sla_router.get(
    "/expired",
    response_model=SLAExpiredListResponse,
    summary="Conversations past their first-response deadline",
    description="""
    Active conversations past their first-response budget.

    **Severities**: `urgent` (2h or 200% overdue), `critical` (1h or 150%),
    `overdue`.
    """
)
async def list_expired(
    tenant_id: str,
    agent_id: Optional[str] = Query(None),
    channel_type: Optional[ChannelType] = Query(None),
    location_id: Optional[str] = Query(None),
    expired_from: Optional[datetime] = Query(None, description="Deadline lapsed at or after"),
    expired_to: Optional[datetime] = Query(None, description="Deadline lapsed at or before"),
    critical_only: bool = Query(False, description="Only urgent and critical entries"),
    detection: BreachDetectionService = Depends(get_detection_service)
):
    result = await detection.detect_expired(
        tenant_id,
        agent_id=agent_id,
        channel_type=channel_type,
        location_id=location_id,
        expired_from=expired_from,
        expired_to=expired_to,
        critical_only=critical_only
    )
    return SLAExpiredListResponse.model_validate(result)


@sla_router.get(
    "/expired/stats",
    response_model=SLABreachStatsResponse,
    summary="Expired breakdown"
)
async def get_expired_stats(
    tenant_id: str,
    stats: SLAStatsService = Depends(get_stats_service)
):
    return SLABreachStatsResponse.model_validate(await stats.expired_stats(tenant_id))


@sla_router.get(
    "/conversations/{conversation_id}/status",
    response_model=ConversationSLAStatusResponse,
    summary="SLA status of one conversation",
    responses={404: {"description": "Conversation not found or not active"}}
)
async def get_conversation_status(
    tenant_id: str,
    conversation_id: str,
    detection: BreachDetectionService = Depends(get_detection_service)
):
    status = await detection.conversation_status(tenant_id, conversation_id)
    return ConversationSLAStatusResponse.from_status(status)
