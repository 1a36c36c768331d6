"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization of the engine's results for the
HTTP surface. Domain results are dataclasses; ``from_attributes`` lets the
responses be validated straight from them.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from inbox_sla.config import (
    BindingScope,
    ChannelType,
    ExpiredSeverity,
    SLAPriority,
    SLASource,
    WarningLevel,
)


# ========== Type Aliases for Literals ==========
GradeStr = Literal["A", "B", "C", "D"]


class _ORMResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ========== Hierarchy DTOs ==========

class SLADefinitionResponse(_ORMResponse):
    """Response model for an SLA definition."""
    id: str
    tenant_id: str
    name: str
    first_response_minutes: int = Field(..., description="First-response budget in minutes")
    resolution_minutes: Optional[int] = Field(None, description="Resolution budget in minutes")
    effective_resolution_minutes: int = Field(..., description="Resolution budget, estimated when unset")
    priority: SLAPriority
    is_active: bool
    business_hours: Optional[dict] = None
    created_at: datetime


class ScopeBindingResponse(_ORMResponse):
    """Response model for a location or channel binding."""
    id: str
    sla_id: Optional[str]
    scope: BindingScope
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    channel_type: Optional[ChannelType] = None


class SLAResolutionResponse(_ORMResponse):
    """Response model for a resolved SLA."""
    source: SLASource = Field(..., description="Tier that supplied the SLA")
    sla_id: Optional[str] = None
    sla: Optional[SLADefinitionResponse] = None
    local_binding: Optional[ScopeBindingResponse] = None
    channel_binding: Optional[ScopeBindingResponse] = None
    tenant_sla_id: Optional[str] = None


class SLAHierarchyResponse(_ORMResponse):
    """Response model for the full hierarchy of a context."""
    resolution: SLAResolutionResponse
    available: Dict[str, SLAResolutionResponse] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)


class SLAApplicabilityResponse(_ORMResponse):
    is_applicable: bool
    reason: Optional[str] = None
    resolution: SLAResolutionResponse


class TierCoverageResponse(_ORMResponse):
    configured: int
    total: int
    coverage: int = Field(..., description="Configured share in percent")


class SLAHierarchyStatsResponse(_ORMResponse):
    """Response model for hierarchy coverage statistics."""
    local: TierCoverageResponse
    channel: TierCoverageResponse
    tenant: TierCoverageResponse
    score: int
    max_score: int
    level: int = Field(..., description="Optimisation level in percent")
    grade: GradeStr


class SLARecommendationsResponse(_ORMResponse):
    recommendations: List[str]
    local_count: int
    channel_count: int
    tenant_count: int
    total_locations: int
    total_channels: int


class SimulatedResolutionResponse(_ORMResponse):
    context: str
    description: str
    resolution: SLAResolutionResponse


class SLASimulationResponse(_ORMResponse):
    simulations: List[SimulatedResolutionResponse]
    total_contexts: int
    unique_slas: int
    sources: Dict[str, int]


# ========== Detection DTOs ==========

class _BreachEntryResponse(_ORMResponse):
    conversation_id: str
    subject: str
    contact_name: str
    contact_handle: str
    channel_type: ChannelType
    location_id: str
    location_name: str
    sla_id: str
    sla_name: str
    sla_source: SLASource
    response_time_minutes: int
    resolution_time_minutes: int
    time_elapsed: int = Field(..., description="Wall-clock minutes since creation")
    created_at: datetime
    last_message_at: datetime
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    business_deadline: Optional[datetime] = Field(
        None, description="First-response deadline counted in business hours"
    )


class SLAWarningResponse(_BreachEntryResponse):
    """Response model for a conversation close to its first-response deadline."""
    time_remaining: int
    percentage_used: float
    severity: WarningLevel


class SLAExpiredResponse(_BreachEntryResponse):
    """Response model for a conversation past its first-response deadline."""
    time_overdue: int
    percentage_overdue: int
    severity: ExpiredSeverity
    expired_at: datetime


class _DetectionMeta(_ORMResponse):
    evaluated_count: int
    skipped_count: int
    failed_count: int
    timed_out: bool
    degraded: bool = Field(..., description="True when the pass did not complete cleanly")
    error: Optional[str] = None


class SLAWarningListResponse(_DetectionMeta):
    items: List[SLAWarningResponse]


class SLAExpiredListResponse(_DetectionMeta):
    items: List[SLAExpiredResponse]


class SLABreachStatsResponse(_ORMResponse):
    """Response model for dashboard breakdowns."""
    total: int
    by_severity: Dict[str, int]
    by_channel: Dict[str, int]
    by_location: Dict[str, int]
    by_agent: Dict[str, int]
    average_overdue: Optional[int] = None
    max_overdue: Optional[int] = None
    degraded: bool
    failed_count: int


class ConversationSLAStatusResponse(BaseModel):
    """Warning and overdue figures for one conversation."""
    conversation_id: str
    sla_source: SLASource
    sla_id: Optional[str] = None
    time_elapsed: int
    is_warning: bool
    warning_level: str = Field(..., description="Warning level, 'none' when not flagged")
    time_remaining: Optional[int] = None
    percentage_used: Optional[float] = None
    is_expired: bool
    expired_severity: Optional[ExpiredSeverity] = None
    time_overdue: Optional[int] = None
    percentage_overdue: Optional[int] = None

    @classmethod
    def from_status(cls, status) -> "ConversationSLAStatusResponse":
        warning, expired = status.warning, status.expired
        return cls(
            conversation_id=status.conversation_id,
            sla_source=status.sla_source,
            sla_id=status.sla_id,
            time_elapsed=status.time_elapsed,
            is_warning=status.is_warning,
            warning_level=warning.severity.value if warning else "none",
            time_remaining=warning.time_remaining if warning else None,
            percentage_used=warning.percentage_used if warning else None,
            is_expired=status.is_expired,
            expired_severity=expired.severity if expired else None,
            time_overdue=expired.time_overdue if expired else None,
            percentage_overdue=expired.percentage_overdue if expired else None,
        )
