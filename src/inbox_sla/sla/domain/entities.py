"""
SLA Domain Entities
====================

Pure Python domain entities for SLA resolution and breach detection.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from inbox_sla.config import (
    ACTIVE_STATUSES,
    BindingScope,
    ChannelType,
    ConversationStatus,
    ExpiredSeverity,
    SLAPriority,
    SLASource,
    WarningLevel,
)
from inbox_sla.sla.domain.business_hours import BusinessHoursCalendar


@dataclass(frozen=True)
class SLADefinition:
    """
    A named first-response/resolution budget owned by a tenant.

    ``business_hours`` keeps the stored JSON as-is; it is parsed on use so a
    malformed calendar only affects the evaluations that need it.
    """

    id: str
    tenant_id: str
    name: str
    first_response_minutes: int
    created_at: datetime
    resolution_minutes: Optional[int] = None
    business_hours: Optional[dict] = None
    priority: SLAPriority = SLAPriority.MEDIUM
    is_active: bool = True

    def __post_init__(self):
        if self.first_response_minutes <= 0:
            raise ValueError("first_response_minutes must be positive")

    @property
    def effective_resolution_minutes(self) -> int:
        """Resolution budget, estimated as twice the first-response budget when unset."""
        if self.resolution_minutes:
            return self.resolution_minutes
        return self.first_response_minutes * 2

    def calendar(self) -> Optional[BusinessHoursCalendar]:
        """Parsed business-hours calendar, or None when not configured."""
        return BusinessHoursCalendar.from_json(self.business_hours)


@dataclass(frozen=True)
class Location:
    """A physical location (branch) of a tenant."""

    id: str
    tenant_id: str
    name: str
    timezone: Optional[str] = None


@dataclass(frozen=True)
class ScopeBinding:
    """
    Assignment of an SLA definition to a location or a channel type.

    ``sla`` is None when the referenced definition no longer exists.
    """

    id: str
    tenant_id: str
    sla_id: Optional[str]
    scope: BindingScope
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    channel_type: Optional[ChannelType] = None
    sla: Optional[SLADefinition] = None

    def __post_init__(self):
        if self.scope == BindingScope.LOCAL and not self.location_id:
            raise ValueError("local bindings require a location_id")
        if self.scope == BindingScope.CHANNEL and not self.channel_type:
            raise ValueError("channel bindings require a channel_type")


@dataclass(frozen=True)
class ConversationSnapshot:
    """Read-only projection of a conversation with its contact, assignee, channel and location."""

    id: str
    tenant_id: str
    status: ConversationStatus
    created_at: datetime
    last_message_at: datetime
    location_id: str
    location_name: str
    channel_type: ChannelType
    contact_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_handle: Optional[str] = None
    subject: Optional[str] = None
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class SLAHierarchyResolution:
    """Outcome of resolving the applicable SLA for a context."""

    source: SLASource
    sla: Optional[SLADefinition] = None
    local_binding: Optional[ScopeBinding] = None
    channel_binding: Optional[ScopeBinding] = None
    tenant_sla_id: Optional[str] = None

    @property
    def sla_id(self) -> Optional[str]:
        return self.sla.id if self.sla else None

    @classmethod
    def none(cls) -> "SLAHierarchyResolution":
        return cls(source=SLASource.NONE)


@dataclass
class SLAHierarchyView:
    """Winning resolution plus every tier that has something configured."""

    resolution: SLAHierarchyResolution
    available: Dict[str, SLAHierarchyResolution] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class SLAEvaluationContext:
    """A conversation paired with its resolved SLA and wall-clock elapsed minutes."""

    conversation: ConversationSnapshot
    resolution: SLAHierarchyResolution
    elapsed_minutes: int
    now: datetime
    business_deadline: Optional[datetime] = None

    @property
    def sla(self) -> SLADefinition:
        return self.resolution.sla


@dataclass
class SLABreachEntry:
    """Fields shared by warning and expired classification results."""

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
    time_elapsed: int
    created_at: datetime
    last_message_at: datetime
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    business_deadline: Optional[datetime] = None

    @property
    def agent_key(self) -> Optional[str]:
        """Display key for per-agent breakdowns; None when unassigned."""
        if not self.assigned_to:
            return None
        return self.assigned_to_name or self.assigned_to


@dataclass
class SLAWarning(SLABreachEntry):
    """A conversation that consumed at least 75% of its first-response budget."""

    time_remaining: int = 0
    percentage_used: float = 0.0
    severity: WarningLevel = WarningLevel.LOW


@dataclass
class SLAExpired(SLABreachEntry):
    """A conversation past its first-response budget."""

    time_overdue: int = 0
    percentage_overdue: int = 0
    severity: ExpiredSeverity = ExpiredSeverity.OVERDUE
    expired_at: Optional[datetime] = None


T = TypeVar("T")


@dataclass
class DetectionResult(Generic[T]):
    """
    Items produced by a detection pass plus how healthy the pass was.

    An empty, non-degraded result means "no breaches"; an empty, degraded
    result means the evaluation itself broke.
    """

    items: List[T] = field(default_factory=list)
    evaluated_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None or self.timed_out or self.failed_count > 0

    def filter(self, predicate: Callable[[T], bool]) -> "DetectionResult[T]":
        """Same pass metadata, subset of the items (order preserved)."""
        return replace(self, items=[item for item in self.items if predicate(item)])


@dataclass
class SLABreachStats:
    """Breakdown of a classified list for dashboards."""

    total: int
    by_severity: Dict[str, int]
    by_channel: Dict[str, int]
    by_location: Dict[str, int]
    by_agent: Dict[str, int]
    average_overdue: Optional[int] = None
    max_overdue: Optional[int] = None
    degraded: bool = False
    failed_count: int = 0


@dataclass
class ConversationSLAStatus:
    """Warning and overdue figures for a single conversation."""

    conversation_id: str
    sla_source: SLASource
    sla_id: Optional[str] = None
    time_elapsed: int = 0
    warning: Optional[SLAWarning] = None
    expired: Optional[SLAExpired] = None

    @property
    def is_warning(self) -> bool:
        return self.warning is not None

    @property
    def is_expired(self) -> bool:
        return self.expired is not None


@dataclass
class SLAApplicability:
    """Whether a given SLA is the one the hierarchy selects for a context."""

    is_applicable: bool
    resolution: SLAHierarchyResolution
    reason: Optional[str] = None


@dataclass
class TierCoverage:
    configured: int
    total: int
    coverage: int


@dataclass
class SLAHierarchyStats:
    """Configuration coverage per tier and an overall optimisation grade."""

    local: TierCoverage
    channel: TierCoverage
    tenant: TierCoverage
    score: int
    max_score: int
    level: int
    grade: str


@dataclass
class SLARecommendations:
    recommendations: List[str]
    local_count: int
    channel_count: int
    tenant_count: int
    total_locations: int
    total_channels: int


@dataclass
class SimulatedResolution:
    context: str
    description: str
    resolution: SLAHierarchyResolution


@dataclass
class SLASimulationReport:
    """Resolutions for a representative set of contexts of one tenant."""

    simulations: List[SimulatedResolution]
    total_contexts: int
    unique_slas: int
    sources: Dict[str, int]
