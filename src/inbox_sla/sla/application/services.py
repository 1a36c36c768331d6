"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: resolution, detection and aggregation are separate services
- Dependency Inversion: every service receives its repositories at construction
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Union

from inbox_sla.config import (
    VALID_CHANNEL_TYPES,
    ChannelType,
    ExpiredSeverity,
    SLASource,
    settings,
)
from inbox_sla.core import BusinessCalendarException, ResourceNotFoundException
from inbox_sla.shared.infrastructure.logging import get_logger, log_latency
from inbox_sla.sla.domain import (
    BreachPolicy,
    ConversationSLAStatus,
    ConversationSnapshot,
    DetectionResult,
    ExpiryPolicy,
    Location,
    ScopeBinding,
    SimulatedResolution,
    SLAApplicability,
    SLABreachStats,
    SLACalculator,
    SLADefinition,
    SLAEvaluationContext,
    SLAExpired,
    SLAHierarchyResolution,
    SLAHierarchyStats,
    SLAHierarchyView,
    SLARecommendations,
    SLASimulationReport,
    SLAWarning,
    TierCoverage,
    WarningPolicy,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISLARepository(ABC):
    """Interface for SLA definitions and scope bindings."""

    @abstractmethod
    async def get_local_binding(self, tenant_id: str, location_id: str) -> Optional[ScopeBinding]:
        """Get the binding for a (tenant, location) pair."""

    @abstractmethod
    async def get_channel_binding(
        self,
        tenant_id: str,
        channel_type: ChannelType
    ) -> Optional[ScopeBinding]:
        """Get the binding for a (tenant, channel type) pair."""

    @abstractmethod
    async def get_tenant_default(self, tenant_id: str) -> Optional[SLADefinition]:
        """Get the earliest-created SLA definition of the tenant."""

    @abstractmethod
    async def get_sla(self, sla_id: str) -> Optional[SLADefinition]:
        """Get an SLA definition by ID, regardless of tenant."""

    @abstractmethod
    async def count_definitions(self, tenant_id: str) -> int:
        """Count SLA definitions owned by the tenant."""

    @abstractmethod
    async def list_local_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        """List location bindings of the tenant."""

    @abstractmethod
    async def list_channel_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        """List channel bindings of the tenant."""

    @abstractmethod
    async def list_locations(self, tenant_id: str) -> List[Location]:
        """List the tenant's locations, ordered by name."""


class IConversationRepository(ABC):
    """Interface for the read-only conversation snapshot."""

    @abstractmethod
    async def list_active(self, tenant_id: str) -> List[ConversationSnapshot]:
        """List OPEN/PENDING conversations of the tenant."""

    @abstractmethod
    async def get_active(
        self,
        tenant_id: str,
        conversation_id: str
    ) -> Optional[ConversationSnapshot]:
        """Get one OPEN/PENDING conversation of the tenant."""


# ========== Hierarchy Resolution ==========

def _local_resolution(binding: ScopeBinding) -> SLAHierarchyResolution:
    return SLAHierarchyResolution(source=SLASource.LOCAL, sla=binding.sla, local_binding=binding)


def _channel_resolution(binding: ScopeBinding) -> SLAHierarchyResolution:
    return SLAHierarchyResolution(source=SLASource.CHANNEL, sla=binding.sla, channel_binding=binding)


def _tenant_resolution(sla: SLADefinition) -> SLAHierarchyResolution:
    return SLAHierarchyResolution(source=SLASource.TENANT, sla=sla, tenant_sla_id=sla.id)


def _as_channel(channel_type: Optional[Union[ChannelType, str]]) -> Optional[ChannelType]:
    """Coerce a channel type; unknown values skip the channel tier."""
    if not channel_type:
        return None
    try:
        return ChannelType(channel_type)
    except ValueError:
        logger.warning("Unknown channel type, skipping channel tier", extra={"channel_type": str(channel_type)})
        return None


class SLAHierarchyResolver:
    """
    Resolves the SLA that applies to a context: location > channel > tenant.

    Every tier lookup is guarded on its own. A storage failure at one tier is
    logged and treated as a miss so the looser tiers are still consulted.
    """

    def __init__(self, sla_repository: ISLARepository):
        self._sla_repo = sla_repository

    async def resolve(
        self,
        tenant_id: str,
        location_id: Optional[str] = None,
        channel_type: Optional[Union[ChannelType, str]] = None
    ) -> SLAHierarchyResolution:
        """
        Resolve the applicable SLA, stopping at the first tier that matches.

        Args:
            tenant_id: Owning tenant
            location_id: Location of the conversation, if any
            channel_type: Channel the conversation arrived through, if any

        Returns:
            SLAHierarchyResolution (source ``none`` when nothing applies)
        """
        if location_id:
            binding = await self._lookup("local", self._sla_repo.get_local_binding, tenant_id, location_id)
            if binding and binding.sla:
                return _local_resolution(binding)

        channel_type = _as_channel(channel_type)
        if channel_type:
            binding = await self._lookup(
                "channel", self._sla_repo.get_channel_binding, tenant_id, channel_type
            )
            if binding and binding.sla:
                return _channel_resolution(binding)

        tenant_sla = await self._lookup("tenant", self._sla_repo.get_tenant_default, tenant_id)
        if tenant_sla:
            return _tenant_resolution(tenant_sla)

        return SLAHierarchyResolution.none()

    async def get_hierarchy(
        self,
        tenant_id: str,
        location_id: Optional[str] = None,
        channel_type: Optional[Union[ChannelType, str]] = None
    ) -> SLAHierarchyView:
        """
        Full hierarchy for a context: the winner, every configured tier and
        recommendations for display.
        """
        available: Dict[str, SLAHierarchyResolution] = {}

        if location_id:
            binding = await self._lookup("local", self._sla_repo.get_local_binding, tenant_id, location_id)
            if binding:
                available[SLASource.LOCAL.value] = _local_resolution(binding)

        channel_type = _as_channel(channel_type)
        if channel_type:
            binding = await self._lookup(
                "channel", self._sla_repo.get_channel_binding, tenant_id, channel_type
            )
            if binding:
                available[SLASource.CHANNEL.value] = _channel_resolution(binding)

        tenant_sla = await self._lookup("tenant", self._sla_repo.get_tenant_default, tenant_id)
        if tenant_sla:
            available[SLASource.TENANT.value] = _tenant_resolution(tenant_sla)

        resolution = next(
            (
                available[tier.value]
                for tier in (SLASource.LOCAL, SLASource.CHANNEL, SLASource.TENANT)
                if tier.value in available and available[tier.value].sla
            ),
            SLAHierarchyResolution.none(),
        )

        return SLAHierarchyView(
            resolution=resolution,
            available=available,
            recommendations=self._hierarchy_recommendations(resolution, available),
        )

    @staticmethod
    def _hierarchy_recommendations(
        resolution: SLAHierarchyResolution,
        available: Dict[str, SLAHierarchyResolution]
    ) -> List[str]:
        recommendations = {
            SLASource.NONE: "No SLA is configured - consider configuring a tenant default SLA",
            SLASource.TENANT: "Using the tenant-wide SLA - consider configuring channel or location SLAs",
            SLASource.CHANNEL: "Using the channel SLA - consider configuring a location-specific SLA",
            SLASource.LOCAL: "Using the location-specific SLA - optimal configuration",
        }
        result = [recommendations[resolution.source]]

        if SLASource.LOCAL.value in available and resolution.source != SLASource.LOCAL:
            result.append("This location has a specific SLA that is not being used")

        if SLASource.CHANNEL.value in available and resolution.source == SLASource.TENANT:
            result.append("This channel has a specific SLA that is not being used")

        return result

    async def _lookup(self, tier: str, fetch: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await fetch(*args)
        except Exception as e:
            logger.warning(
                "SLA lookup failed, falling through to next tier",
                extra={"tier": tier, "lookup_args": [str(a) for a in args], "error": str(e)}
            )
            return None


class SLAHierarchyInsightsService:
    """
    Read models over the hierarchy configuration of a tenant: applicability
    checks, coverage statistics, recommendations and resolution simulations.
    """

    SIMULATED_LOCATIONS = 3

    def __init__(self, sla_repository: ISLARepository, resolver: SLAHierarchyResolver):
        self._sla_repo = sla_repository
        self._resolver = resolver

    async def validate_applicability(
        self,
        sla_id: str,
        tenant_id: str,
        location_id: Optional[str] = None,
        channel_type: Optional[ChannelType] = None
    ) -> SLAApplicability:
        """Check whether ``sla_id`` is the SLA the hierarchy selects for the context."""
        resolution = await self._resolver.resolve(tenant_id, location_id, channel_type)

        if resolution.sla_id == sla_id:
            return SLAApplicability(is_applicable=True, resolution=resolution)

        sla = await self._sla_repo.get_sla(sla_id)
        if sla is None:
            reason = "SLA not found"
        elif sla.tenant_id != tenant_id:
            reason = "SLA does not belong to this tenant"
        else:
            reason = f"SLA not applicable - using {resolution.source.value} SLA"

        return SLAApplicability(is_applicable=False, resolution=resolution, reason=reason)

    async def hierarchy_stats(self, tenant_id: str) -> SLAHierarchyStats:
        """
        Configuration coverage per tier.

        Score weights: location bindings 3, channel bindings 2, tenant SLAs 1.
        """
        local_bindings, channel_bindings, tenant_count, locations = await asyncio.gather(
            self._sla_repo.list_local_bindings(tenant_id),
            self._sla_repo.list_channel_bindings(tenant_id),
            self._sla_repo.count_definitions(tenant_id),
            self._sla_repo.list_locations(tenant_id),
        )

        local_configured = len({b.location_id for b in local_bindings})
        channel_configured = len({b.channel_type for b in channel_bindings})
        total_locations = len(locations)
        total_channels = len(VALID_CHANNEL_TYPES)

        score = local_configured * 3 + channel_configured * 2 + tenant_count
        max_score = total_locations * 3 + total_channels * 2 + 1
        level = SLACalculator.percent(score, max_score)

        if level >= 80:
            grade = "A"
        elif level >= 60:
            grade = "B"
        elif level >= 40:
            grade = "C"
        else:
            grade = "D"

        return SLAHierarchyStats(
            local=TierCoverage(
                configured=local_configured,
                total=total_locations,
                coverage=SLACalculator.percent(local_configured, total_locations),
            ),
            channel=TierCoverage(
                configured=channel_configured,
                total=total_channels,
                coverage=SLACalculator.percent(channel_configured, total_channels),
            ),
            tenant=TierCoverage(
                configured=tenant_count,
                total=tenant_count,
                coverage=100 if tenant_count > 0 else 0,
            ),
            score=score,
            max_score=max_score,
            level=level,
            grade=grade,
        )

    async def optimization_recommendations(self, tenant_id: str) -> SLARecommendations:
        """Fixed-rule recommendations from the number of bindings at each tier."""
        local_bindings, channel_bindings, tenant_count, locations = await asyncio.gather(
            self._sla_repo.list_local_bindings(tenant_id),
            self._sla_repo.list_channel_bindings(tenant_id),
            self._sla_repo.count_definitions(tenant_id),
            self._sla_repo.list_locations(tenant_id),
        )
        local_count = len(local_bindings)
        channel_count = len(channel_bindings)
        total_locations = len(locations)
        total_channels = len(VALID_CHANNEL_TYPES)

        recommendations = []
        if tenant_count == 0:
            recommendations.append("Configure a default SLA for the tenant")
        if channel_count < total_channels:
            recommendations.append(
                f"Configure channel-specific SLAs ({total_channels - channel_count} missing)"
            )
        if local_count < total_locations:
            recommendations.append(
                f"Configure location-specific SLAs ({total_locations - local_count} missing)"
            )

        if local_count == 0 and channel_count == 0 and tenant_count > 0:
            recommendations.append("Consider configuring specific SLAs to improve the customer experience")
        if local_count > 0 and channel_count == 0:
            recommendations.append("Configure SLAs per channel for finer granularity")
        if local_count > 0 and channel_count > 0 and tenant_count == 0:
            recommendations.append("Configure a default SLA as a fallback")

        recommendations.extend([
            "Review the effectiveness of your SLAs regularly",
            "Consider business hours specific to each timezone",
            "Configure appropriate escalation rules",
        ])

        return SLARecommendations(
            recommendations=recommendations,
            local_count=local_count,
            channel_count=channel_count,
            tenant_count=tenant_count,
            total_locations=total_locations,
            total_channels=total_channels,
        )

    async def simulate(self, tenant_id: str) -> SLASimulationReport:
        """Resolve the tenant default, every channel, the first locations and one combined context."""
        locations = await self._sla_repo.list_locations(tenant_id)
        simulations: List[SimulatedResolution] = []

        simulations.append(SimulatedResolution(
            context="Tenant default",
            description="No specific location or channel",
            resolution=await self._resolver.resolve(tenant_id),
        ))

        for channel_type in VALID_CHANNEL_TYPES:
            simulations.append(SimulatedResolution(
                context=f"Channel {channel_type.value}",
                description=f"SLA for channel {channel_type.value}",
                resolution=await self._resolver.resolve(tenant_id, channel_type=channel_type),
            ))

        for location in locations[:self.SIMULATED_LOCATIONS]:
            simulations.append(SimulatedResolution(
                context=f"Location {location.name}",
                description=f"SLA for location {location.name} ({location.timezone or 'no timezone'})",
                resolution=await self._resolver.resolve(tenant_id, location_id=location.id),
            ))

        if locations:
            location, channel_type = locations[0], VALID_CHANNEL_TYPES[0]
            simulations.append(SimulatedResolution(
                context=f"Location {location.name} + Channel {channel_type.value}",
                description="SLA for a specific location and channel",
                resolution=await self._resolver.resolve(tenant_id, location.id, channel_type),
            ))

        sources = {source.value: 0 for source in SLASource}
        for simulation in simulations:
            sources[simulation.resolution.source.value] += 1

        return SLASimulationReport(
            simulations=simulations,
            total_contexts=len(simulations),
            unique_slas=len({s.resolution.sla_id for s in simulations}),
            sources=sources,
        )


# ========== Breach Detection ==========

class _Outcome(NamedTuple):
    kind: str  # "evaluated" | "skipped" | "failed"
    item: Any = None


_SKIPPED = _Outcome("skipped")
_FAILED = _Outcome("failed")


class BreachDetectionService:
    """
    Classifies the active conversations of a tenant against their SLAs.

    One shared traversal (load snapshot, resolve SLA per conversation, compute
    elapsed time) feeds a pluggable BreachPolicy. Conversations are evaluated
    concurrently, bounded by a semaphore; results are sorted once every task
    has finished.

    Detection never raises for storage problems: failures are logged and
    reported on the DetectionResult.
    """

    def __init__(
        self,
        conversation_repository: IConversationRepository,
        resolver: SLAHierarchyResolver,
        clock: Optional[Clock] = None,
        concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        calendar_max_days: Optional[int] = None
    ):
        self._conversation_repo = conversation_repository
        self._resolver = resolver
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._concurrency = concurrency or settings.sla_evaluation_concurrency
        self._timeout_seconds = (
            timeout_seconds if timeout_seconds is not None
            else settings.sla_evaluation_timeout_seconds
        )
        self._calendar_max_days = calendar_max_days or settings.business_calendar_max_days

    async def detect_warnings(
        self,
        tenant_id: str,
        agent_id: Optional[str] = None,
        channel_type: Optional[ChannelType] = None,
        location_id: Optional[str] = None,
        timeout_seconds: Optional[float] = None
    ) -> DetectionResult[SLAWarning]:
        """
        Conversations that used at least 75% of their first-response budget.

        Ordered by level (critical first), then by minutes remaining.
        """
        result = await self.evaluate(tenant_id, WarningPolicy(), timeout_seconds)
        return result.filter(_entry_filter(agent_id, channel_type, location_id))

    async def detect_expired(
        self,
        tenant_id: str,
        agent_id: Optional[str] = None,
        channel_type: Optional[ChannelType] = None,
        location_id: Optional[str] = None,
        expired_from: Optional[datetime] = None,
        expired_to: Optional[datetime] = None,
        critical_only: bool = False,
        timeout_seconds: Optional[float] = None
    ) -> DetectionResult[SLAExpired]:
        """
        Conversations past their first-response budget.

        Ordered by severity (urgent first), then by minutes overdue (worst first).

        Args:
            expired_from / expired_to: Inclusive range on the instant the budget lapsed
            critical_only: Keep only ``urgent`` and ``critical`` entries
        """
        result = await self.evaluate(tenant_id, ExpiryPolicy(), timeout_seconds)
        entry_matches = _entry_filter(agent_id, channel_type, location_id)
        # Naive bounds are read as UTC
        if expired_from and expired_from.tzinfo is None:
            expired_from = expired_from.replace(tzinfo=timezone.utc)
        if expired_to and expired_to.tzinfo is None:
            expired_to = expired_to.replace(tzinfo=timezone.utc)

        def matches(item: SLAExpired) -> bool:
            if not entry_matches(item):
                return False
            if expired_from and item.expired_at < expired_from:
                return False
            if expired_to and item.expired_at > expired_to:
                return False
            if critical_only and item.severity not in (ExpiredSeverity.URGENT, ExpiredSeverity.CRITICAL):
                return False
            return True

        return result.filter(matches)

    async def conversation_status(self, tenant_id: str, conversation_id: str) -> ConversationSLAStatus:
        """
        Warning and overdue figures for one active conversation.

        Raises:
            ResourceNotFoundException: If the conversation is not active in the tenant
        """
        conversation = await self._conversation_repo.get_active(tenant_id, conversation_id)
        if conversation is None:
            raise ResourceNotFoundException("Conversation", conversation_id)

        ctx = await self._build_context(tenant_id, conversation, self._clock())
        if ctx is None:
            return ConversationSLAStatus(conversation_id=conversation_id, sla_source=SLASource.NONE)

        return ConversationSLAStatus(
            conversation_id=conversation_id,
            sla_source=ctx.resolution.source,
            sla_id=ctx.sla.id,
            time_elapsed=ctx.elapsed_minutes,
            warning=WarningPolicy().classify(ctx),
            expired=ExpiryPolicy().classify(ctx),
        )

    async def evaluate(
        self,
        tenant_id: str,
        policy: BreachPolicy,
        timeout_seconds: Optional[float] = None
    ) -> DetectionResult:
        """
        Run the shared traversal for ``policy`` over the tenant's active conversations.

        Args:
            tenant_id: Tenant to evaluate
            policy: Threshold/severity strategy
            timeout_seconds: Overrides the service timeout for this pass

        Returns:
            DetectionResult with sorted items; ``timed_out`` when the batch was
            cut short (finished evaluations are kept)
        """
        timeout = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        now = self._clock()

        with log_latency(logger, f"detect_{policy.name}", tenant_id=tenant_id):
            try:
                conversations = await self._conversation_repo.list_active(tenant_id)
            except Exception as e:
                logger.error(
                    "Could not load active conversations",
                    extra={"tenant_id": tenant_id, "policy": policy.name, "error": str(e)}
                )
                return DetectionResult(error=f"Conversation snapshot unavailable: {e}")

            semaphore = asyncio.Semaphore(self._concurrency)

            async def evaluate_one(conversation: ConversationSnapshot) -> _Outcome:
                async with semaphore:
                    return await self._evaluate_conversation(tenant_id, conversation, policy, now)

            tasks = [
                asyncio.create_task(evaluate_one(conversation))
                for conversation in conversations
                if conversation.is_active
            ]
            timed_out = False

            try:
                if tasks:
                    _, pending = await asyncio.wait(tasks, timeout=timeout)
                    if pending:
                        timed_out = True
                        logger.warning(
                            "SLA detection timed out, returning partial results",
                            extra={
                                "tenant_id": tenant_id,
                                "policy": policy.name,
                                "pending": len(pending),
                                "timeout_seconds": timeout
                            }
                        )
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()
                if tasks:
                    await asyncio.gather(*tasks, return_exceptions=True)

            result = DetectionResult(timed_out=timed_out)
            items = []
            for task in tasks:
                if task.cancelled():
                    continue
                outcome = task.result()
                if outcome.kind == "failed":
                    result.failed_count += 1
                elif outcome.kind == "skipped":
                    result.skipped_count += 1
                else:
                    result.evaluated_count += 1
                    if outcome.item is not None:
                        items.append(outcome.item)

            result.items = policy.sort(items)

            logger.info(
                "SLA detection pass finished",
                extra={
                    "tenant_id": tenant_id,
                    "policy": policy.name,
                    "conversations": len(tasks),
                    "flagged": len(result.items),
                    "skipped": result.skipped_count,
                    "failed": result.failed_count,
                    "timed_out": timed_out
                }
            )
            return result

    async def _evaluate_conversation(
        self,
        tenant_id: str,
        conversation: ConversationSnapshot,
        policy: BreachPolicy,
        now: datetime
    ) -> _Outcome:
        try:
            ctx = await self._build_context(tenant_id, conversation, now)
            if ctx is None:
                return _SKIPPED
            return _Outcome("evaluated", policy.classify(ctx))
        except Exception as e:
            logger.error(
                "SLA evaluation failed for conversation",
                extra={
                    "tenant_id": tenant_id,
                    "conversation_id": conversation.id,
                    "policy": policy.name,
                    "error": str(e)
                }
            )
            return _FAILED

    async def _build_context(
        self,
        tenant_id: str,
        conversation: ConversationSnapshot,
        now: datetime
    ) -> Optional[SLAEvaluationContext]:
        """Resolve the conversation's SLA; None when no SLA applies."""
        resolution = await self._resolver.resolve(
            tenant_id,
            conversation.location_id,
            conversation.channel_type
        )
        if resolution.sla is None:
            return None

        return SLAEvaluationContext(
            conversation=conversation,
            resolution=resolution,
            elapsed_minutes=SLACalculator.elapsed_minutes(conversation.created_at, now),
            now=now,
            business_deadline=self._business_deadline(resolution.sla, conversation),
        )

    def _business_deadline(
        self,
        sla: SLADefinition,
        conversation: ConversationSnapshot
    ) -> Optional[datetime]:
        """
        First-response deadline counted in business hours.

        The deadline is display-only; classification runs on wall-clock
        minutes, so an unusable calendar yields None instead of failing
        the conversation.
        """
        try:
            calendar = sla.calendar()
            if calendar is None or not calendar.enabled:
                return None
            return calendar.deadline(
                conversation.created_at,
                sla.first_response_minutes,
                max_days=self._calendar_max_days
            )
        except BusinessCalendarException as e:
            logger.warning(
                "Business-hours deadline unavailable",
                extra={
                    "sla_id": sla.id,
                    "conversation_id": conversation.id,
                    "error": e.message
                }
            )
            return None


def _entry_filter(
    agent_id: Optional[str],
    channel_type: Optional[ChannelType],
    location_id: Optional[str]
) -> Callable[[Any], bool]:
    def matches(item: Any) -> bool:
        if agent_id and item.assigned_to != agent_id:
            return False
        if channel_type and item.channel_type != ChannelType(channel_type):
            return False
        if location_id and item.location_id != location_id:
            return False
        return True
    return matches


# ========== Aggregation ==========

class SLAStatsService:
    """Dashboard breakdowns over the detection results."""

    def __init__(self, detection_service: BreachDetectionService):
        self._detection = detection_service

    async def warning_stats(self, tenant_id: str) -> SLABreachStats:
        result = await self._detection.detect_warnings(tenant_id)
        return self.aggregate(result, WarningPolicy.severities)

    async def expired_stats(self, tenant_id: str) -> SLABreachStats:
        result = await self._detection.detect_expired(tenant_id)
        return self.aggregate(result, ExpiryPolicy.severities, include_overdue=True)

    @staticmethod
    def aggregate(
        result: DetectionResult,
        severities: List[Any],
        include_overdue: bool = False
    ) -> SLABreachStats:
        """
        Count entries per severity, channel, location and agent.

        Unassigned entries are not counted per agent. With ``include_overdue``
        the rounded mean and the maximum of ``time_overdue`` are added (0 for
        an empty list).
        """
        by_severity = {severity.value: 0 for severity in severities}
        by_channel: Dict[str, int] = {}
        by_location: Dict[str, int] = {}
        by_agent: Dict[str, int] = {}

        for item in result.items:
            by_severity[item.severity.value] += 1

            channel = ChannelType(item.channel_type).value
            by_channel[channel] = by_channel.get(channel, 0) + 1
            by_location[item.location_name] = by_location.get(item.location_name, 0) + 1

            agent_key = item.agent_key
            if agent_key:
                by_agent[agent_key] = by_agent.get(agent_key, 0) + 1

        stats = SLABreachStats(
            total=len(result.items),
            by_severity=by_severity,
            by_channel=by_channel,
            by_location=by_location,
            by_agent=by_agent,
            degraded=result.degraded,
            failed_count=result.failed_count,
        )

        if include_overdue:
            overdue = [item.time_overdue for item in result.items]
            stats.average_overdue = SLACalculator.round_half_up(sum(overdue) / len(overdue)) if overdue else 0
            stats.max_overdue = max(overdue, default=0)

        return stats
