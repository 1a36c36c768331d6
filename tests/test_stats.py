"""Tests for warning and expired breakdowns."""
import pytest

from conftest import (
    NOW,
    TENANT,
    BrokenConversationRepository,
    InMemoryConversationRepository,
    InMemorySLARepository,
    make_conversation,
    make_sla,
)
from inbox_sla.config import ChannelType
from inbox_sla.sla.application.services import (
    BreachDetectionService,
    SLAHierarchyResolver,
    SLAStatsService,
)


def build_stats(conversations, budget=100, conversation_repo=None):
    sla_repo = InMemorySLARepository()
    sla_repo.add_sla(make_sla("sla-tenant", budget))
    detection = BreachDetectionService(
        conversation_repo or InMemoryConversationRepository(conversations),
        SLAHierarchyResolver(sla_repo),
        clock=lambda: NOW,
    )
    return SLAStatsService(detection)


@pytest.fixture
def mixed_conversations():
    return [
        make_conversation("a", 110, assignee_id="agent-1", assignee_name="Lucia"),
        make_conversation("b", 170, channel_type=ChannelType.INSTAGRAM, location_id="loc-2",
                          assignee_id="agent-1", assignee_name="Lucia"),
        make_conversation("c", 280, channel_type=ChannelType.TELEGRAM, assignee_id="agent-2"),
        make_conversation("d", 80),
    ]


class TestExpiredStats:
    @pytest.mark.asyncio
    async def test_breakdowns(self, mixed_conversations):
        stats = await build_stats(mixed_conversations).expired_stats(TENANT)

        assert stats.total == 3
        assert stats.by_severity == {"overdue": 1, "critical": 1, "urgent": 1}
        assert stats.by_channel == {"WHATSAPP": 1, "INSTAGRAM": 1, "TELEGRAM": 1}
        assert stats.by_location == {"Loc-1": 2, "Loc-2": 1}
        # Agents without a display name are keyed by id
        assert stats.by_agent == {"Lucia": 2, "agent-2": 1}
        # (10 + 70 + 180) / 3 = 86.67
        assert stats.average_overdue == 87
        assert stats.max_overdue == 180
        assert not stats.degraded

    @pytest.mark.asyncio
    async def test_totals_agree(self, mixed_conversations):
        stats = await build_stats(mixed_conversations).expired_stats(TENANT)
        assert stats.total == sum(stats.by_severity.values()) == sum(stats.by_channel.values())

    @pytest.mark.asyncio
    async def test_empty(self):
        stats = await build_stats([]).expired_stats(TENANT)

        assert stats.total == 0
        assert stats.by_severity == {"overdue": 0, "critical": 0, "urgent": 0}
        assert stats.average_overdue == 0
        assert stats.max_overdue == 0

    @pytest.mark.asyncio
    async def test_degraded_pass_is_flagged(self):
        stats = await build_stats([], conversation_repo=BrokenConversationRepository()).expired_stats(TENANT)

        assert stats.total == 0
        assert stats.degraded


class TestWarningStats:
    @pytest.mark.asyncio
    async def test_breakdowns(self, mixed_conversations):
        stats = await build_stats(mixed_conversations).warning_stats(TENANT)

        # "d" is at 80% with 20 minutes left, the rest are past the budget
        assert stats.total == 4
        assert stats.by_severity == {"low": 0, "medium": 1, "high": 0, "critical": 3}
        assert stats.total == sum(stats.by_channel.values())
        assert stats.average_overdue is None
        assert stats.max_overdue is None


class TestOverdueAverage:
    @pytest.mark.asyncio
    async def test_rounds_half_up(self):
        # 1 and 2 minutes late average 1.5
        stats = await build_stats([make_conversation("a", 101), make_conversation("b", 102)]).expired_stats(TENANT)
        assert stats.average_overdue == 2
