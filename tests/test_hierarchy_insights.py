"""Tests for hierarchy applicability, coverage, recommendations and simulation."""
from datetime import datetime, timezone

import pytest

from conftest import TENANT, channel_binding, local_binding, make_sla
from inbox_sla.config import ChannelType, SLASource
from inbox_sla.sla.application.services import SLAHierarchyInsightsService
from inbox_sla.sla.domain import Location


@pytest.fixture
def insights(sla_repo, resolver):
    return SLAHierarchyInsightsService(sla_repo, resolver)


@pytest.fixture
def configured(sla_repo):
    sla_repo.locations = [
        Location(id="loc-a", tenant_id=TENANT, name="Alpha", timezone="America/Argentina/Cordoba"),
        Location(id="loc-b", tenant_id=TENANT, name="Beta"),
        Location(id="loc-g", tenant_id=TENANT, name="Gamma"),
        Location(id="loc-d", tenant_id=TENANT, name="Delta"),
    ]
    tenant_sla = sla_repo.add_sla(make_sla("sla-tenant", 120))
    wa_sla = sla_repo.add_sla(make_sla("sla-wa", 15, created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)))
    loc_sla = sla_repo.add_sla(make_sla("sla-loc", 30, created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)))
    sla_repo.bind_channel(channel_binding(ChannelType.WHATSAPP, wa_sla))
    sla_repo.bind_location(local_binding("loc-a", loc_sla))
    return sla_repo


class TestApplicability:
    @pytest.mark.asyncio
    async def test_winning_sla_is_applicable(self, configured, insights):
        result = await insights.validate_applicability("sla-loc", TENANT, "loc-a", ChannelType.WHATSAPP)

        assert result.is_applicable
        assert result.reason is None
        assert result.resolution.source == SLASource.LOCAL

    @pytest.mark.asyncio
    async def test_shadowed_sla(self, configured, insights):
        result = await insights.validate_applicability("sla-tenant", TENANT, "loc-a")

        assert not result.is_applicable
        assert result.reason == "SLA not applicable - using local SLA"

    @pytest.mark.asyncio
    async def test_unknown_sla(self, configured, insights):
        result = await insights.validate_applicability("missing", TENANT)
        assert result.reason == "SLA not found"

    @pytest.mark.asyncio
    async def test_sla_of_another_tenant(self, configured, insights):
        configured.add_sla(make_sla("sla-foreign", tenant_id="tenant-2"))

        result = await insights.validate_applicability("sla-foreign", TENANT)

        assert result.reason == "SLA does not belong to this tenant"


class TestHierarchyStats:
    @pytest.mark.asyncio
    async def test_coverage_and_grade(self, configured, insights):
        configured.bind_location(local_binding("loc-b", configured.slas["sla-loc"]))
        configured.bind_channel(channel_binding(ChannelType.INSTAGRAM, configured.slas["sla-wa"]))
        configured.bind_channel(channel_binding(ChannelType.TIKTOK, configured.slas["sla-wa"]))

        stats = await insights.hierarchy_stats(TENANT)

        assert (stats.local.configured, stats.local.total, stats.local.coverage) == (2, 4, 50)
        assert (stats.channel.configured, stats.channel.total, stats.channel.coverage) == (3, 6, 50)
        assert (stats.tenant.configured, stats.tenant.coverage) == (3, 100)
        # 2*3 + 3*2 + 3 over 4*3 + 6*2 + 1
        assert (stats.score, stats.max_score) == (15, 25)
        assert stats.level == 60
        assert stats.grade == "B"

    @pytest.mark.asyncio
    async def test_unconfigured_tenant(self, insights):
        stats = await insights.hierarchy_stats(TENANT)

        assert stats.score == 0
        assert stats.max_score == 13
        assert stats.local.coverage == 0
        assert stats.tenant.coverage == 0
        assert stats.grade == "D"


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_counts_missing_bindings(self, configured, insights):
        result = await insights.optimization_recommendations(TENANT)

        assert (result.local_count, result.channel_count, result.tenant_count) == (1, 1, 3)
        assert result.recommendations[:2] == [
            "Configure channel-specific SLAs (5 missing)",
            "Configure location-specific SLAs (3 missing)",
        ]
        assert result.recommendations[-1] == "Configure appropriate escalation rules"

    @pytest.mark.asyncio
    async def test_empty_tenant(self, insights):
        result = await insights.optimization_recommendations(TENANT)

        assert result.recommendations[0] == "Configure a default SLA for the tenant"
        assert len(result.recommendations) == 5

    @pytest.mark.asyncio
    async def test_tenant_only(self, sla_repo, insights):
        sla_repo.add_sla(make_sla("sla-tenant"))

        result = await insights.optimization_recommendations(TENANT)

        assert "Consider configuring specific SLAs to improve the customer experience" in result.recommendations


class TestSimulation:
    @pytest.mark.asyncio
    async def test_simulated_contexts(self, configured, insights):
        report = await insights.simulate(TENANT)

        # tenant + 6 channels + 3 locations + 1 combined
        assert report.total_contexts == 11
        assert report.unique_slas == 3
        assert report.sources == {"local": 2, "channel": 1, "tenant": 8, "none": 0}

        contexts = [s.context for s in report.simulations]
        assert contexts[0] == "Tenant default"
        assert "Location Alpha" in contexts
        assert "Location Gamma" not in contexts
        assert contexts[-1] == "Location Alpha + Channel WHATSAPP"

    @pytest.mark.asyncio
    async def test_tenant_without_locations(self, insights):
        report = await insights.simulate(TENANT)

        assert report.total_contexts == 7
        assert report.sources["none"] == 7
        assert report.unique_slas == 1
