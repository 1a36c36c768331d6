"""Tests for SLA hierarchy resolution."""
from datetime import datetime, timezone

import pytest

from conftest import (
    TENANT,
    FailingTierRepository,
    channel_binding,
    local_binding,
    make_sla,
)
from inbox_sla.config import ChannelType, SLASource
from inbox_sla.sla.application.services import SLAHierarchyResolver


@pytest.fixture
def configured(sla_repo):
    tenant_sla = sla_repo.add_sla(make_sla("sla-tenant", 120))
    channel_sla = sla_repo.add_sla(make_sla("sla-whatsapp", 15, created_at=datetime(2024, 1, 2, tzinfo=timezone.utc)))
    local_sla = sla_repo.add_sla(make_sla("sla-loc", 30, created_at=datetime(2024, 1, 3, tzinfo=timezone.utc)))
    sla_repo.bind_channel(channel_binding(ChannelType.WHATSAPP, channel_sla))
    sla_repo.bind_location(local_binding("loc-1", local_sla))
    return sla_repo, tenant_sla, channel_sla, local_sla


class TestResolve:
    @pytest.mark.asyncio
    async def test_location_wins_over_channel(self, configured, resolver):
        repo, _, _, local_sla = configured
        resolution = await resolver.resolve(TENANT, "loc-1", ChannelType.WHATSAPP)

        assert resolution.source == SLASource.LOCAL
        assert resolution.sla == local_sla
        assert resolution.local_binding.location_id == "loc-1"
        # Looser tiers are not consulted once a tier matches
        assert repo.calls == ["local"]

    @pytest.mark.asyncio
    async def test_channel_when_location_unbound(self, configured, resolver):
        _, _, channel_sla, _ = configured
        resolution = await resolver.resolve(TENANT, "loc-2", ChannelType.WHATSAPP)

        assert resolution.source == SLASource.CHANNEL
        assert resolution.sla_id == channel_sla.id
        assert resolution.channel_binding.channel_type == ChannelType.WHATSAPP

    @pytest.mark.asyncio
    async def test_channel_type_accepts_plain_string(self, configured, resolver):
        resolution = await resolver.resolve(TENANT, None, "WHATSAPP")
        assert resolution.source == SLASource.CHANNEL

    @pytest.mark.asyncio
    async def test_unknown_channel_type_skips_channel_tier(self, configured, resolver):
        repo, tenant_sla, _, _ = configured

        resolution = await resolver.resolve(TENANT, "loc-2", "FAX")
        view = await resolver.get_hierarchy(TENANT, None, "FAX")

        assert resolution.source == SLASource.TENANT
        assert resolution.sla == tenant_sla
        assert "channel" not in repo.calls
        assert view.resolution.source == SLASource.TENANT
        assert SLASource.CHANNEL.value not in view.available

    @pytest.mark.asyncio
    async def test_tenant_default_is_earliest_definition(self, configured, resolver):
        _, tenant_sla, _, _ = configured
        resolution = await resolver.resolve(TENANT, "loc-2", ChannelType.TELEGRAM)

        assert resolution.source == SLASource.TENANT
        assert resolution.tenant_sla_id == tenant_sla.id

    @pytest.mark.asyncio
    async def test_no_context_falls_to_tenant(self, configured, resolver):
        resolution = await resolver.resolve(TENANT)
        assert resolution.source == SLASource.TENANT

    @pytest.mark.asyncio
    async def test_nothing_configured(self, resolver):
        resolution = await resolver.resolve("empty-tenant", "loc-1", ChannelType.WHATSAPP)

        assert resolution.source == SLASource.NONE
        assert resolution.sla is None
        assert resolution.sla_id is None

    @pytest.mark.asyncio
    async def test_binding_to_deleted_sla_falls_through(self, sla_repo, resolver):
        tenant_sla = sla_repo.add_sla(make_sla("sla-tenant"))
        sla_repo.bind_location(local_binding("loc-1", None))

        resolution = await resolver.resolve(TENANT, "loc-1")

        assert resolution.source == SLASource.TENANT
        assert resolution.sla == tenant_sla

    @pytest.mark.asyncio
    async def test_other_tenant_bindings_are_ignored(self, configured, resolver):
        resolution = await resolver.resolve("tenant-2", "loc-1", ChannelType.WHATSAPP)
        assert resolution.source == SLASource.NONE


class TestTierFailures:
    @pytest.mark.asyncio
    async def test_failing_local_tier_falls_through_to_channel(self):
        repo = FailingTierRepository({"local"})
        sla = repo.add_sla(make_sla("sla-whatsapp", 15))
        repo.bind_channel(channel_binding(ChannelType.WHATSAPP, sla))

        resolution = await SLAHierarchyResolver(repo).resolve(TENANT, "loc-1", ChannelType.WHATSAPP)

        assert resolution.source == SLASource.CHANNEL

    @pytest.mark.asyncio
    async def test_failing_channel_tier_falls_through_to_tenant(self):
        repo = FailingTierRepository({"channel"})
        repo.add_sla(make_sla("sla-tenant"))

        resolution = await SLAHierarchyResolver(repo).resolve(TENANT, None, ChannelType.WHATSAPP)

        assert resolution.source == SLASource.TENANT

    @pytest.mark.asyncio
    async def test_every_tier_failing_resolves_to_none(self):
        repo = FailingTierRepository({"local", "channel", "tenant"})
        repo.add_sla(make_sla("sla-tenant"))

        resolution = await SLAHierarchyResolver(repo).resolve(TENANT, "loc-1", ChannelType.WHATSAPP)

        assert resolution.source == SLASource.NONE


class TestHierarchyView:
    @pytest.mark.asyncio
    async def test_lists_every_configured_tier(self, configured, resolver):
        view = await resolver.get_hierarchy(TENANT, "loc-1", ChannelType.WHATSAPP)

        assert view.resolution.source == SLASource.LOCAL
        assert set(view.available) == {"local", "channel", "tenant"}
        assert view.recommendations == ["Using the location-specific SLA - optimal configuration"]

    @pytest.mark.asyncio
    async def test_recommends_unused_location_binding(self, sla_repo, resolver):
        sla_repo.add_sla(make_sla("sla-tenant"))
        sla_repo.bind_location(local_binding("loc-1", None))

        view = await resolver.get_hierarchy(TENANT, "loc-1")

        assert view.resolution.source == SLASource.TENANT
        assert "This location has a specific SLA that is not being used" in view.recommendations

    @pytest.mark.asyncio
    async def test_nothing_configured(self, resolver):
        view = await resolver.get_hierarchy(TENANT)

        assert view.resolution.source == SLASource.NONE
        assert view.available == {}
        assert view.recommendations[0].startswith("No SLA is configured")
