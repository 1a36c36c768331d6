"""
Test configuration and fixtures.

Provides:
- In-memory SLA and conversation repositories
- Builders for SLA definitions, bindings and conversations
- A fixed clock
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from inbox_sla.config import BindingScope, ChannelType, ConversationStatus
from inbox_sla.sla.application.services import (
    BreachDetectionService,
    IConversationRepository,
    ISLARepository,
    SLAHierarchyResolver,
)
from inbox_sla.sla.domain import ConversationSnapshot, Location, ScopeBinding, SLADefinition

TENANT = "tenant-1"
NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Builders
# =============================================================================

def make_sla(
    sla_id: str,
    minutes: int = 60,
    tenant_id: str = TENANT,
    created_at: Optional[datetime] = None,
    **kwargs
) -> SLADefinition:
    return SLADefinition(
        id=sla_id,
        tenant_id=tenant_id,
        name=kwargs.pop("name", f"SLA {sla_id}"),
        first_response_minutes=minutes,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        **kwargs
    )


def local_binding(location_id: str, sla: Optional[SLADefinition], tenant_id: str = TENANT) -> ScopeBinding:
    return ScopeBinding(
        id=f"local-{location_id}",
        tenant_id=tenant_id,
        sla_id=sla.id if sla else "deleted-sla",
        scope=BindingScope.LOCAL,
        location_id=location_id,
        location_name=location_id.title(),
        sla=sla,
    )


def channel_binding(
    channel_type: ChannelType,
    sla: Optional[SLADefinition],
    tenant_id: str = TENANT
) -> ScopeBinding:
    return ScopeBinding(
        id=f"channel-{channel_type.value}",
        tenant_id=tenant_id,
        sla_id=sla.id if sla else "deleted-sla",
        scope=BindingScope.CHANNEL,
        channel_type=channel_type,
        sla=sla,
    )


def make_conversation(
    conversation_id: str,
    minutes_ago: float,
    channel_type: ChannelType = ChannelType.WHATSAPP,
    location_id: str = "loc-1",
    status: ConversationStatus = ConversationStatus.OPEN,
    tenant_id: str = TENANT,
    **kwargs
) -> ConversationSnapshot:
    created_at = NOW - timedelta(minutes=minutes_ago)
    return ConversationSnapshot(
        id=conversation_id,
        tenant_id=tenant_id,
        status=status,
        created_at=created_at,
        last_message_at=created_at,
        location_id=location_id,
        location_name=kwargs.pop("location_name", location_id.title()),
        channel_type=channel_type,
        **kwargs
    )


# =============================================================================
# In-memory repositories
# =============================================================================

class InMemorySLARepository(ISLARepository):
    def __init__(self):
        self.slas: Dict[str, SLADefinition] = {}
        self.local: Dict[tuple, ScopeBinding] = {}
        self.channel: Dict[tuple, ScopeBinding] = {}
        self.locations: List[Location] = []
        self.calls: List[str] = []

    def add_sla(self, sla: SLADefinition) -> SLADefinition:
        self.slas[sla.id] = sla
        return sla

    def bind_location(self, binding: ScopeBinding) -> None:
        self.local[(binding.tenant_id, binding.location_id)] = binding

    def bind_channel(self, binding: ScopeBinding) -> None:
        self.channel[(binding.tenant_id, binding.channel_type)] = binding

    async def get_local_binding(self, tenant_id, location_id):
        self.calls.append("local")
        return self.local.get((tenant_id, location_id))

    async def get_channel_binding(self, tenant_id, channel_type):
        self.calls.append("channel")
        return self.channel.get((tenant_id, ChannelType(channel_type)))

    async def get_tenant_default(self, tenant_id):
        self.calls.append("tenant")
        owned = [s for s in self.slas.values() if s.tenant_id == tenant_id]
        return min(owned, key=lambda s: s.created_at) if owned else None

    async def get_sla(self, sla_id):
        return self.slas.get(sla_id)

    async def count_definitions(self, tenant_id):
        return sum(1 for s in self.slas.values() if s.tenant_id == tenant_id)

    async def list_local_bindings(self, tenant_id):
        return [b for (t, _), b in self.local.items() if t == tenant_id]

    async def list_channel_bindings(self, tenant_id):
        return [b for (t, _), b in self.channel.items() if t == tenant_id]

    async def list_locations(self, tenant_id):
        return sorted((l for l in self.locations if l.tenant_id == tenant_id), key=lambda l: l.name)


class FailingTierRepository(InMemorySLARepository):
    """Raises on the configured tiers, behaves normally otherwise."""

    def __init__(self, failing: set):
        super().__init__()
        self.failing = failing

    async def get_local_binding(self, tenant_id, location_id):
        if "local" in self.failing:
            raise ConnectionError("local tier unavailable")
        return await super().get_local_binding(tenant_id, location_id)

    async def get_channel_binding(self, tenant_id, channel_type):
        if "channel" in self.failing:
            raise ConnectionError("channel tier unavailable")
        return await super().get_channel_binding(tenant_id, channel_type)

    async def get_tenant_default(self, tenant_id):
        if "tenant" in self.failing:
            raise ConnectionError("tenant tier unavailable")
        return await super().get_tenant_default(tenant_id)


class InMemoryConversationRepository(IConversationRepository):
    def __init__(self, conversations: Optional[List[ConversationSnapshot]] = None):
        self.conversations = list(conversations or [])

    async def list_active(self, tenant_id):
        return [c for c in self.conversations if c.tenant_id == tenant_id and c.is_active]

    async def get_active(self, tenant_id, conversation_id):
        for c in await self.list_active(tenant_id):
            if c.id == conversation_id:
                return c
        return None


class BrokenConversationRepository(IConversationRepository):
    async def list_active(self, tenant_id):
        raise ConnectionError("database is down")

    async def get_active(self, tenant_id, conversation_id):
        raise ConnectionError("database is down")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sla_repo() -> InMemorySLARepository:
    return InMemorySLARepository()


@pytest.fixture
def conversation_repo() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()


@pytest.fixture
def resolver(sla_repo) -> SLAHierarchyResolver:
    return SLAHierarchyResolver(sla_repo)


@pytest.fixture
def detection(conversation_repo, resolver) -> BreachDetectionService:
    return BreachDetectionService(conversation_repo, resolver, clock=lambda: NOW)
