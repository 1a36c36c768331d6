"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces.

- SQLAlchemy repositories read SLA definitions, bindings and the inbox
  snapshot from the relational store.
- YAMLSLARepository serves definitions and bindings from a YAML file, for
  deployments that keep SLA configuration next to the code.

SQLAlchemy repositories receive a session factory rather than a session: the
detection engine resolves SLAs concurrently and an AsyncSession must not be
shared between concurrent tasks.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from inbox_sla.config import (
    ACTIVE_STATUSES,
    BindingScope,
    ChannelType,
    ConversationStatus,
    SLAPriority,
)
from inbox_sla.core import ConfigurationException, RepositoryException
from inbox_sla.shared.infrastructure.logging import get_logger
from inbox_sla.sla.application.services import IConversationRepository, ISLARepository
from inbox_sla.sla.domain import ConversationSnapshot, Location, ScopeBinding, SLADefinition
from inbox_sla.sla.infrastructure.models import (
    ChannelModel,
    ChannelSLAConfigModel,
    ConversationModel,
    LocalSLAConfigModel,
    LocationModel,
    SLAModel,
)

logger = get_logger(__name__)

_ACTIVE_STATUS_VALUES = [s.value for s in ACTIVE_STATUSES]


def _utc(value: datetime) -> datetime:
    # SQLite drops the offset of timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_sla(model: Optional[SLAModel]) -> Optional[SLADefinition]:
    if model is None:
        return None
    return SLADefinition(
        id=model.id,
        tenant_id=model.tenant_id,
        name=model.name,
        first_response_minutes=model.first_response_minutes,
        resolution_minutes=model.resolution_minutes,
        business_hours=model.business_hours,
        priority=SLAPriority(model.priority),
        is_active=model.is_active,
        created_at=_utc(model.created_at),
    )


class SQLAlchemySLARepository(ISLARepository):
    """
    SQLAlchemy implementation of the SLA repository.

    Every lookup opens its own short-lived session.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_local_binding(self, tenant_id: str, location_id: str) -> Optional[ScopeBinding]:
        """Get the location binding with its SLA and location name."""
        stmt = (
            select(LocalSLAConfigModel)
            .options(joinedload(LocalSLAConfigModel.sla), joinedload(LocalSLAConfigModel.location))
            .where(
                LocalSLAConfigModel.tenant_id == tenant_id,
                LocalSLAConfigModel.location_id == location_id
            )
        )
        model = await self._scalar(stmt, "local binding")
        return self._local_binding(model) if model else None

    async def get_channel_binding(
        self,
        tenant_id: str,
        channel_type: ChannelType
    ) -> Optional[ScopeBinding]:
        """Get the channel-type binding with its SLA."""
        stmt = (
            select(ChannelSLAConfigModel)
            .options(joinedload(ChannelSLAConfigModel.sla))
            .where(
                ChannelSLAConfigModel.tenant_id == tenant_id,
                ChannelSLAConfigModel.channel_type == ChannelType(channel_type).value
            )
        )
        model = await self._scalar(stmt, "channel binding")
        return self._channel_binding(model) if model else None

    async def get_tenant_default(self, tenant_id: str) -> Optional[SLADefinition]:
        """Earliest-created SLA definition of the tenant."""
        stmt = (
            select(SLAModel)
            .where(SLAModel.tenant_id == tenant_id)
            .order_by(SLAModel.created_at.asc(), SLAModel.id.asc())
            .limit(1)
        )
        return _to_sla(await self._scalar(stmt, "tenant default SLA"))

    async def get_sla(self, sla_id: str) -> Optional[SLADefinition]:
        stmt = select(SLAModel).where(SLAModel.id == sla_id)
        return _to_sla(await self._scalar(stmt, "SLA"))

    async def count_definitions(self, tenant_id: str) -> int:
        stmt = select(func.count(SLAModel.id)).where(SLAModel.tenant_id == tenant_id)
        return await self._scalar(stmt, "SLA count") or 0

    async def list_local_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        stmt = (
            select(LocalSLAConfigModel)
            .options(joinedload(LocalSLAConfigModel.sla), joinedload(LocalSLAConfigModel.location))
            .where(LocalSLAConfigModel.tenant_id == tenant_id)
        )
        return [self._local_binding(m) for m in await self._scalars(stmt, "local bindings")]

    async def list_channel_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        stmt = (
            select(ChannelSLAConfigModel)
            .options(joinedload(ChannelSLAConfigModel.sla))
            .where(ChannelSLAConfigModel.tenant_id == tenant_id)
        )
        return [self._channel_binding(m) for m in await self._scalars(stmt, "channel bindings")]

    async def list_locations(self, tenant_id: str) -> List[Location]:
        stmt = (
            select(LocationModel)
            .where(LocationModel.tenant_id == tenant_id)
            .order_by(LocationModel.name.asc())
        )
        return [
            Location(id=m.id, tenant_id=m.tenant_id, name=m.name, timezone=m.timezone)
            for m in await self._scalars(stmt, "locations")
        ]

    @staticmethod
    def _local_binding(model: LocalSLAConfigModel) -> ScopeBinding:
        return ScopeBinding(
            id=model.id,
            tenant_id=model.tenant_id,
            sla_id=model.sla_id,
            scope=BindingScope.LOCAL,
            location_id=model.location_id,
            location_name=model.location.name if model.location else None,
            sla=_to_sla(model.sla),
        )

    @staticmethod
    def _channel_binding(model: ChannelSLAConfigModel) -> ScopeBinding:
        return ScopeBinding(
            id=model.id,
            tenant_id=model.tenant_id,
            sla_id=model.sla_id,
            scope=BindingScope.CHANNEL,
            channel_type=ChannelType(model.channel_type),
            sla=_to_sla(model.sla),
        )

    async def _scalar(self, stmt, what: str):
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to load {what}", {"error": str(e)}) from e

    async def _scalars(self, stmt, what: str) -> list:
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to load {what}", {"error": str(e)}) from e


class SQLAlchemyConversationRepository(IConversationRepository):
    """
    SQLAlchemy implementation of the conversation snapshot.

    Loads conversations joined with their location, channel, contact and
    assignee in a single query.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    def _base_query(self, tenant_id: str):
        return (
            select(ConversationModel)
            .options(
                joinedload(ConversationModel.location),
                joinedload(ConversationModel.channel),
                joinedload(ConversationModel.contact),
                joinedload(ConversationModel.assignee),
            )
            .where(
                ConversationModel.tenant_id == tenant_id,
                ConversationModel.status.in_(_ACTIVE_STATUS_VALUES)
            )
        )

    async def list_active(self, tenant_id: str) -> List[ConversationSnapshot]:
        """List OPEN/PENDING conversations, oldest first."""
        stmt = self._base_query(tenant_id).order_by(ConversationModel.created_at.asc())
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                models = result.scalars().unique().all()
        except SQLAlchemyError as e:
            raise RepositoryException(
                "Failed to load active conversations",
                {"tenant_id": tenant_id, "error": str(e)}
            ) from e

        return [self._to_snapshot(m) for m in models]

    async def get_active(
        self,
        tenant_id: str,
        conversation_id: str
    ) -> Optional[ConversationSnapshot]:
        stmt = self._base_query(tenant_id).where(ConversationModel.id == conversation_id)
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                model = result.scalars().unique().one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to load conversation {conversation_id}",
                {"tenant_id": tenant_id, "error": str(e)}
            ) from e

        return self._to_snapshot(model) if model else None

    @staticmethod
    def _to_snapshot(model: ConversationModel) -> ConversationSnapshot:
        contact = model.contact
        assignee = model.assignee
        return ConversationSnapshot(
            id=model.id,
            tenant_id=model.tenant_id,
            status=ConversationStatus(model.status),
            created_at=_utc(model.created_at),
            last_message_at=_utc(model.last_message_at),
            location_id=model.location_id,
            location_name=model.location.name,
            channel_type=ChannelType(model.channel.type),
            contact_id=model.contact_id,
            contact_name=contact.name if contact else None,
            contact_handle=contact.handle if contact else None,
            subject=model.subject,
            assignee_id=model.assigned_to,
            assignee_name=assignee.name if assignee else None,
        )


# ========== YAML-backed SLA store ==========

class _SLAEntry(BaseModel):
    id: str
    name: str
    first_response_minutes: int = Field(..., gt=0)
    resolution_minutes: Optional[int] = Field(None, gt=0)
    business_hours: Optional[dict] = None
    priority: SLAPriority = SLAPriority.MEDIUM
    is_active: bool = True
    created_at: datetime


class _LocationEntry(BaseModel):
    id: str
    name: str
    timezone: Optional[str] = None


class _LocalBindingEntry(BaseModel):
    location_id: str
    sla_id: Optional[str] = None


class _ChannelBindingEntry(BaseModel):
    channel_type: ChannelType
    sla_id: Optional[str] = None


class _TenantEntry(BaseModel):
    locations: List[_LocationEntry] = Field(default_factory=list)
    slas: List[_SLAEntry] = Field(default_factory=list)
    local_bindings: List[_LocalBindingEntry] = Field(default_factory=list)
    channel_bindings: List[_ChannelBindingEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_scopes(self) -> "_TenantEntry":
        location_ids = [b.location_id for b in self.local_bindings]
        if len(location_ids) != len(set(location_ids)):
            raise ValueError("a location can only be bound to one SLA")
        channel_types = [b.channel_type for b in self.channel_bindings]
        if len(channel_types) != len(set(channel_types)):
            raise ValueError("a channel type can only be bound to one SLA")
        return self


class _SLAFile(BaseModel):
    tenants: Dict[str, _TenantEntry] = Field(default_factory=dict)


class YAMLSLARepository(ISLARepository):
    """
    SLA repository that loads definitions and bindings from YAML.

    File layout::

        tenants:
          <tenant_id>:
            locations: [{id, name, timezone}]
            slas: [{id, name, first_response_minutes, resolution_minutes,
                    business_hours, priority, created_at}]
            local_bindings: [{location_id, sla_id}]
            channel_bindings: [{channel_type, sla_id}]

    Bindings whose ``sla_id`` is unknown are kept and resolve to no SLA.
    Call ``reload()`` to pick up file changes.
    """

    def __init__(self, config_path: Union[str, Path]):
        self._config_path = Path(config_path)
        self._slas: Dict[str, SLADefinition] = {}
        self._tenants: Dict[str, _TenantEntry] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load definitions from the YAML file."""
        if not self._config_path.exists():
            raise ConfigurationException(
                f"SLA definitions file not found: {self._config_path}",
                {"path": str(self._config_path)}
            )

        try:
            with open(self._config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            parsed = _SLAFile.model_validate(data)
        except (yaml.YAMLError, ValidationError) as e:
            raise ConfigurationException(
                f"Invalid SLA definitions file: {self._config_path}",
                {"error": str(e)}
            ) from e

        slas = {}
        for tenant_id, tenant in parsed.tenants.items():
            for entry in tenant.slas:
                fields = entry.model_dump()
                fields["created_at"] = _utc(fields["created_at"])
                slas[entry.id] = SLADefinition(tenant_id=tenant_id, **fields)

        self._slas = slas
        self._tenants = parsed.tenants

        logger.info(
            "SLA definitions loaded",
            extra={"path": str(self._config_path), "tenants": len(self._tenants), "slas": len(self._slas)}
        )

    def reload(self) -> None:
        """Reload definitions from file."""
        self._load_config()

    def _tenant(self, tenant_id: str) -> _TenantEntry:
        return self._tenants.get(tenant_id) or _TenantEntry()

    def _location_name(self, tenant_id: str, location_id: str) -> Optional[str]:
        return next((l.name for l in self._tenant(tenant_id).locations if l.id == location_id), None)

    def _local(self, tenant_id: str, entry: _LocalBindingEntry) -> ScopeBinding:
        return ScopeBinding(
            id=f"{tenant_id}:local:{entry.location_id}",
            tenant_id=tenant_id,
            sla_id=entry.sla_id,
            scope=BindingScope.LOCAL,
            location_id=entry.location_id,
            location_name=self._location_name(tenant_id, entry.location_id),
            sla=self._slas.get(entry.sla_id) if entry.sla_id else None,
        )

    def _channel(self, tenant_id: str, entry: _ChannelBindingEntry) -> ScopeBinding:
        return ScopeBinding(
            id=f"{tenant_id}:channel:{entry.channel_type.value}",
            tenant_id=tenant_id,
            sla_id=entry.sla_id,
            scope=BindingScope.CHANNEL,
            channel_type=entry.channel_type,
            sla=self._slas.get(entry.sla_id) if entry.sla_id else None,
        )

    async def get_local_binding(self, tenant_id: str, location_id: str) -> Optional[ScopeBinding]:
        for entry in self._tenant(tenant_id).local_bindings:
            if entry.location_id == location_id:
                return self._local(tenant_id, entry)
        return None

    async def get_channel_binding(
        self,
        tenant_id: str,
        channel_type: ChannelType
    ) -> Optional[ScopeBinding]:
        for entry in self._tenant(tenant_id).channel_bindings:
            if entry.channel_type == ChannelType(channel_type):
                return self._channel(tenant_id, entry)
        return None

    async def get_tenant_default(self, tenant_id: str) -> Optional[SLADefinition]:
        definitions = [s for s in self._slas.values() if s.tenant_id == tenant_id]
        if not definitions:
            return None
        return min(definitions, key=lambda s: (s.created_at, s.id))

    async def get_sla(self, sla_id: str) -> Optional[SLADefinition]:
        return self._slas.get(sla_id)

    async def count_definitions(self, tenant_id: str) -> int:
        return sum(1 for s in self._slas.values() if s.tenant_id == tenant_id)

    async def list_local_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        return [self._local(tenant_id, e) for e in self._tenant(tenant_id).local_bindings]

    async def list_channel_bindings(self, tenant_id: str) -> List[ScopeBinding]:
        return [self._channel(tenant_id, e) for e in self._tenant(tenant_id).channel_bindings]

    async def list_locations(self, tenant_id: str) -> List[Location]:
        return [
            Location(id=l.id, tenant_id=tenant_id, name=l.name, timezone=l.timezone)
            for l in sorted(self._tenant(tenant_id).locations, key=lambda l: l.name)
        ]
