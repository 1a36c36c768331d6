"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for the SLA module.

These are the database representations of SLA definitions, scope bindings
and the read-only inbox snapshot (conversations with their contact,
assignee, channel and location). They belong in the infrastructure layer,
not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inbox_sla.config import ChannelType, ConversationStatus, SLAPriority
from inbox_sla.infrastructure.database import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SLAModel(Base):
    """
    Database model for SLA definitions.

    Maps to the 'slas' table.
    """
    __tablename__ = "slas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Budgets in minutes
    first_response_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    resolution_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Raw calendar JSON, parsed by the domain on use
    business_hours: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    priority: Mapped[SLAPriority] = mapped_column(String(20), nullable=False, default=SLAPriority.MEDIUM)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


class LocationModel(Base):
    """Maps to the 'locations' table."""
    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class LocalSLAConfigModel(Base):
    """
    Location-scoped SLA binding.

    Maps to the 'local_sla_configs' table. The SLA reference is cleared when
    the definition is deleted, leaving a binding that no longer resolves.
    """
    __tablename__ = "local_sla_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "location_id", name="uq_local_sla_tenant_location"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False
    )
    sla_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("slas.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    sla: Mapped[Optional[SLAModel]] = relationship(lazy="raise")
    location: Mapped[LocationModel] = relationship(lazy="raise")


class ChannelSLAConfigModel(Base):
    """
    Channel-type-scoped SLA binding.

    Maps to the 'channel_sla_configs' table.
    """
    __tablename__ = "channel_sla_configs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "channel_type", name="uq_channel_sla_tenant_channel"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    channel_type: Mapped[ChannelType] = mapped_column(String(20), nullable=False)
    sla_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("slas.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    sla: Mapped[Optional[SLAModel]] = relationship(lazy="raise")


class ContactModel(Base):
    """Maps to the 'contacts' table."""
    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    handle: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class AgentModel(Base):
    """Inbox agents conversations get assigned to. Maps to the 'users' table."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class ChannelModel(Base):
    """A connected messaging account. Maps to the 'channels' table."""
    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    type: Mapped[ChannelType] = mapped_column(String(20), nullable=False)
    location_id: Mapped[str] = mapped_column(String(36), ForeignKey("locations.id"), nullable=False)


class ConversationModel(Base):
    """
    Database model for conversations.

    Maps to the 'conversations' table.
    """
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[ConversationStatus] = mapped_column(
        String(20), nullable=False, default=ConversationStatus.OPEN, index=True
    )
    subject: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # References
    location_id: Mapped[str] = mapped_column(String(36), ForeignKey("locations.id"), nullable=False)
    channel_id: Mapped[str] = mapped_column(String(36), ForeignKey("channels.id"), nullable=False)
    contact_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("contacts.id"), nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    location: Mapped[LocationModel] = relationship(lazy="raise")
    channel: Mapped[ChannelModel] = relationship(lazy="raise")
    contact: Mapped[Optional[ContactModel]] = relationship(lazy="raise")
    assignee: Mapped[Optional[AgentModel]] = relationship(lazy="raise")
