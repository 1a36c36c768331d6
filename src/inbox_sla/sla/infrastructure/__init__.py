"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA resolution:
- Models: SQLAlchemy ORM models
- Repositories: SQLAlchemy and YAML data access
"""

from inbox_sla.sla.infrastructure.models import (
    AgentModel,
    ChannelModel,
    ChannelSLAConfigModel,
    ContactModel,
    ConversationModel,
    LocalSLAConfigModel,
    LocationModel,
    SLAModel,
)
from inbox_sla.sla.infrastructure.repositories import (
    SQLAlchemyConversationRepository,
    SQLAlchemySLARepository,
    YAMLSLARepository,
)

__all__ = [
    "AgentModel",
    "ChannelModel",
    "ChannelSLAConfigModel",
    "ContactModel",
    "ConversationModel",
    "LocalSLAConfigModel",
    "LocationModel",
    "SLAModel",
    "SQLAlchemyConversationRepository",
    "SQLAlchemySLARepository",
    "YAMLSLARepository",
]
