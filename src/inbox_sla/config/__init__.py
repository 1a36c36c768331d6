"""
Configuration Module
====================

Application settings and domain constants using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="inbox-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/inbox",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Engine ==========
    sla_definitions_path: Optional[Path] = Field(
        default=None,
        description="Optional YAML file with SLA definitions and scope bindings"
    )
    sla_evaluation_concurrency: int = Field(
        default=10,
        description="Max conversations evaluated concurrently per batch",
        ge=1,
        le=500
    )
    sla_evaluation_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Abort a detection batch after this many seconds (None disables)",
        gt=0
    )
    business_calendar_max_days: int = Field(
        default=3660,
        description="Max day steps a business-hours deadline walk may take",
        ge=1
    )
    default_business_timezone: str = Field(
        default="America/Argentina/Cordoba",
        description="Timezone used by calendars that do not declare one"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ConversationStatus(str, Enum):
    """Conversation lifecycle statuses."""
    OPEN = "OPEN"
    PENDING = "PENDING"
    CLOSED = "CLOSED"


class ChannelType(str, Enum):
    """Messaging channels a conversation can arrive through."""
    WHATSAPP = "WHATSAPP"
    INSTAGRAM = "INSTAGRAM"
    TIKTOK = "TIKTOK"
    FACEBOOK = "FACEBOOK"
    TWITTER = "TWITTER"
    TELEGRAM = "TELEGRAM"


class SLAPriority(str, Enum):
    """Priority tag carried by an SLA definition."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class SLASource(str, Enum):
    """Scope tier that supplied a resolved SLA."""
    LOCAL = "local"
    CHANNEL = "channel"
    TENANT = "tenant"
    NONE = "none"


class BindingScope(str, Enum):
    """Scope a stored binding attaches an SLA to."""
    LOCAL = "local"
    CHANNEL = "channel"


class WarningLevel(str, Enum):
    """Severity of a conversation approaching its first-response deadline."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ExpiredSeverity(str, Enum):
    """Severity of a conversation past its first-response deadline."""
    OVERDUE = "overdue"
    CRITICAL = "critical"
    URGENT = "urgent"


# ========== Lists for validation ==========

ACTIVE_STATUSES = [ConversationStatus.OPEN, ConversationStatus.PENDING]
VALID_CHANNEL_TYPES = [
    ChannelType.WHATSAPP, ChannelType.INSTAGRAM, ChannelType.TIKTOK,
    ChannelType.FACEBOOK, ChannelType.TWITTER, ChannelType.TELEGRAM
]
PRIORITY_RANK = {
    SLAPriority.LOW: 1,
    SLAPriority.MEDIUM: 2,
    SLAPriority.HIGH: 3,
    SLAPriority.URGENT: 4,
}
WARNING_LEVEL_RANK = {
    WarningLevel.LOW: 1,
    WarningLevel.MEDIUM: 2,
    WarningLevel.HIGH: 3,
    WarningLevel.CRITICAL: 4,
}
EXPIRED_SEVERITY_RANK = {
    ExpiredSeverity.OVERDUE: 1,
    ExpiredSeverity.CRITICAL: 2,
    ExpiredSeverity.URGENT: 3,
}
