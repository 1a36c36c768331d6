"""
Core Exceptions
================

Errors raised by the SLA engine. The HTTP layer maps them onto status codes
in ``shared.api.middleware``; everything else propagates as a 500.
"""

from typing import Optional


class ApplicationException(Exception):
    """Root of the engine's errors; ``details`` is extra context for logs."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """A storage backend could not answer a lookup."""


class ResourceNotFoundException(ApplicationException):
    """A tenant-scoped entity (conversation, SLA) does not exist or is not active."""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} '{resource_id}' not found" if resource_id else f"{resource_type} not found"
        super().__init__(message, {"resource_type": resource_type, "resource_id": resource_id})


class ConfigurationException(ApplicationException):
    """The SLA definitions file or settings cannot be loaded."""


class BusinessCalendarException(ConfigurationException):
    """A stored business-hours calendar cannot be parsed or never reaches a deadline."""

    def __init__(self, message: str, calendar: Optional[dict] = None):
        super().__init__(message, {"calendar": calendar} if calendar else None)
