"""
Core Module
============

Framework-agnostic building blocks shared by every layer: the error types.
"""

from inbox_sla.core.exceptions import (
    ApplicationException,
    RepositoryException,
    ResourceNotFoundException,
    ConfigurationException,
    BusinessCalendarException,
)

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "BusinessCalendarException",
]
