"""
Inbox SLA
=========

SLA resolution and breach detection for a multi-tenant messaging inbox.
"""

__version__ = "1.0.0"
