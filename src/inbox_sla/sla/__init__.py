"""
SLA Module
==========

Bounded Context for conversation Service Level Agreements.

Responsibilities:
- Resolve the SLA that applies to a conversation (location > channel > tenant)
- Compute first-response deadlines in business hours
- Flag active conversations that are close to or past their deadline
- Aggregate the flagged conversations for dashboards
- Report hierarchy coverage, recommendations and resolution simulations
"""

__version__ = "1.0.0"
