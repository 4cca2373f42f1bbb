"""
Kernel Data Models

SQLAlchemy models for persisted PlanPilot state.
"""

from src.kernel.models.base import Base, TimestampMixin
from src.kernel.models.plan_draft import PlanDraft

__all__ = [
    "Base",
    "TimestampMixin",
    "PlanDraft",
]
