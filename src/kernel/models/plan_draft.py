"""
Persisted planning draft.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin


class PlanDraft(Base, TimestampMixin):
    """
    One saved wizard state per slot key.

    ``plan`` holds the JSON dump of the Plan aggregate; it is validated
    again on load, so a stale or corrupted blob never reaches the session.
    """

    __tablename__ = "plan_drafts"

    slot_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    plan: Mapped[Dict[str, Any]]
    current_step: Mapped[int] = mapped_column(default=1)
    saved_at: Mapped[datetime]

    def __repr__(self) -> str:
        return f"<PlanDraft {self.slot_key} step={self.current_step}>"
