"""
Draft Store - save, load and clear the persisted wizard state.

A draft that no longer validates against the Plan model is logged and
treated as absent; loading never raises for bad data.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.models.plan_draft import PlanDraft
from src.logging_config import get_logger
from src.pedagogy.plan import Plan

logger = get_logger(__name__)


class DraftSnapshot(BaseModel):
    """A restored draft."""

    plan: Plan
    current_step: int
    saved_at: datetime


class DraftStore:
    """
    Service over the ``plan_drafts`` table.

    Usage:
        store = DraftStore(session)
        await store.save("planpilot-draft", session_state.plan, session_state.current_step)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, slot_key: str, plan: Plan, current_step: int) -> PlanDraft:
        """Insert or overwrite the draft for ``slot_key``. Caller commits."""
        now = datetime.now(timezone.utc)
        data = plan.model_dump(mode="json")
        draft = await self.session.get(PlanDraft, slot_key)
        if draft is None:
            draft = PlanDraft(slot_key=slot_key, plan=data, current_step=current_step, saved_at=now)
            self.session.add(draft)
        else:
            draft.plan = data
            draft.current_step = current_step
            draft.saved_at = now
        await self.session.flush()
        return draft

    async def load(self, slot_key: str) -> Optional[DraftSnapshot]:
        try:
            result = await self.session.execute(select(PlanDraft).where(PlanDraft.slot_key == slot_key))
            draft = result.scalar_one_or_none()
            if draft is None:
                return None
            plan = Plan.model_validate(draft.plan)
        except ValueError as exc:
            # covers undecodable JSON and pydantic ValidationError
            logger.warning(
                "Discarding unreadable draft",
                extra={"slot_key": slot_key, "error": str(exc)[:200]},
            )
            return None
        return DraftSnapshot(plan=plan, current_step=draft.current_step, saved_at=draft.saved_at)

    async def clear(self, slot_key: str) -> None:
        await self.session.execute(delete(PlanDraft).where(PlanDraft.slot_key == slot_key))
        await self.session.flush()
