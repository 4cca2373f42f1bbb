"""
FastAPI dependencies for database sessions, the planning session and generation.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ai.generation_service import ContentGenerationService
from src.config import get_settings
from src.database import async_session_maker
from src.engines.quality import QualityChecker, QualityThresholds
from src.kernel.drafts import DraftStore
from src.orchestration.planning_session import PlanningSession
from src.pedagogy.constants import get_steps
from src.schemas.plan import SessionStateResponse


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_planning_session(request: Request) -> PlanningSession:
    """The process-wide planning session (restored from the draft at startup)."""
    state = request.app.state
    if getattr(state, "planning_session", None) is None:
        state.planning_session = PlanningSession(history_limit=get_settings().history_limit)
    return state.planning_session


def get_generation_service(request: Request) -> ContentGenerationService:
    state = request.app.state
    if getattr(state, "generation_service", None) is None:
        state.generation_service = ContentGenerationService()
    return state.generation_service


def get_quality_checker() -> QualityChecker:
    return QualityChecker(QualityThresholds.from_settings(get_settings()))


CurrentSession = Annotated[PlanningSession, Depends(get_planning_session)]
GenerationService = Annotated[ContentGenerationService, Depends(get_generation_service)]
Checker = Annotated[QualityChecker, Depends(get_quality_checker)]


def session_state(session: PlanningSession) -> SessionStateResponse:
    return SessionStateResponse(
        plan=session.plan,
        current_step=session.current_step,
        validation_errors=session.validation_errors,
        edited_short_version=session.edited_short_version,
        can_undo=session.can_undo,
        can_redo=session.can_redo,
        generating=session.generating,
        accessible_steps=session.accessible_steps(),
        steps=get_steps(session.plan.mode),
        updated_at=session.updated_at,
    )


async def persist_session(db: AsyncSession, session: PlanningSession) -> SessionStateResponse:
    """Save the draft and return the state to send back. Commit happens in get_db."""
    await DraftStore(db).save(get_settings().draft_slot_key, session.plan, session.current_step)
    return session_state(session)
