"""
Plan endpoints - wizard state, context, goals, slots, navigation and gates.

Every mutating endpoint saves the draft and returns the full session state.
"""

from fastapi import APIRouter, status

from src.api.deps import CurrentSession, DbSession, persist_session, session_state
from src.exceptions import StepNotAccessibleError, StepValidationError
from src.logging_config import get_logger
from src.orchestration.state_machine import validate_step
from src.pedagogy.plan import DidacticSlots, ShortVersion
from src.schemas.plan import (
    ContextUpdate,
    GoalsReplace,
    GoalUpdate,
    ReflectionNotesUpdate,
    SessionStateResponse,
    StepValidationResponse,
)

logger = get_logger(__name__)
router = APIRouter()


@router.get("/plan", response_model=SessionStateResponse)
async def get_plan(session: CurrentSession):
    """Current wizard state."""
    return session_state(session)


@router.patch("/plan/context", response_model=SessionStateResponse)
async def update_context(data: ContextUpdate, session: CurrentSession, db: DbSession):
    fields = data.model_dump(exclude_unset=True)
    if fields:
        session.update_context(**fields)
    return await persist_session(db, session)


# ── goals ────────────────────────────────────────────────────────────────

@router.put("/plan/goals", response_model=SessionStateResponse)
async def replace_goals(data: GoalsReplace, session: CurrentSession, db: DbSession):
    session.set_goals(data.goals)
    return await persist_session(db, session)


@router.post("/plan/goals", response_model=SessionStateResponse, status_code=status.HTTP_201_CREATED)
async def add_goal(session: CurrentSession, db: DbSession):
    """Append an empty goal."""
    session.add_goal()
    return await persist_session(db, session)


@router.patch("/plan/goals/{index}", response_model=SessionStateResponse)
async def update_goal(index: int, data: GoalUpdate, session: CurrentSession, db: DbSession):
    session.update_goal(index, data.text)
    return await persist_session(db, session)


@router.delete("/plan/goals/{index}", response_model=SessionStateResponse)
async def remove_goal(index: int, session: CurrentSession, db: DbSession):
    """Remove a goal; the last one is kept."""
    session.remove_goal(index)
    return await persist_session(db, session)


# ── didactics and edits ─────────────────────────────────────────────────

@router.put("/plan/slots", response_model=SessionStateResponse)
async def set_slots(data: DidacticSlots, session: CurrentSession, db: DbSession):
    session.set_slots(data)
    return await persist_session(db, session)


@router.put("/plan/short-version/edited", response_model=SessionStateResponse)
async def save_edited_short_version(data: ShortVersion, session: CurrentSession, db: DbSession):
    """Store the teacher's edits of the short version (step 6)."""
    session.set_edited_short_version(data)
    return await persist_session(db, session)


@router.put("/plan/reflection-notes", response_model=SessionStateResponse)
async def set_reflection_notes(data: ReflectionNotesUpdate, session: CurrentSession, db: DbSession):
    session.set_reflection_notes(data.notes)
    return await persist_session(db, session)


# ── history ──────────────────────────────────────────────────────────────

@router.post("/plan/reset", response_model=SessionStateResponse)
async def reset_plan(session: CurrentSession, db: DbSession):
    """Start over with a fresh plan; history is cleared."""
    session.reset()
    logger.info("Plan reset")
    return await persist_session(db, session)


@router.post("/plan/undo", response_model=SessionStateResponse)
async def undo(session: CurrentSession, db: DbSession):
    session.undo()
    return await persist_session(db, session)


@router.post("/plan/redo", response_model=SessionStateResponse)
async def redo(session: CurrentSession, db: DbSession):
    session.redo()
    return await persist_session(db, session)


# ── navigation ───────────────────────────────────────────────────────────

@router.post("/plan/steps/next", response_model=SessionStateResponse)
async def next_step(session: CurrentSession, db: DbSession):
    """
    Advance one step.

    A step that does not validate answers 409 with the reasons in ``errors``.
    """
    step = session.current_step
    result = session.next_step()
    if not result.valid:
        raise StepValidationError(step, result.errors)
    return await persist_session(db, session)


@router.post("/plan/steps/previous", response_model=SessionStateResponse)
async def previous_step(session: CurrentSession, db: DbSession):
    session.prev_step()
    return await persist_session(db, session)


@router.post("/plan/steps/{step}", response_model=SessionStateResponse)
async def go_to_step(step: int, session: CurrentSession, db: DbSession):
    if not session.set_step(step):
        raise StepNotAccessibleError(step)
    return await persist_session(db, session)


@router.get("/plan/steps/{step}/validation", response_model=StepValidationResponse)
async def get_step_validation(step: int, session: CurrentSession):
    result = validate_step(step, session.plan)
    return StepValidationResponse(step=step, valid=result.valid, errors=result.errors)


# ── gates ────────────────────────────────────────────────────────────────

@router.post("/plan/gates/a", response_model=SessionStateResponse)
async def approve_gate_a(session: CurrentSession, db: DbSession):
    session.approve_gate_a()
    return await persist_session(db, session)


@router.post("/plan/gates/b", response_model=SessionStateResponse)
async def approve_gate_b(session: CurrentSession, db: DbSession):
    session.approve_gate_b()
    return await persist_session(db, session)


@router.post("/plan/gates/reset", response_model=SessionStateResponse)
async def reset_gates(session: CurrentSession, db: DbSession):
    session.reset_gates()
    return await persist_session(db, session)
