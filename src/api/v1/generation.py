"""
Generation endpoints - short version, revision, detail plans and sequence lessons.

AI output is used when the model answers; otherwise the deterministic
fallback is applied and the outcome carries a notice for the teacher.
"""

from fastapi import APIRouter

from src.api.deps import CurrentSession, DbSession, GenerationService, persist_session
from src.schemas.plan import (
    CancelResponse,
    GenerationResponse,
    InstructionRequest,
    RefineRequest,
    SessionStateResponse,
)

router = APIRouter()


@router.post("/plan/generate/short", response_model=GenerationResponse)
async def generate_short_version(session: CurrentSession, service: GenerationService, db: DbSession):
    """Generate the short version (the skeleton in sequence mode)."""
    outcome = await service.generate_short(session)
    return GenerationResponse(outcomes=[outcome], state=await persist_session(db, session))


@router.post("/plan/revise", response_model=GenerationResponse)
async def revise_short_version(
    data: InstructionRequest,
    session: CurrentSession,
    service: GenerationService,
    db: DbSession,
):
    outcome = await service.revise_short(session, data.instruction)
    return GenerationResponse(outcomes=[outcome], state=await persist_session(db, session))


@router.post("/plan/generate/detail", response_model=GenerationResponse)
async def generate_detail_plan(session: CurrentSession, service: GenerationService, db: DbSession):
    outcome = await service.generate_detail(session)
    return GenerationResponse(outcomes=[outcome], state=await persist_session(db, session))


@router.post("/plan/refine", response_model=GenerationResponse)
async def refine_detail_plan(
    data: RefineRequest,
    session: CurrentSession,
    service: GenerationService,
    db: DbSession,
):
    """Adjust the detail plan, e.g. "mehr Gruppenarbeit" or "kürzer"."""
    outcome = await service.refine_detail(session, data.instruction)
    return GenerationResponse(outcomes=[outcome], state=await persist_session(db, session))


@router.post("/plan/generate/lessons", response_model=GenerationResponse)
async def generate_all_lessons(session: CurrentSession, service: GenerationService, db: DbSession):
    """Detail plans for every sequence lesson still missing one."""
    outcomes = await service.generate_all_lessons(session)
    return GenerationResponse(outcomes=outcomes, state=await persist_session(db, session))


@router.post("/plan/generate/lessons/{index}", response_model=GenerationResponse)
async def generate_lesson_detail(
    index: int,
    session: CurrentSession,
    service: GenerationService,
    db: DbSession,
):
    outcome = await service.generate_lesson_detail(session, index)
    return GenerationResponse(outcomes=[outcome], state=await persist_session(db, session))


@router.post("/plan/generate/cancel", response_model=CancelResponse)
async def cancel_generation(session: CurrentSession):
    """Signal the running generation to stop; False when nothing is running."""
    return CancelResponse(cancelled=session.cancel_generation())


@router.post("/plan/sequence/repair", response_model=SessionStateResponse)
async def repair_sequence(session: CurrentSession, service: GenerationService, db: DbSession):
    service.repair_skeleton(session)
    return await persist_session(db, session)
