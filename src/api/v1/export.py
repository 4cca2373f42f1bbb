"""
Export endpoints - readiness check and PDF/DOCX/JSON download.
"""

from fastapi import APIRouter
from fastapi.responses import Response

from src.api.deps import CurrentSession, DbSession, persist_session
from src.engines.export import ExportController, ExportFormat
from src.schemas.plan import ExportReadinessResponse

router = APIRouter()


@router.get("/plan/export", response_model=ExportReadinessResponse)
async def get_export_readiness(session: CurrentSession):
    decision = ExportController.evaluate(session.plan)
    return ExportReadinessResponse(
        allowed=decision.allowed,
        messages=decision.messages,
        formats=[f.value for f in ExportFormat],
    )


@router.get("/plan/export/{fmt}")
async def export_plan(fmt: ExportFormat, session: CurrentSession, db: DbSession):
    """
    Download the plan.

    Returns 409 with the blocking reasons while the plan is incomplete.
    """
    artifact = ExportController.export(session.plan, fmt)
    session.mark_exported()
    await persist_session(db, session)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )
