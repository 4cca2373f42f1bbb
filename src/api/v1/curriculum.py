"""Curriculum endpoints."""

from typing import List, Optional

from fastapi import APIRouter, File, UploadFile, status

from src.api.deps import CurrentSession, DbSession, persist_session
from src.config import get_settings
from src.exceptions import CurriculumUploadError, UnknownCompetencyError
from src.logging_config import get_logger
from src.pedagogy.curriculum_catalog import get_competency, list_areas
from src.pedagogy.curriculum_engine import CurriculumEngine
from src.pedagogy.curriculum_upload import parse_curriculum_file
from src.schemas.plan import (
    CompetencyList,
    MappingCreate,
    SessionStateResponse,
    SuggestionItem,
    UploadResponse,
)

logger = get_logger(__name__)
router = APIRouter()


@router.get("/curriculum/search", response_model=CompetencyList)
async def search_competencies(q: str = "", area: Optional[str] = None, cycle: Optional[str] = None):
    """Search the Lehrplan 21 catalog."""
    items = CurriculumEngine.search(q, area=area, cycle=cycle)
    return CompetencyList(items=items, total=len(items))


@router.get("/curriculum/areas", response_model=List[str])
async def get_areas():
    return list_areas()


@router.get("/plan/curriculum/suggestions", response_model=List[SuggestionItem])
async def suggest_competencies(session: CurrentSession):
    """Competencies matching the plan context, most confident first."""
    return [
        SuggestionItem(competency=s.competency, confidence_score=s.confidence_score)
        for s in CurriculumEngine.auto_suggest(session.plan)
    ]


@router.post("/curriculum/upload", response_model=UploadResponse)
async def upload_curriculum(file: UploadFile = File(...)):
    """
    Parse a CSV or TXT curriculum file.

    Nothing is stored; the parsed competencies can be attached to the plan
    through the mappings endpoint.
    """
    limit = get_settings().upload_max_bytes
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise CurriculumUploadError("Die Datei ist zu gross.", filename=file.filename)

    competencies = parse_curriculum_file(file.filename or "", content)
    return UploadResponse(filename=file.filename or "", competencies=competencies, count=len(competencies))


@router.post(
    "/plan/curriculum/mappings",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_mapping(data: MappingCreate, session: CurrentSession, db: DbSession):
    """Attach a competency; attaching one twice leaves the plan unchanged."""
    competency = data.competency
    if competency is None:
        competency = get_competency(data.competency_id or "")
        if competency is None:
            raise UnknownCompetencyError(data.competency_id or "")

    mapping = CurriculumEngine.create_mapping(competency, data.confidence_score)
    if not session.add_curriculum_mapping(mapping):
        logger.info("Duplicate curriculum mapping ignored", extra={"competency_id": mapping.competency_id})
    return await persist_session(db, session)


@router.delete("/plan/curriculum/mappings/{competency_id}", response_model=SessionStateResponse)
async def remove_mapping(competency_id: str, session: CurrentSession, db: DbSession):
    session.remove_curriculum_mapping(competency_id)
    return await persist_session(db, session)


@router.post("/plan/curriculum/mappings/{competency_id}/confirm", response_model=SessionStateResponse)
async def confirm_mapping(competency_id: str, session: CurrentSession, db: DbSession):
    session.confirm_mapping(competency_id)
    return await persist_session(db, session)
