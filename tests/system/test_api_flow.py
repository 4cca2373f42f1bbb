"""
End-to-end API tests for the planning wizard.

The generation client has no API key, so every generation runs through the
deterministic fallback. Each test gets a fresh planning session.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from conftest import TEST_DB_PATH

from src.ai.generation_client import GenerationClient
from src.ai.generation_service import FALLBACK_NOTICES, ContentGenerationService
from src.ai.types import GenerationErrorKind
from src.api.deps import get_db, get_generation_service, get_planning_session
from src.config import Settings
from src.database import build_engine
from src.kernel.drafts import DraftStore
from src.kernel.models import Base
from src.main import app
from src.orchestration.planning_session import PlanningSession

API = "/api/v1"

TEST_ENGINE = build_engine(f"sqlite+aiosqlite:///{TEST_DB_PATH}")
TEST_SESSION_MAKER = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

CONTEXT = {
    "title": "Der Stromkreis",
    "subject": "Physik",
    "topic_description": "Einfache Stromkreise bauen und verstehen",
    "level": "sek1",
    "duration_minutes": 45,
    "learning_goal_type": "knowledge",
    "class_size": 22,
}


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest_asyncio.fixture
async def client():
    """Async client with the test DB, a fresh session and an offline generator."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    planning_session = PlanningSession()
    service = ContentGenerationService(GenerationClient(Settings(openai_api_key="")))

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_planning_session] = lambda: planning_session
    app.dependency_overrides[get_generation_service] = lambda: service
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def _prepare_context(client: AsyncClient) -> None:
    r = await client.patch(f"{API}/plan/context", json=CONTEXT)
    assert r.status_code == 200, r.text
    r = await client.put(f"{API}/plan/goals", json={"goals": ["Die SuS können einen Stromkreis aufbauen."]})
    assert r.status_code == 200, r.text
    r = await client.put(f"{API}/plan/slots", json={"slot1": "aviva", "slot2": "inquiry"})
    assert r.status_code == 200, r.text


async def _prepare_detail(client: AsyncClient) -> dict:
    await _prepare_context(client)
    assert (await client.post(f"{API}/plan/generate/short")).status_code == 200
    assert (await client.post(f"{API}/plan/gates/a")).status_code == 200
    assert (await client.post(f"{API}/plan/gates/b")).status_code == 200
    r = await client.post(f"{API}/plan/generate/detail")
    assert r.status_code == 200, r.text
    return r.json()


# --- Health and catalogs ---


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["ai_configured"] is False
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_options(client: AsyncClient):
    r = await client.get(f"{API}/options")
    assert r.status_code == 200
    data = r.json()
    assert "aviva" in [o["value"] for o in data["structure_models"]]
    assert set(data["steps"]) == {"single", "sequence"}
    assert data["durations"]


# --- Wizard navigation ---


@pytest.mark.asyncio
async def test_incomplete_context_blocks_next_step(client: AsyncClient):
    r = await client.post(f"{API}/plan/steps/next")
    assert r.status_code == 409
    data = r.json()
    assert data["code"] == "step_incomplete"
    assert "Bitte gib ein Fach/Thema ein." in data["errors"]

    state = (await client.get(f"{API}/plan")).json()
    assert state["current_step"] == 1
    assert state["validation_errors"] == data["errors"]


@pytest.mark.asyncio
async def test_navigation_through_context_steps(client: AsyncClient):
    await _prepare_context(client)
    for expected in (2, 3, 4):
        r = await client.post(f"{API}/plan/steps/next")
        assert r.status_code == 200, r.text
        assert r.json()["current_step"] == expected

    r = await client.post(f"{API}/plan/steps/8")
    assert r.status_code == 409
    assert r.json()["code"] == "step_not_accessible"

    r = await client.post(f"{API}/plan/steps/previous")
    assert r.json()["current_step"] == 3

    r = await client.get(f"{API}/plan/steps/9/validation")
    assert r.json() == {"step": 9, "valid": False, "errors": ["Bitte erstelle zuerst eine Detailplanung."]}


@pytest.mark.asyncio
async def test_goal_editing(client: AsyncClient):
    r = await client.post(f"{API}/plan/goals")
    assert r.status_code == 201
    assert r.json()["plan"]["goals"] == ["", ""]

    r = await client.patch(f"{API}/plan/goals/1", json={"text": "Die SuS erklären den Stromfluss."})
    assert r.json()["plan"]["goals"] == ["", "Die SuS erklären den Stromfluss."]

    r = await client.delete(f"{API}/plan/goals/0")
    assert r.json()["plan"]["goals"] == ["Die SuS erklären den Stromfluss."]

    r = await client.patch(f"{API}/plan/goals/5", json={"text": "x"})
    assert r.status_code == 404
    assert r.json()["code"] == "goal_not_found"


@pytest.mark.asyncio
async def test_invalid_context_value_is_rejected(client: AsyncClient):
    r = await client.patch(f"{API}/plan/context", json={"level": "uni"})
    assert r.status_code == 422
    assert r.json()["errors"][0]["field"] == "body.level"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["subject", "mode", "duration_minutes", "class_size", "heterogeneity"])
async def test_null_context_value_is_rejected(client: AsyncClient, field: str):
    r = await client.patch(f"{API}/plan/context", json={field: None})
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["errors"][0]["field"] == f"body.{field}"

    r = await client.get(f"{API}/plan")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_nullable_context_value_can_be_cleared(client: AsyncClient):
    await client.patch(f"{API}/plan/context", json={"level": "sek1"})
    r = await client.patch(f"{API}/plan/context", json={"level": None})
    assert r.status_code == 200
    assert r.json()["plan"]["level"] is None


# --- Generation, gates and detail ---


@pytest.mark.asyncio
async def test_short_version_uses_fallback_without_key(client: AsyncClient):
    await _prepare_context(client)
    r = await client.post(f"{API}/plan/generate/short")
    assert r.status_code == 200, r.text
    data = r.json()

    outcome = data["outcomes"][0]
    assert outcome["source"] == "fallback"
    assert outcome["notice"] == FALLBACK_NOTICES[GenerationErrorKind.GENERIC]
    short = data["state"]["plan"]["short_version"]
    assert sum(p["duration_minutes"] for p in short["phases_summary"]) == 45
    assert data["state"]["plan"]["status"] == "ai_generated"
    assert data["state"]["edited_short_version"] == short


@pytest.mark.asyncio
async def test_detail_requires_gate_b(client: AsyncClient):
    await _prepare_context(client)
    await client.post(f"{API}/plan/generate/short")
    r = await client.post(f"{API}/plan/generate/detail")
    assert r.status_code == 409
    assert r.json()["code"] == "artifact_missing"


@pytest.mark.asyncio
async def test_gate_a_needs_short_version(client: AsyncClient):
    r = await client.post(f"{API}/plan/gates/a")
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_full_single_lesson_flow(client: AsyncClient):
    data = await _prepare_detail(client)
    plan = data["state"]["plan"]
    assert plan["status"] == "detail_ready"
    assert sum(p["duration_minutes"] for p in plan["detail_plan"]["phases"]) == 45
    assert all(p["differentiation"] for p in plan["detail_plan"]["phases"])

    r = await client.post(f"{API}/plan/refine", json={"instruction": "mehr Gruppenarbeit"})
    assert r.status_code == 200
    phases = r.json()["state"]["plan"]["detail_plan"]["phases"]
    assert "Gruppenarbeit" in phases[1]["social_form"]

    r = await client.put(f"{API}/plan/reflection-notes", json={"notes": "Zeit für Experimente knapp."})
    assert r.json()["plan"]["detail_plan"]["reflection_notes"] == "Zeit für Experimente knapp."

    r = await client.get(f"{API}/plan/quality")
    assert r.status_code == 200
    quality = r.json()
    assert quality["compatibility"]["compatible"] is True
    assert isinstance(quality["warnings"], list)

    r = await client.get(f"{API}/plan/export")
    assert r.json()["allowed"] is True


@pytest.mark.asyncio
async def test_revise_and_cancel(client: AsyncClient):
    await _prepare_context(client)
    r = await client.post(f"{API}/plan/revise", json={})
    assert r.status_code == 409

    await client.post(f"{API}/plan/generate/short")
    r = await client.post(f"{API}/plan/revise", json={"instruction": "Einfachere Sprache"})
    assert r.status_code == 200
    assert r.json()["state"]["plan"]["status"] == "revised"

    r = await client.post(f"{API}/plan/generate/cancel")
    assert r.json() == {"cancelled": False}


@pytest.mark.asyncio
async def test_sequence_flow(client: AsyncClient):
    await _prepare_context(client)
    r = await client.patch(f"{API}/plan/context", json={"mode": "sequence", "lesson_count": 3})
    assert r.status_code == 200
    assert [s["id"] for s in r.json()["steps"]]

    r = await client.post(f"{API}/plan/generate/short")
    assert r.json()["outcomes"][0]["kind"] == "sequence"
    assert len(r.json()["state"]["plan"]["sequence_skeleton"]["lessons"]) == 3

    r = await client.get(f"{API}/plan/export")
    assert r.json()["allowed"] is False

    r = await client.post(f"{API}/plan/generate/lessons/1")
    assert r.status_code == 200
    assert r.json()["outcomes"][0]["lesson_index"] == 1

    r = await client.post(f"{API}/plan/generate/lessons/7")
    assert r.status_code == 404

    r = await client.post(f"{API}/plan/generate/lessons")
    assert [o["lesson_index"] for o in r.json()["outcomes"]] == [0, 2]

    r = await client.patch(f"{API}/plan/context", json={"lesson_count": 5})
    r = await client.post(f"{API}/plan/sequence/repair")
    assert len(r.json()["plan"]["sequence_skeleton"]["lessons"]) == 5


# --- Export ---


@pytest.mark.asyncio
async def test_export_blocked_before_detail(client: AsyncClient):
    r = await client.get(f"{API}/plan/export/pdf")
    assert r.status_code == 409
    data = r.json()
    assert data["code"] == "export_not_ready"
    assert data["errors"] == ["Bitte erstelle zuerst eine Detailplanung."]


@pytest.mark.asyncio
@pytest.mark.parametrize("fmt,media_type,magic", [
    ("pdf", "application/pdf", b"%PDF"),
    ("docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", b"PK"),
    ("json", "application/json", b"{"),
])
async def test_export_formats(client: AsyncClient, fmt, media_type, magic):
    await _prepare_detail(client)
    r = await client.get(f"{API}/plan/export/{fmt}")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(media_type)
    disposition = r.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="PlanPilot_Physik_')
    assert disposition.endswith(f'.{fmt}"')
    assert r.content.startswith(magic)

    state = (await client.get(f"{API}/plan")).json()
    assert state["plan"]["status"] == "exported"


@pytest.mark.asyncio
async def test_unknown_export_format(client: AsyncClient):
    r = await client.get(f"{API}/plan/export/odt")
    assert r.status_code == 422


# --- Curriculum ---


@pytest.mark.asyncio
async def test_curriculum_search_and_areas(client: AsyncClient):
    r = await client.get(f"{API}/curriculum/search", params={"q": "Elektrizität"})
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == len(data["items"])
    assert data["items"][0]["code"] == "NT.5.1"

    r = await client.get(f"{API}/curriculum/areas")
    assert "Mathematik" in r.json()


@pytest.mark.asyncio
async def test_curriculum_mappings(client: AsyncClient):
    body = {"competency_id": "lp21-nt.5.1", "confidence_score": 0.8}
    r = await client.post(f"{API}/plan/curriculum/mappings", json=body)
    assert r.status_code == 201
    mappings = r.json()["plan"]["curriculum_mappings"]
    assert [m["competency_code"] for m in mappings] == ["NT.5.1"]

    r = await client.post(f"{API}/plan/curriculum/mappings", json=body)
    assert len(r.json()["plan"]["curriculum_mappings"]) == 1

    r = await client.post(f"{API}/plan/curriculum/mappings/lp21-nt.5.1/confirm")
    assert r.status_code == 200

    r = await client.delete(f"{API}/plan/curriculum/mappings/lp21-nt.5.1")
    assert r.json()["plan"]["curriculum_mappings"] == []

    r = await client.post(f"{API}/plan/curriculum/mappings", json={"competency_id": "lp21-xx.9.9"})
    assert r.status_code == 404
    assert r.json()["code"] == "competency_not_found"


@pytest.mark.asyncio
async def test_curriculum_upload(client: AsyncClient):
    content = "Code;Bereich;Kompetenzbereich;Kompetenz\nPH.1.1;Physik;Elektrizität;Stromkreise bauen\n"
    r = await client.post(
        f"{API}/curriculum/upload",
        files={"file": ("lehrplan.csv", content.encode("utf-8"), "text/csv")},
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["count"] == 1
    assert data["competencies"][0]["code"] == "PH.1.1"

    r = await client.post(
        f"{API}/curriculum/upload",
        files={"file": ("lehrplan.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_upload"


@pytest.mark.asyncio
async def test_differentiation_endpoint(client: AsyncClient):
    r = await client.post(f"{API}/differentiation", json={
        "name": "Erarbeitung",
        "description": "Experiment mit Batterie und Lampe",
        "subject": "Physik",
        "class_profile": {"class_size": 20, "heterogeneity": "high", "language_level": "a2"},
    })
    assert r.status_code == 200
    data = r.json()
    assert data["differentiation"]["niveau_b"].startswith("Standardausführung")
    assert data["differentiation"]["sentence_starters"]


# --- History and drafts ---


@pytest.mark.asyncio
async def test_undo_redo_and_reset(client: AsyncClient):
    await client.patch(f"{API}/plan/context", json={"subject": "Physik"})
    await client.patch(f"{API}/plan/context", json={"subject": "Chemie"})

    r = await client.post(f"{API}/plan/undo")
    assert r.json()["plan"]["subject"] == "Physik"
    assert r.json()["can_redo"] is True

    r = await client.post(f"{API}/plan/redo")
    assert r.json()["plan"]["subject"] == "Chemie"

    r = await client.post(f"{API}/plan/reset")
    state = r.json()
    assert state["plan"]["subject"] == ""
    assert state["current_step"] == 1
    assert state["can_undo"] is False


@pytest.mark.asyncio
async def test_mutations_save_the_draft(client: AsyncClient):
    await client.patch(f"{API}/plan/context", json={"subject": "Geografie", "class_size": 18})

    async with TEST_SESSION_MAKER() as db:
        snapshot = await DraftStore(db).load(Settings().draft_slot_key)
    assert snapshot is not None
    assert snapshot.plan.subject == "Geografie"
    assert snapshot.plan.class_profile.class_size == 18
