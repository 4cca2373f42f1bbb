"""
Pytest fixtures for PlanPilot tests.
"""

import os
import tempfile

# File-based SQLite so every connection sees the same database; no real model calls.
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""

from src.config import get_settings
get_settings.cache_clear()

import pytest

from src.ai.fallback_generator import FallbackGenerator
from src.orchestration.planning_session import PlanningSession
from src.pedagogy.plan import ClassProfile, DidacticSlots, Plan
from src.pedagogy.types import (
    Heterogeneity,
    LanguageLevel,
    LearningGoalType,
    Level,
    PlanMode,
    StructureModel,
)


def make_plan(**overrides) -> Plan:
    """A single-lesson plan that passes steps 1-3."""
    data = dict(
        title="Der Stromkreis",
        subject="Physik",
        topic_description="Einfache Stromkreise bauen und verstehen",
        level=Level.SEK1,
        duration_minutes=45,
        learning_goal_type=LearningGoalType.KNOWLEDGE,
        goals=["Die SuS können einen geschlossenen Stromkreis aufbauen."],
        didactic_slots=DidacticSlots(slot1=StructureModel.AVIVA),
        class_profile=ClassProfile(
            class_size=22,
            heterogeneity=Heterogeneity.MEDIUM,
            language_level=LanguageLevel.B2,
        ),
    )
    data.update(overrides)
    return Plan(**data)


def make_sequence_plan(**overrides) -> Plan:
    data = dict(
        mode=PlanMode.SEQUENCE,
        title="Energie im Alltag",
        subject="Natur und Technik",
        topic_description="Energieformen und Energieumwandlung",
        lesson_count=4,
    )
    data.update(overrides)
    return make_plan(**data)


def with_detail(plan: Plan) -> Plan:
    """``plan`` with fallback short version, both gates and a detail plan."""
    return plan.model_copy(
        update={
            "short_version": FallbackGenerator.short_version(plan),
            "detail_plan": FallbackGenerator.detail_plan(plan),
            "gate_a_approved": True,
            "gate_b_approved": True,
        }
    )


@pytest.fixture
def plan() -> Plan:
    return make_plan()


@pytest.fixture
def sequence_plan() -> Plan:
    return make_sequence_plan()


@pytest.fixture
def detailed_plan() -> Plan:
    return with_detail(make_plan())


@pytest.fixture
def session(plan: Plan) -> PlanningSession:
    """Planning session at step 1 holding a complete context."""
    return PlanningSession(plan=plan, history_limit=10)


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    try:
        if os.path.exists(TEST_DB_PATH):
            os.unlink(TEST_DB_PATH)
    except OSError:
        pass
