"""
Request and response schemas for the planning API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.ai.generation_service import GenerationOutcome
from src.pedagogy.constants import StepConfig
from src.pedagogy.plan import (
    ClassProfile,
    CompatibilityResult,
    CurriculumCompetency,
    Differentiation,
    Plan,
    QualityWarning,
    ShortVersion,
)
from src.pedagogy.types import (
    Heterogeneity,
    LanguageLevel,
    LearningGoalType,
    Level,
    PlanMode,
)


# ── requests ─────────────────────────────────────────────────────────────

class ContextUpdate(BaseModel):
    """Partial update of the step-1 context; only sent fields change."""

    mode: Optional[PlanMode] = None
    title: Optional[str] = None
    subject: Optional[str] = None
    topic_description: Optional[str] = None
    level: Optional[Level] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    lesson_count: Optional[int] = Field(None, ge=0)
    special_needs: Optional[str] = None
    learning_goal_type: Optional[LearningGoalType] = None
    class_size: Optional[int] = Field(None, ge=0)
    heterogeneity: Optional[Heterogeneity] = None
    language_level: Optional[LanguageLevel] = None
    notes: Optional[str] = None

    @field_validator(
        "mode",
        "title",
        "subject",
        "topic_description",
        "duration_minutes",
        "lesson_count",
        "special_needs",
        "class_size",
        "heterogeneity",
        "language_level",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Feld darf nicht leer sein")
        return v


class GoalsReplace(BaseModel):
    goals: List[str]


class GoalUpdate(BaseModel):
    text: str


class ReflectionNotesUpdate(BaseModel):
    notes: str


class InstructionRequest(BaseModel):
    instruction: Optional[str] = Field(None, max_length=2000)


class RefineRequest(BaseModel):
    instruction: str = Field(..., min_length=1, max_length=2000)


class MappingCreate(BaseModel):
    """Attach a catalog competency by id, or an uploaded one in full."""

    competency_id: Optional[str] = None
    competency: Optional[CurriculumCompetency] = None
    confidence_score: float = Field(0.5, ge=0.0, le=1.0)


class DifferentiationRequest(BaseModel):
    name: str
    description: str = ""
    social_form: Optional[str] = None
    subject: str = ""
    level: Optional[Level] = None
    class_profile: ClassProfile = Field(default_factory=ClassProfile)


# ── responses ────────────────────────────────────────────────────────────

class SessionStateResponse(BaseModel):
    """Full wizard state returned by every mutating call."""

    plan: Plan
    current_step: int
    validation_errors: List[str] = []
    edited_short_version: Optional[ShortVersion] = None
    can_undo: bool
    can_redo: bool
    generating: bool = False
    accessible_steps: List[int]
    steps: List[StepConfig]
    updated_at: datetime


class StepValidationResponse(BaseModel):
    step: int
    valid: bool
    errors: List[str] = []


class GenerationResponse(BaseModel):
    outcomes: List[GenerationOutcome]
    state: SessionStateResponse


class QualityResponse(BaseModel):
    warnings: List[QualityWarning]
    compatibility: CompatibilityResult


class CompetencyList(BaseModel):
    items: List[CurriculumCompetency]
    total: int


class SuggestionItem(BaseModel):
    competency: CurriculumCompetency
    confidence_score: float


class UploadResponse(BaseModel):
    filename: str
    competencies: List[CurriculumCompetency]
    count: int


class DifferentiationResponse(BaseModel):
    phase_type: str
    differentiation: Differentiation


class ExportReadinessResponse(BaseModel):
    allowed: bool
    messages: List[str] = []
    formats: List[str]


class CancelResponse(BaseModel):
    cancelled: bool
