"""
Plan aggregate - the canonical record of one lesson or lesson sequence.

Pure data. Behaviour lives in the engines and in PlanningSession.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from src.pedagogy.types import (
    AccessMode,
    CompetencySource,
    Heterogeneity,
    LanguageLevel,
    LearningGoalType,
    LearningMode,
    Level,
    PlanMode,
    PlanStatus,
    QualityLayer,
    Severity,
    StructureModel,
    WarningType,
)


DEFAULT_DURATION_MINUTES = 45
DEFAULT_LESSON_COUNT = 6
DEFAULT_CLASS_SIZE = 20
MIN_SEQUENCE_LESSONS = 3
MAX_SEQUENCE_LESSONS = 12


class ClassProfile(BaseModel):
    """Size and composition of the class."""

    class_size: int = Field(default=DEFAULT_CLASS_SIZE, ge=0)
    heterogeneity: Heterogeneity = Heterogeneity.MEDIUM
    language_level: LanguageLevel = LanguageLevel.B2
    notes: Optional[str] = None


class DidacticSlots(BaseModel):
    """The three independent didactic choices."""

    slot1: Optional[StructureModel] = None
    slot2: Optional[LearningMode] = None
    slot3: Optional[QualityLayer] = None


class CurriculumCompetency(BaseModel):
    """A curriculum-standard statement."""

    id: str
    code: str
    area: str
    competency_area: str
    competency: str
    cycle: Optional[str] = None
    level_indicators: List[str] = []
    source: CompetencySource = CompetencySource.LEHRPLAN21


class CurriculumMapping(BaseModel):
    """A competency attached to the plan."""

    competency_id: str
    competency_code: str
    competency_text: str
    area: str
    confidence_score: float = Field(default=0.5, ge=0.0, le=1.0)
    confirmed: bool = False


class Differentiation(BaseModel):
    """Three-tier adaptation of one phase plus optional language scaffolding."""

    niveau_a: str
    niveau_b: str
    niveau_c: str
    sentence_starters: Optional[List[str]] = None
    word_list: Optional[List[str]] = None
    access_modes: Optional[List[AccessMode]] = None
    support_hints: Optional[str] = None


class Phase(BaseModel):
    """One phase of a detail plan."""

    id: str
    name: str
    duration_minutes: int = Field(ge=0)
    description: str = ""
    didactic_comment: Optional[str] = None
    teacher_actions: Optional[str] = None
    child_actions: Optional[str] = None
    materials: Optional[List[str]] = None
    social_form: Optional[str] = None
    differentiation: Optional[Differentiation] = None
    plan_b_alternative: Optional[str] = None


class PhaseSummary(BaseModel):
    name: str
    duration_minutes: int = Field(ge=0)
    description: str = ""


class ShortVersion(BaseModel):
    """Abbreviated first draft of a lesson."""

    title: str
    overview: str
    goals: List[str] = []
    phases_summary: List[PhaseSummary] = []
    differentiation_summary: Optional[Differentiation] = None
    language_supports: Optional[List[str]] = None


class DidacticDiagnosis(BaseModel):
    core_concept: str
    misconceptions: List[str] = []
    threshold_concept: str
    relevance: str


class RubricRow(BaseModel):
    criteria: str
    level_a: str
    level_b: str
    level_c: str


class DetailPlan(BaseModel):
    """Fully elaborated lesson script."""

    phases: List[Phase] = []
    plan_b_included: bool = False
    reflection_notes: str = ""
    didactic_diagnosis: Optional[DidacticDiagnosis] = None
    assessment_rubric: Optional[List[RubricRow]] = None


class SequenceLesson(BaseModel):
    id: str
    lesson_number: int = Field(ge=1)
    title: str
    focus: str = ""
    goals: List[str] = []
    duration_minutes: int = Field(default=DEFAULT_DURATION_MINUTES, ge=0)
    intermediate_check: Optional[str] = None
    short_version: Optional[ShortVersion] = None
    detail_plan: Optional[DetailPlan] = None


class SequenceSkeleton(BaseModel):
    """Multi-lesson outline."""

    lessons: List[SequenceLesson] = []
    progression: str = ""
    overall_goals: List[str] = []


class Plan(BaseModel):
    """Root aggregate of the planning wizard."""

    mode: PlanMode = PlanMode.SINGLE
    title: str = ""
    subject: str = ""
    topic_description: str = ""
    level: Optional[Level] = None
    duration_minutes: int = Field(default=DEFAULT_DURATION_MINUTES, ge=0)
    lesson_count: int = Field(default=DEFAULT_LESSON_COUNT, ge=0)
    class_profile: ClassProfile = Field(default_factory=ClassProfile)
    special_needs: str = ""
    learning_goal_type: Optional[LearningGoalType] = None
    goals: List[str] = Field(default_factory=lambda: [""])
    curriculum_mappings: List[CurriculumMapping] = []
    didactic_slots: DidacticSlots = Field(default_factory=DidacticSlots)
    short_version: Optional[ShortVersion] = None
    detail_plan: Optional[DetailPlan] = None
    sequence_skeleton: Optional[SequenceSkeleton] = None
    status: PlanStatus = PlanStatus.DRAFT
    gate_a_approved: bool = False
    gate_b_approved: bool = False

    def non_empty_goals(self) -> List[str]:
        return [g for g in self.goals if g.strip()]


class QualityWarning(BaseModel):
    """Advisory finding about a plan."""

    type: WarningType
    severity: Severity
    message: str
    suggestion: Optional[str] = None


class CompatibilityResult(BaseModel):
    compatible: bool
    warnings: List[QualityWarning] = []
    alternatives: List[str] = []


def create_initial_plan() -> Plan:
    """Fresh plan with wizard defaults."""
    return Plan()
