"""
Enumerations shared by the planning domain.

Values are the wire identifiers used in persisted drafts and API payloads.
"""

from enum import Enum


class PlanMode(str, Enum):
    """Single lesson or multi-lesson sequence."""
    SINGLE = "single"
    SEQUENCE = "sequence"


class Level(str, Enum):
    """School level."""
    KG = "kg"
    PRIMAR = "primar"
    SEK1 = "sek1"
    TENTH_YEAR = "10sj"
    GYMNASIUM = "gymnasium"


class LearningGoalType(str, Enum):
    KNOWLEDGE = "knowledge"
    APPLICATION = "application"
    REFLECTION = "reflection"
    TRANSFER = "transfer"


class Heterogeneity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LanguageLevel(str, Enum):
    """CEFR level of the class average."""
    A1 = "a1"
    A2 = "a2"
    B1 = "b1"
    B2 = "b2"
    C1 = "c1"
    C2 = "c2"


class StructureModel(str, Enum):
    """Didactic slot 1."""
    AVIVA = "aviva"
    DIRECT_INSTRUCTION = "direct_instruction"
    FIVE_E = "5e"
    WORKSHOP = "workshop"
    PROJECT_CYCLE = "project_cycle"


class LearningMode(str, Enum):
    """Didactic slot 2."""
    COOPERATIVE = "cooperative"
    PROBLEM_BASED = "problem_based"
    INQUIRY = "inquiry"
    PROJECT_BASED = "project_based"
    PRACTICE = "practice"
    DISCOURSE = "discourse"


class QualityLayer(str, Enum):
    """Didactic slot 3."""
    FOUR_K = "four_k"
    DEEPER_LEARNING = "deeper_learning"
    LANGUAGE_SENSITIVE = "language_sensitive"
    FORMATIVE_ASSESSMENT = "formative_assessment"
    UDL = "udl"
    SELF_REGULATED = "self_regulated"
    GAMIFICATION = "gamification"


class PlanStatus(str, Enum):
    """Lifecycle status of a plan."""
    DRAFT = "draft"
    AI_GENERATED = "ai_generated"
    EDITED = "edited"
    REVISED = "revised"
    APPROVED = "approved"
    DETAIL_READY = "detail_ready"
    EXPORTED = "exported"


class CompetencySource(str, Enum):
    LEHRPLAN21 = "lehrplan21"
    CUSTOM_UPLOAD = "custom_upload"


class WarningType(str, Enum):
    TIME = "time"
    COMPATIBILITY = "compatibility"
    LANGUAGE = "language"
    WORKLOAD = "workload"
    RESOURCES = "resources"


class Severity(str, Enum):
    """Warning severity, most severe first."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class AccessMode(str, Enum):
    TEXT = "text"
    VISUAL = "visual"
    AUDIO = "audio"
    PRODUCT = "product"


# Ordering used when sorting warnings
SEVERITY_RANK = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}

LOW_LANGUAGE_LEVELS = frozenset({LanguageLevel.A1, LanguageLevel.A2, LanguageLevel.B1})
BEGINNER_LANGUAGE_LEVELS = frozenset({LanguageLevel.A1, LanguageLevel.A2})
