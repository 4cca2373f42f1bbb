"""
Didactic option catalogs, incompatible slot combinations and wizard step configs.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from src.pedagogy.types import (
    Heterogeneity,
    LanguageLevel,
    LearningGoalType,
    LearningMode,
    Level,
    PlanMode,
    QualityLayer,
    StructureModel,
)


class Option(BaseModel):
    """One selectable value with its German label."""

    value: str
    label: str
    description: Optional[str] = None


class IncompatibleCombo(BaseModel):
    """Slot values that conflict; unnamed slots are wildcards."""

    slot1: Optional[StructureModel] = None
    slot2: Optional[LearningMode] = None
    slot3: Optional[QualityLayer] = None
    reason: str
    alternative: str


class StepConfig(BaseModel):
    id: int
    title: str
    description: str
    is_gate: bool = False
    gate_label: Optional[str] = None


LEVEL_OPTIONS: List[Option] = [
    Option(value=Level.KG.value, label="Kindergarten"),
    Option(value=Level.PRIMAR.value, label="Primar"),
    Option(value=Level.SEK1.value, label="Sek I"),
    Option(value=Level.TENTH_YEAR.value, label="10. Schuljahr"),
    Option(value=Level.GYMNASIUM.value, label="Gymnasium"),
]

DURATION_OPTIONS: List[int] = [45, 60, 90]

LEARNING_GOAL_OPTIONS: List[Option] = [
    Option(value=LearningGoalType.KNOWLEDGE.value, label="Wissen"),
    Option(value=LearningGoalType.APPLICATION.value, label="Anwendung"),
    Option(value=LearningGoalType.REFLECTION.value, label="Reflexion"),
    Option(value=LearningGoalType.TRANSFER.value, label="Transfer"),
]

HETEROGENEITY_OPTIONS: List[Option] = [
    Option(value=Heterogeneity.LOW.value, label="Gering"),
    Option(value=Heterogeneity.MEDIUM.value, label="Mittel"),
    Option(value=Heterogeneity.HIGH.value, label="Hoch"),
]

LANGUAGE_LEVEL_OPTIONS: List[Option] = [
    Option(value=lvl.value, label=lvl.value.upper()) for lvl in LanguageLevel
]

MODE_OPTIONS: List[Option] = [
    Option(value=PlanMode.SINGLE.value, label="Einzelstunde", description="Eine Lektion planen (45–90 Min)"),
    Option(value=PlanMode.SEQUENCE.value, label="Sequenz", description="3–12 Lektionen mit Progression"),
]

STRUCTURE_MODELS: List[Option] = [
    Option(value=StructureModel.AVIVA.value, label="AVIVA",
           description="Ankommen, Vorwissen, Informieren, Verarbeiten, Auswerten"),
    Option(value=StructureModel.DIRECT_INSTRUCTION.value, label="Direkte Instruktion",
           description="Klare, lehrpersonengesteuerte Vermittlung"),
    Option(value=StructureModel.FIVE_E.value, label="5E",
           description="Engage, Explore, Explain, Elaborate, Evaluate"),
    Option(value=StructureModel.WORKSHOP.value, label="Workshop / Atelier",
           description="Offene Lernumgebung mit Stationen"),
    Option(value=StructureModel.PROJECT_CYCLE.value, label="Projektzyklus",
           description="Planen, Durchführen, Präsentieren, Reflektieren"),
]

LEARNING_MODES: List[Option] = [
    Option(value=LearningMode.COOPERATIVE.value, label="Kooperatives Lernen",
           description="Think-Pair-Share, Jigsaw, Gruppenpuzzle"),
    Option(value=LearningMode.PROBLEM_BASED.value, label="Problemorientiert",
           description="Authentische Problemstellungen lösen"),
    Option(value=LearningMode.INQUIRY.value, label="Inquiry / Forschend",
           description="Fragen stellen, untersuchen, Ergebnisse teilen"),
    Option(value=LearningMode.PROJECT_BASED.value, label="Projektbasiert",
           description="Reales Produkt in längeren Phasen erstellen"),
    Option(value=LearningMode.PRACTICE.value, label="Übungsmodus",
           description="Gezieltes Üben und Vertiefen"),
    Option(value=LearningMode.DISCOURSE.value, label="Diskurs / Debatte",
           description="Argumente entwickeln und austauschen"),
]

QUALITY_LAYERS: List[Option] = [
    Option(value=QualityLayer.FOUR_K.value, label="4K",
           description="Kreativität, Kritisches Denken, Kommunikation, Kollaboration"),
    Option(value=QualityLayer.DEEPER_LEARNING.value, label="Deeper Learning",
           description="Tiefes Verständnis und Transfer"),
    Option(value=QualityLayer.LANGUAGE_SENSITIVE.value, label="Sprachsensibler Unterricht",
           description="Scaffolding, Wortschatz, Satzbausteine"),
    Option(value=QualityLayer.FORMATIVE_ASSESSMENT.value, label="Formatives Assessment",
           description="Lernprozessbegleitende Beurteilung"),
    Option(value=QualityLayer.UDL.value, label="UDL",
           description="Universal Design for Learning, Mehrfachzugänge"),
    Option(value=QualityLayer.SELF_REGULATED.value, label="Selbstreguliertes Lernen",
           description="Lernstrategien, Metakognition, Planung"),
    Option(value=QualityLayer.GAMIFICATION.value, label="Gamification light",
           description="Spielelemente für Motivation"),
]

INCOMPATIBLE_COMBOS: List[IncompatibleCombo] = [
    IncompatibleCombo(
        slot1=StructureModel.DIRECT_INSTRUCTION,
        slot2=LearningMode.INQUIRY,
        reason="Direkte Instruktion und Forschendes Lernen widersprechen sich im Steuerungsgrad.",
        alternative="5E mit Inquiry kombinieren oder Direkte Instruktion mit Übungsmodus.",
    ),
    IncompatibleCombo(
        slot1=StructureModel.DIRECT_INSTRUCTION,
        slot2=LearningMode.PROJECT_BASED,
        reason="Direkte Instruktion ist stark lehrerzentriert, Projektbasiertes Lernen stark schülerzentriert.",
        alternative="Workshop/Atelier mit Projektbasiertem Lernen oder Direkte Instruktion mit Übungsmodus.",
    ),
    IncompatibleCombo(
        slot2=LearningMode.PRACTICE,
        slot3=QualityLayer.GAMIFICATION,
        reason="Übungsmodus mit Gamification kann zu oberflächlicher Beschäftigung führen.",
        alternative="Übungsmodus mit Formativem Assessment oder Gamification mit Kooperativem Lernen.",
    ),
]

SINGLE_STEPS: List[StepConfig] = [
    StepConfig(id=1, title="Kontext", description="Stufe, Fach, Dauer, Klassenprofil"),
    StepConfig(id=2, title="Ziele & Lehrplan", description="Lernziele und Kompetenz-Mapping"),
    StepConfig(id=3, title="Didaktik", description="Strukturmodell, Lernmodus, Qualitätslayer"),
    StepConfig(id=4, title="KI-Kurzversion", description="Automatische Planerstellung"),
    StepConfig(id=5, title="Anpassen", description="Kurzversion bearbeiten", is_gate=True, gate_label="GATE A"),
    StepConfig(id=6, title="KI-Überarbeitung", description="Überarbeitete Version prüfen"),
    StepConfig(id=7, title="Freigabe", description="Kurzversion bestätigen", is_gate=True, gate_label="GATE B"),
    StepConfig(id=8, title="Detailplanung", description="Vollständige Unterrichtsplanung"),
    StepConfig(id=9, title="Export", description="PDF/DOCX herunterladen"),
]

SEQUENCE_STEPS: List[StepConfig] = [
    StepConfig(id=1, title="Kontext", description="Stufe, Fach, Lektionenanzahl"),
    StepConfig(id=2, title="Ziele & Lehrplan", description="Übergeordnete Kompetenzen"),
    StepConfig(id=3, title="Didaktik", description="Strukturmodell, Lernmodus, Qualitätslayer"),
    StepConfig(id=4, title="Sequenz-Skelett", description="KI erstellt Lektionsübersicht"),
    StepConfig(id=5, title="Sequenz anpassen", description="Reihenfolge und Fokus bearbeiten",
               is_gate=True, gate_label="GATE S1"),
    StepConfig(id=6, title="KI-Überarbeitung", description="Überarbeitete Sequenz prüfen"),
    StepConfig(id=7, title="Sequenz freigeben", description="Sequenz bestätigen", is_gate=True, gate_label="GATE S2"),
    StepConfig(id=8, title="Detailplanung", description="Details pro Lektion"),
    StepConfig(id=9, title="Export", description="PDF/DOCX herunterladen"),
]


def get_steps(mode: PlanMode) -> List[StepConfig]:
    """Step configuration for the given plan mode."""
    return SEQUENCE_STEPS if mode == PlanMode.SEQUENCE else SINGLE_STEPS


def label_for(options: List[Option], value: Optional[str]) -> str:
    """German label for a catalog value, falling back to the raw value."""
    if value is None:
        return "–"
    for opt in options:
        if opt.value == value:
            return opt.label
    return value


def all_options() -> Dict[str, List[Option]]:
    return {
        "modes": MODE_OPTIONS,
        "levels": LEVEL_OPTIONS,
        "learning_goal_types": LEARNING_GOAL_OPTIONS,
        "heterogeneity": HETEROGENEITY_OPTIONS,
        "language_levels": LANGUAGE_LEVEL_OPTIONS,
        "structure_models": STRUCTURE_MODELS,
        "learning_modes": LEARNING_MODES,
        "quality_layers": QUALITY_LAYERS,
    }
