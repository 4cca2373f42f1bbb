"""
Prompt construction for content generation.

Each artifact kind has a typed context carrying only the plan facts the
model needs. ``render()`` produces the German user prompt including the
JSON schema the answer must follow.
"""

import json
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from src.ai.types import ArtifactKind
from src.pedagogy.constants import (
    HETEROGENEITY_OPTIONS,
    LANGUAGE_LEVEL_OPTIONS,
    LEARNING_MODES,
    LEVEL_OPTIONS,
    QUALITY_LAYERS,
    STRUCTURE_MODELS,
    label_for,
)
from src.pedagogy.plan import DetailPlan, Plan, SequenceSkeleton, ShortVersion


SYSTEM_PROMPT = (
    "Du bist ein erfahrener Schweizer Didaktiker (Lehrplan 21). "
    "Antworte ausschliesslich mit gültigem JSON gemäss dem vorgegebenen Schema."
)

_TARGET_MODELS: Dict[ArtifactKind, Type[BaseModel]] = {
    ArtifactKind.SHORT: ShortVersion,
    ArtifactKind.REVISE: ShortVersion,
    ArtifactKind.DETAIL: DetailPlan,
    ArtifactKind.SEQUENCE: SequenceSkeleton,
}


def target_model(kind: ArtifactKind) -> Type[BaseModel]:
    """Pydantic model the answer for ``kind`` is validated against."""
    return _TARGET_MODELS[kind]


def _schema_block(kind: ArtifactKind) -> str:
    schema = target_model(kind).model_json_schema()
    return "Antworte als JSON-Objekt nach diesem Schema:\n" + json.dumps(schema, ensure_ascii=False)


class PromptContext(BaseModel):
    """Plan facts shared by every prompt."""

    title: str = ""
    subject: str = ""
    topic_description: str = ""
    level: str = "–"
    duration_minutes: int
    class_size: int
    heterogeneity: str
    language_level: str
    special_needs: str = ""
    goals: List[str] = []
    structure_model: str = "–"
    learning_mode: str = "–"
    quality_layer: str = "–"
    competency_codes: List[str] = []

    @classmethod
    def fields_from_plan(cls, plan: Plan) -> Dict[str, Any]:
        slots = plan.didactic_slots
        profile = plan.class_profile
        return {
            "title": plan.title,
            "subject": plan.subject,
            "topic_description": plan.topic_description,
            "level": label_for(LEVEL_OPTIONS, plan.level),
            "duration_minutes": plan.duration_minutes,
            "class_size": profile.class_size,
            "heterogeneity": label_for(HETEROGENEITY_OPTIONS, profile.heterogeneity),
            "language_level": label_for(LANGUAGE_LEVEL_OPTIONS, profile.language_level),
            "special_needs": plan.special_needs,
            "goals": plan.non_empty_goals(),
            "structure_model": label_for(STRUCTURE_MODELS, slots.slot1),
            "learning_mode": label_for(LEARNING_MODES, slots.slot2),
            "quality_layer": label_for(QUALITY_LAYERS, slots.slot3),
            "competency_codes": [m.competency_code for m in plan.curriculum_mappings],
        }

    def context_lines(self) -> str:
        lines = [
            f"Fach: {self.subject or '–'}",
            f"Titel: {self.title or '–'}",
            f"Thema: {self.topic_description or '–'}",
            f"Stufe: {self.level}",
            f"Dauer: {self.duration_minutes} Minuten",
            (
                f"Klassenprofil: {self.class_size} SuS, Heterogenität: {self.heterogeneity}, "
                f"Sprachniveau: {self.language_level}."
            ),
        ]
        if self.goals:
            lines.append("Lernziele:")
            lines.extend(f"{i}. {goal}" for i, goal in enumerate(self.goals, start=1))
        lines.append(f"Gewähltes Unterrichtsmodell: {self.structure_model}")
        lines.append(f"Lernmodus: {self.learning_mode}")
        lines.append(f"Qualitätsebene: {self.quality_layer}")
        if self.competency_codes:
            lines.append("Lehrplan-21-Kompetenzen: " + ", ".join(self.competency_codes))
        if self.special_needs:
            lines.append(f"Besondere Hinweise: {self.special_needs}")
        return "\n".join(lines)


class ShortPromptContext(PromptContext):
    def render(self) -> str:
        return "\n\n".join([
            "Erstelle eine KURZVERSION einer Unterrichtslektion.",
            self.context_lines(),
            (
                "Anforderungen:\n"
                "- Lernziele im Muster: \"Die SuS können [Verb], indem sie ..., und zeigen dies durch ...\"\n"
                "- 3 bis 5 Phasen, deren Dauer zusammen die Lektionsdauer ergibt\n"
                "- Differenzierung auf Niveau A (Basis), B (Standard) und C (Challenge)\n"
                "- Sprachhilfen (Wortspeicher, Satzanfänge)"
            ),
            _schema_block(ArtifactKind.SHORT),
        ])


class DetailPromptContext(PromptContext):
    short_version: Optional[ShortVersion] = None
    current: Optional[DetailPlan] = None
    instruction: Optional[str] = None

    def render(self) -> str:
        parts = [
            "Erstelle einen DETAILLIERTEN, KREATIVEN Unterrichtsplan.",
            self.context_lines(),
        ]
        if self.short_version is not None:
            parts.append(
                "Freigegebene Kurzversion:\n"
                + self.short_version.model_dump_json(exclude_none=True)
            )
        if self.current is not None and self.instruction:
            parts.append("AKTUELLER DETAILPLAN:\n" + self.current.model_dump_json(exclude_none=True))
            parts.append(
                "ANWEISUNG DER LEHRPERSON:\n" + self.instruction
                + "\nPasse den Detailplan entsprechend an und behalte alles Übrige bei."
            )
        parts.append(
            "Qualitätsanforderungen:\n"
            "- Jede Phase mit Lehrer- und Schüleraktivitäten, Material und Sozialform\n"
            "- Phasendauern ergeben zusammen genau die Lektionsdauer\n"
            "- Pro Phase eine Plan-B-Alternative\n"
            "- Didaktische Diagnose, Bewertungsraster und Reflexionsnotizen"
        )
        parts.append(_schema_block(ArtifactKind.DETAIL))
        return "\n\n".join(parts)


class SequencePromptContext(PromptContext):
    lesson_count: int

    def render(self) -> str:
        return "\n\n".join([
            (
                f"Erstelle eine UNTERRICHTSSEQUENZ mit {self.lesson_count} Lektionen "
                f"zu je {self.duration_minutes} Minuten."
            ),
            self.context_lines(),
            (
                "Leitlinien:\n"
                "- Lebensweltbezug der SuS herstellen\n"
                "- Keine Platzhalter, konkrete Inhalte pro Lektion\n"
                "- Methodenmix über die Sequenz\n"
                "- Klare Progression von Einstieg bis Abschluss, mit einer Zwischenüberprüfung"
            ),
            _schema_block(ArtifactKind.SEQUENCE),
        ])


class RevisePromptContext(PromptContext):
    current: ShortVersion
    instruction: str

    def render(self) -> str:
        return "\n\n".join([
            "AKTUELLE KURZVERSION:\n" + self.current.model_dump_json(exclude_none=True),
            "ANWEISUNG DER LEHRPERSON:\n" + self.instruction,
            self.context_lines(),
            "Erstelle eine ÜBERARBEITETE Kurzversion, die die Anweisung umsetzt.",
            _schema_block(ArtifactKind.REVISE),
        ])


def build_prompt_context(
    kind: ArtifactKind,
    plan: Plan,
    current: Optional[ShortVersion] = None,
    instruction: Optional[str] = None,
    current_detail: Optional[DetailPlan] = None,
) -> PromptContext:
    """
    Typed prompt context for ``kind``.

    Raises:
        ValueError: revise requested without a current short version or instruction.
    """
    fields = PromptContext.fields_from_plan(plan)
    if kind == ArtifactKind.SHORT:
        return ShortPromptContext(**fields)
    if kind == ArtifactKind.DETAIL:
        return DetailPromptContext(
            short_version=plan.short_version,
            current=current_detail,
            instruction=instruction,
            **fields,
        )
    if kind == ArtifactKind.SEQUENCE:
        return SequencePromptContext(lesson_count=plan.lesson_count, **fields)
    if current is None or not instruction:
        raise ValueError("revise needs the current short version and an instruction")
    return RevisePromptContext(current=current, instruction=instruction, **fields)


def normalize_payload(kind: ArtifactKind, data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill identifiers the model tends to omit before validation."""
    if kind == ArtifactKind.DETAIL:
        for i, phase in enumerate(data.get("phases") or [], start=1):
            if isinstance(phase, dict):
                phase.setdefault("id", f"p-{i}")
    elif kind == ArtifactKind.SEQUENCE:
        for i, lesson in enumerate(data.get("lessons") or [], start=1):
            if isinstance(lesson, dict):
                lesson.setdefault("id", f"l-{i}")
                lesson.setdefault("lesson_number", i)
    return data
