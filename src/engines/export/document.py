"""
Format-neutral export document.

The plan is laid out once as titled sections of paragraphs, bullets and
tables; the PDF and DOCX renderers only decide how each block looks.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.pedagogy.constants import HETEROGENEITY_OPTIONS, LEVEL_OPTIONS, label_for
from src.pedagogy.plan import DetailPlan, Differentiation, Plan
from src.pedagogy.types import PlanMode


EMPTY_CELL = "–"
COMPETENCY_TEXT_LIMIT = 80


class TableBlock(BaseModel):
    header: List[str]
    rows: List[List[str]] = []


class Section(BaseModel):
    heading: str
    level: int = 1
    paragraphs: List[str] = []
    bullets: List[str] = []
    table: Optional[TableBlock] = None


class ExportDocument(BaseModel):
    title: str
    generated_at: datetime
    metadata: TableBlock
    sections: List[Section] = []


def mode_label(mode: PlanMode) -> str:
    return "Sequenz" if mode == PlanMode.SEQUENCE else "Einzelstunde"


def differentiation_lines(diff: Differentiation) -> List[str]:
    return [
        f"A (Basis): {diff.niveau_a}",
        f"B (Standard): {diff.niveau_b}",
        f"C (Challenge): {diff.niveau_c}",
    ]


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "…"


def _detail_sections(detail: DetailPlan, heading: str, level: int) -> List[Section]:
    sections = [
        Section(
            heading=heading,
            level=level,
            table=TableBlock(
                header=[
                    "Zeit",
                    "Teilschritte und didaktischer Kommentar",
                    "Tätigkeit der Lehrperson",
                    "Tätigkeit der Kinder",
                    "Sozialform",
                    "Material / Medien",
                ],
                rows=[
                    [
                        f"{p.duration_minutes}'",
                        f"{p.name}\n\n{p.didactic_comment or ''}".strip(),
                        p.teacher_actions or EMPTY_CELL,
                        p.child_actions or EMPTY_CELL,
                        p.social_form or EMPTY_CELL,
                        ", ".join(p.materials or []) or EMPTY_CELL,
                    ]
                    for p in detail.phases
                ],
            ),
        )
    ]

    plan_b = [p for p in detail.phases if p.plan_b_alternative]
    if plan_b:
        sections.append(Section(
            heading="Plan B",
            level=level + 1,
            table=TableBlock(
                header=["Phase", "Alternative"],
                rows=[[p.name, p.plan_b_alternative] for p in plan_b],
            ),
        ))

    differentiated = [p for p in detail.phases if p.differentiation]
    if differentiated:
        sections.append(Section(
            heading="Differenzierung pro Phase",
            level=level + 1,
            table=TableBlock(
                header=["Phase", "Niveau A", "Niveau B", "Niveau C"],
                rows=[
                    [p.name, p.differentiation.niveau_a, p.differentiation.niveau_b, p.differentiation.niveau_c]
                    for p in differentiated
                ],
            ),
        ))

    if detail.didactic_diagnosis:
        diagnosis = detail.didactic_diagnosis
        sections.append(Section(
            heading="Didaktische Diagnose",
            level=level + 1,
            paragraphs=[
                f"Kernkonzept: {diagnosis.core_concept}",
                f"Schwellenkonzept: {diagnosis.threshold_concept}",
                f"Relevanz: {diagnosis.relevance}",
            ],
            bullets=list(diagnosis.misconceptions),
        ))

    if detail.assessment_rubric:
        sections.append(Section(
            heading="Bewertungsraster",
            level=level + 1,
            table=TableBlock(
                header=["Kriterium", "Niveau A", "Niveau B", "Niveau C"],
                rows=[[r.criteria, r.level_a, r.level_b, r.level_c] for r in detail.assessment_rubric],
            ),
        ))

    if detail.reflection_notes:
        sections.append(Section(heading="Reflexion", level=level + 1, paragraphs=[detail.reflection_notes]))
    return sections


def build_document(plan: Plan, generated_at: datetime) -> ExportDocument:
    """Lay out every populated part of ``plan``."""
    profile = plan.class_profile
    metadata = [
        ["Modus", mode_label(plan.mode)],
        ["Fach / Thema", plan.subject or EMPTY_CELL],
        ["Stufe", label_for(LEVEL_OPTIONS, plan.level)],
        ["Dauer", f"{plan.duration_minutes} Minuten"],
        ["Klassengrösse", f"{profile.class_size} SuS"],
        ["Heterogenität", label_for(HETEROGENEITY_OPTIONS, profile.heterogeneity)],
        ["Sprachstand", profile.language_level.value.upper()],
    ]
    if plan.mode == PlanMode.SEQUENCE:
        metadata.append(["Lektionen", str(plan.lesson_count)])

    sections = [Section(heading="Lernziele", bullets=plan.non_empty_goals())]

    if plan.curriculum_mappings:
        sections.append(Section(
            heading="Lehrplan-Kompetenzen",
            table=TableBlock(
                header=["Code", "Kompetenz", "Bereich", "Konfidenz"],
                rows=[
                    [
                        m.competency_code,
                        _truncate(m.competency_text, COMPETENCY_TEXT_LIMIT),
                        m.area,
                        f"{round(m.confidence_score * 100)}%",
                    ]
                    for m in plan.curriculum_mappings
                ],
            ),
        ))

    short = plan.short_version
    if short:
        sections.append(Section(
            heading="Kurzversion: Phasenübersicht",
            paragraphs=[short.overview] if short.overview else [],
            table=TableBlock(
                header=["Phase", "Dauer", "Beschreibung"],
                rows=[[p.name, f"{p.duration_minutes} Min", p.description] for p in short.phases_summary],
            ),
        ))

    if plan.detail_plan:
        sections.extend(_detail_sections(plan.detail_plan, "Detailplanung: Unterrichtsverlauf", 1))

    skeleton = plan.sequence_skeleton
    if plan.mode == PlanMode.SEQUENCE and skeleton:
        sections.append(Section(
            heading="Sequenzübersicht",
            paragraphs=[skeleton.progression] if skeleton.progression else [],
            bullets=list(skeleton.overall_goals),
            table=TableBlock(
                header=["Nr.", "Titel", "Fokus", "Dauer", "Zwischenüberprüfung"],
                rows=[
                    [
                        str(lesson.lesson_number),
                        lesson.title,
                        lesson.focus,
                        f"{lesson.duration_minutes} Min",
                        lesson.intermediate_check or EMPTY_CELL,
                    ]
                    for lesson in skeleton.lessons
                ],
            ),
        ))
        for lesson in skeleton.lessons:
            if lesson.detail_plan:
                sections.extend(_detail_sections(lesson.detail_plan, lesson.title, 2))

    if short and short.differentiation_summary:
        sections.append(Section(
            heading="Differenzierung",
            paragraphs=differentiation_lines(short.differentiation_summary),
            bullets=list(short.language_supports or []),
        ))

    title = (short.title if short else "") or plan.title or f"{plan.subject}: Planung"
    return ExportDocument(
        title=title,
        generated_at=generated_at,
        metadata=TableBlock(header=["Feld", "Wert"], rows=metadata),
        sections=sections,
    )
