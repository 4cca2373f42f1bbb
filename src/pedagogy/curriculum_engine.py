"""
Curriculum engine - competency search and plan-based auto-suggest.

Both modes are read-only over the static catalog and deterministic.
"""

from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from src.pedagogy.curriculum_catalog import (
    CYCLE_1,
    CYCLE_2,
    CYCLE_3,
    LP21_COMPETENCIES,
    get_competencies_by_area,
    get_competencies_by_cycle,
)
from src.pedagogy.plan import CurriculumCompetency, CurriculumMapping, Plan
from src.pedagogy.types import Level


class CompetencySuggestion(BaseModel):
    """A competency proposed for a plan with its confidence."""

    competency: CurriculumCompetency
    confidence_score: float


class CurriculumEngine:
    """Search and suggestion over the Lehrplan 21 catalog."""

    CODE_SCORE = 10
    AREA_SCORE = 5
    TEXT_SCORE = 1

    SUBJECT_MATCH_BONUS = 0.4
    KEYWORD_WEIGHT = 0.6
    KEYWORD_CAP = 0.4
    COMPETENCY_AREA_BONUS = 0.15
    MAX_CONFIDENCE = 0.95
    MIN_CONFIDENCE = 0.15
    MAX_SUGGESTIONS = 5

    _level_cycles: Dict[Level, str] = {
        Level.KG: CYCLE_1,
        Level.PRIMAR: CYCLE_2,
        Level.SEK1: CYCLE_3,
        Level.TENTH_YEAR: CYCLE_3,
        Level.GYMNASIUM: CYCLE_3,
    }

    @classmethod
    def level_to_cycle(cls, level: Optional[Level]) -> Optional[str]:
        if level is None:
            return None
        return cls._level_cycles.get(level)

    @classmethod
    def search(
        cls,
        query: str,
        area: Optional[str] = None,
        cycle: Optional[str] = None,
        catalog: Optional[Sequence[CurriculumCompetency]] = None,
    ) -> List[CurriculumCompetency]:
        """
        Filter by area/cycle, then rank by query terms.

        Each term scores once: code hit, else area hit, else full-text hit.
        Empty query returns the filtered catalog in its original order.
        """
        if area:
            results = get_competencies_by_area(area) if catalog is None else [
                c for c in catalog if c.area.lower() == area.strip().lower()
            ]
        else:
            results = list(LP21_COMPETENCIES if catalog is None else catalog)
        if cycle:
            results = [c for c in results if c.cycle == cycle]

        if not query.strip():
            return results

        terms = query.lower().split()
        scored = []
        for comp in results:
            score = sum(cls._term_score(comp, term) for term in terms)
            if score > 0:
                scored.append((score, comp))
        # sorted() is stable, ties keep catalog order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [comp for _, comp in scored]

    @classmethod
    def _term_score(cls, comp: CurriculumCompetency, term: str) -> int:
        if term in comp.code.lower():
            return cls.CODE_SCORE
        if term in comp.area.lower() or term in comp.competency_area.lower():
            return cls.AREA_SCORE
        full_text = " ".join(
            [comp.code, comp.area, comp.competency_area, comp.competency, *comp.level_indicators]
        ).lower()
        if term in full_text:
            return cls.TEXT_SCORE
        return 0

    @classmethod
    def auto_suggest(cls, plan: Plan) -> List[CompetencySuggestion]:
        """Top competencies for the plan context, most confident first."""
        cycle = cls.level_to_cycle(plan.level)
        pool = get_competencies_by_cycle(cycle) if cycle else LP21_COMPETENCIES

        subject = plan.subject.lower().strip()
        subject_head = subject.split(" ")[0] if subject else ""
        search_text = " ".join(
            [
                subject,
                plan.topic_description.lower(),
                plan.special_needs.lower(),
                " ".join(plan.goals).lower(),
            ]
        )

        suggestions: List[CompetencySuggestion] = []
        for comp in pool:
            confidence = 0.0
            area = comp.area.lower()

            if subject and (area in subject or subject_head in area):
                confidence += cls.SUBJECT_MATCH_BONUS

            comp_words = [
                w for w in f"{comp.area} {comp.competency_area} {comp.competency}".lower().split()
                if len(w) > 3
            ]
            matching = [w for w in comp_words if w in search_text]
            confidence += min(
                cls.KEYWORD_CAP,
                len(matching) / max(len(comp_words), 1) * cls.KEYWORD_WEIGHT,
            )

            area_head = comp.competency_area.lower().split(" ")[0]
            if area_head and area_head in search_text:
                confidence += cls.COMPETENCY_AREA_BONUS

            confidence = min(cls.MAX_CONFIDENCE, confidence)
            if confidence >= cls.MIN_CONFIDENCE:
                suggestions.append(
                    CompetencySuggestion(competency=comp, confidence_score=round(confidence, 2))
                )

        suggestions.sort(key=lambda s: s.confidence_score, reverse=True)
        return suggestions[: cls.MAX_SUGGESTIONS]

    @classmethod
    def create_mapping(
        cls,
        competency: CurriculumCompetency,
        confidence_score: float = 0.5,
    ) -> CurriculumMapping:
        return CurriculumMapping(
            competency_id=competency.id,
            competency_code=competency.code,
            competency_text=competency.competency,
            area=competency.area,
            confidence_score=confidence_score,
            confirmed=False,
        )
