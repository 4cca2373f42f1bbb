"""
Pedagogy domain - the Plan aggregate, option catalogs and the Lehrplan 21 catalog.
"""

from src.pedagogy.plan import Plan, create_initial_plan
from src.pedagogy.curriculum_engine import CompetencySuggestion, CurriculumEngine
from src.pedagogy.curriculum_upload import parse_curriculum_file

__all__ = [
    "Plan",
    "create_initial_plan",
    "CompetencySuggestion",
    "CurriculumEngine",
    "parse_curriculum_file",
]
