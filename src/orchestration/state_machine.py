"""
Step gating for the nine-step planning wizard.

Two questions are answered here, both as pure functions of the plan:
- may the user enter step N (``is_step_accessible``)
- is step N complete enough to leave it (``validate_step``)

Both wizard variants (single lesson, sequence) share the same gating.
"""

from typing import Callable, Dict, List

from pydantic import BaseModel

from src.pedagogy.plan import MAX_SEQUENCE_LESSONS, MIN_SEQUENCE_LESSONS, Plan
from src.pedagogy.types import PlanMode


FIRST_STEP = 1
TOTAL_STEPS = 9

# Steps with these numbers hold the two approval gates
GATE_A_STEP = 5
GATE_B_STEP = 7
DETAIL_STEP = 8
EXPORT_STEP = 9


class StepValidation(BaseModel):
    """Outcome of validating a step. Failures are reasons, not exceptions."""

    valid: bool
    errors: List[str] = []


def _has_short_version(plan: Plan) -> bool:
    return plan.short_version is not None


def _has_export_source(plan: Plan) -> bool:
    if plan.mode == PlanMode.SEQUENCE:
        return plan.sequence_skeleton is not None
    return plan.detail_plan is not None


# Entry requirement per step; steps without an entry are always accessible.
_STEP_PREREQUISITES: Dict[int, Callable[[Plan], bool]] = {
    5: _has_short_version,
    6: _has_short_version,
    7: _has_short_version,
    8: lambda plan: plan.gate_b_approved,
    9: _has_export_source,
}


def is_step_accessible(step: int, plan: Plan) -> bool:
    """Whether ``step`` may be entered given the current plan."""
    if step < FIRST_STEP or step > TOTAL_STEPS:
        return False
    prerequisite = _STEP_PREREQUISITES.get(step)
    return prerequisite(plan) if prerequisite else True


def accessible_steps(plan: Plan) -> List[int]:
    return [s for s in range(FIRST_STEP, TOTAL_STEPS + 1) if is_step_accessible(s, plan)]


def _validate_context(plan: Plan) -> List[str]:
    errors = []
    if not plan.level:
        errors.append("Bitte wähle eine Stufe.")
    if not plan.subject.strip():
        errors.append("Bitte gib ein Fach/Thema ein.")
    if plan.duration_minutes <= 0:
        errors.append("Bitte wähle eine Dauer.")
    if plan.class_profile.class_size <= 0:
        errors.append("Bitte gib die Klassengrösse ein.")
    if plan.mode == PlanMode.SEQUENCE and not (
        MIN_SEQUENCE_LESSONS <= plan.lesson_count <= MAX_SEQUENCE_LESSONS
    ):
        errors.append("Sequenz benötigt 3–12 Lektionen.")
    if not plan.learning_goal_type:
        errors.append("Bitte wähle einen Lernzieltyp.")
    return errors


def _validate_goals(plan: Plan) -> List[str]:
    if not plan.non_empty_goals():
        return ["Bitte gib mindestens ein Lernziel ein."]
    return []


def _validate_didactics(plan: Plan) -> List[str]:
    if not plan.didactic_slots.slot1:
        return ["Bitte wähle ein Strukturmodell (Slot 1)."]
    return []


def _validate_approval(plan: Plan) -> List[str]:
    if not (plan.gate_a_approved or plan.gate_b_approved):
        return ["Bitte bestätige die Kurzversion, bevor du fortfährst."]
    return []


def _validate_detail(plan: Plan) -> List[str]:
    if not plan.gate_b_approved:
        return ["Detailplanung erst nach Freigabe der Kurzversion möglich."]
    return []


def _validate_export(plan: Plan) -> List[str]:
    if plan.mode == PlanMode.SEQUENCE:
        skeleton = plan.sequence_skeleton
        if not skeleton or not any(lesson.detail_plan for lesson in skeleton.lessons):
            return ["Bitte erstelle die Detailplanung für mindestens eine Lektion der Sequenz."]
        return []
    if plan.detail_plan is None:
        return ["Bitte erstelle zuerst eine Detailplanung."]
    return []


# Completion rules per step; steps 4-6 (generation, editing, revision) always pass.
_STEP_RULES: Dict[int, Callable[[Plan], List[str]]] = {
    1: _validate_context,
    2: _validate_goals,
    3: _validate_didactics,
    7: _validate_approval,
    8: _validate_detail,
    9: _validate_export,
}


def validate_step(step: int, plan: Plan) -> StepValidation:
    """Reasons why ``step`` cannot be left yet; empty when it can."""
    rule = _STEP_RULES.get(step)
    errors = rule(plan) if rule else []
    return StepValidation(valid=not errors, errors=errors)
