"""Unit tests for wizard step gating: accessibility and step validation."""

from conftest import make_plan, make_sequence_plan, with_detail

from src.ai.fallback_generator import FallbackGenerator
from src.orchestration.state_machine import (
    EXPORT_STEP,
    accessible_steps,
    is_step_accessible,
    validate_step,
)
from src.pedagogy.plan import DidacticSlots, Plan


class TestStepAccessibility:
    """Entry requirements per step."""

    def test_fresh_plan_opens_steps_one_to_four(self):
        assert accessible_steps(Plan()) == [1, 2, 3, 4]

    def test_out_of_range_steps_are_never_accessible(self):
        plan = with_detail(make_plan())
        assert is_step_accessible(0, plan) is False
        assert is_step_accessible(10, plan) is False

    def test_short_version_unlocks_review_steps(self):
        plan = make_plan()
        plan = plan.model_copy(update={"short_version": FallbackGenerator.short_version(plan)})
        assert accessible_steps(plan) == [1, 2, 3, 4, 5, 6, 7]

    def test_detail_step_requires_gate_b(self):
        plan = make_plan()
        plan = plan.model_copy(
            update={"short_version": FallbackGenerator.short_version(plan), "gate_a_approved": True}
        )
        assert is_step_accessible(8, plan) is False
        assert is_step_accessible(8, plan.model_copy(update={"gate_b_approved": True})) is True

    def test_export_step_single_needs_detail_plan(self):
        plan = make_plan()
        assert is_step_accessible(EXPORT_STEP, plan) is False
        assert is_step_accessible(EXPORT_STEP, with_detail(plan)) is True

    def test_export_step_sequence_needs_skeleton(self):
        plan = make_sequence_plan()
        assert is_step_accessible(EXPORT_STEP, plan) is False
        skeleton = FallbackGenerator.sequence_skeleton(plan)
        assert is_step_accessible(EXPORT_STEP, plan.model_copy(update={"sequence_skeleton": skeleton})) is True


class TestStepValidation:
    """Completion rules; failures are reasons, not exceptions."""

    def test_empty_context_lists_every_missing_field(self):
        result = validate_step(1, Plan(duration_minutes=0))
        assert result.valid is False
        assert "Bitte wähle eine Stufe." in result.errors
        assert "Bitte gib ein Fach/Thema ein." in result.errors
        assert "Bitte wähle eine Dauer." in result.errors
        assert "Bitte wähle einen Lernzieltyp." in result.errors

    def test_complete_context_is_valid(self):
        assert validate_step(1, make_plan()).valid is True

    def test_whitespace_subject_is_missing(self):
        result = validate_step(1, make_plan(subject="   "))
        assert result.errors == ["Bitte gib ein Fach/Thema ein."]

    def test_sequence_lesson_count_bounds(self):
        assert validate_step(1, make_sequence_plan(lesson_count=2)).valid is False
        assert validate_step(1, make_sequence_plan(lesson_count=3)).valid is True
        assert validate_step(1, make_sequence_plan(lesson_count=12)).valid is True
        assert validate_step(1, make_sequence_plan(lesson_count=13)).valid is False

    def test_lesson_count_ignored_for_single_lessons(self):
        assert validate_step(1, make_plan(lesson_count=0)).valid is True

    def test_goals_need_one_non_blank_entry(self):
        assert validate_step(2, make_plan(goals=["", "  "])).valid is False
        assert validate_step(2, make_plan(goals=["", "Ziel"])).valid is True

    def test_didactics_need_structure_model(self):
        result = validate_step(3, make_plan(didactic_slots=DidacticSlots()))
        assert result.errors == ["Bitte wähle ein Strukturmodell (Slot 1)."]

    def test_generation_steps_always_pass(self):
        plan = Plan()
        for step in (4, 5, 6):
            assert validate_step(step, plan).valid is True

    def test_approval_step_accepts_either_gate(self):
        plan = make_plan()
        assert validate_step(7, plan).valid is False
        assert validate_step(7, plan.model_copy(update={"gate_a_approved": True})).valid is True
        assert validate_step(7, plan.model_copy(update={"gate_b_approved": True})).valid is True

    def test_export_sequence_needs_one_detailed_lesson(self):
        plan = make_sequence_plan()
        skeleton = FallbackGenerator.sequence_skeleton(plan)
        plan = plan.model_copy(update={"sequence_skeleton": skeleton})
        assert validate_step(EXPORT_STEP, plan).valid is False

        skeleton.lessons[1].detail_plan = FallbackGenerator.detail_plan(plan)
        plan = plan.model_copy(update={"sequence_skeleton": skeleton})
        assert validate_step(EXPORT_STEP, plan).valid is True
