"""Unit tests for PlanningSession: mutations, navigation, gates and undo/redo history."""

import pytest

from src.ai.fallback_generator import FallbackGenerator
from src.exceptions import (
    ArtifactMissingError,
    GenerationInProgressError,
    GoalIndexError,
    InvalidContextError,
    UnknownCompetencyError,
)
from src.orchestration.history import SnapshotHistory
from src.orchestration.planning_session import PlanningSession
from src.pedagogy.curriculum_catalog import get_competency
from src.pedagogy.curriculum_engine import CurriculumEngine
from src.pedagogy.plan import Plan
from src.pedagogy.types import Level, PlanStatus, StructureModel


def _with_short_version(session: PlanningSession) -> PlanningSession:
    session.set_short_version(FallbackGenerator.short_version(session.plan))
    return session


class TestContextAndGoals:

    def test_update_context_routes_profile_fields(self):
        session = PlanningSession()
        session.update_context(subject="Mathematik", class_size=18, level=Level.PRIMAR)
        assert session.plan.subject == "Mathematik"
        assert session.plan.level == Level.PRIMAR
        assert session.plan.class_profile.class_size == 18

    def test_update_context_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            PlanningSession().update_context(gate_b_approved=True)

    def test_update_context_rejects_invalid_values(self, session):
        before = session.plan
        with pytest.raises(InvalidContextError) as exc_info:
            session.update_context(subject=None)
        assert exc_info.value.status_code == 422
        assert exc_info.value.errors[0]["field"] == "subject"
        assert session.plan is before
        assert session.can_undo is False

    def test_goal_editing(self):
        session = PlanningSession()
        session.update_goal(0, "Erstes Ziel")
        session.add_goal()
        session.update_goal(1, "Zweites Ziel")
        assert session.plan.goals == ["Erstes Ziel", "Zweites Ziel"]
        session.remove_goal(0)
        assert session.plan.goals == ["Zweites Ziel"]

    def test_last_goal_is_never_removed(self):
        session = PlanningSession()
        session.remove_goal(0)
        assert session.plan.goals == [""]

    def test_goal_index_checked(self):
        with pytest.raises(GoalIndexError):
            PlanningSession().update_goal(3, "x")

    def test_set_goals_keeps_one_entry(self):
        session = PlanningSession()
        session.set_goals([])
        assert session.plan.goals == [""]

    def test_set_slot_by_number(self):
        session = PlanningSession()
        session.set_slot(1, "aviva")
        assert session.plan.didactic_slots.slot1 == StructureModel.AVIVA
        with pytest.raises(ValueError):
            session.set_slot(4, "aviva")


class TestNavigation:

    def test_next_step_refuses_incomplete_step(self):
        session = PlanningSession()
        result = session.next_step()
        assert result.valid is False
        assert session.current_step == 1
        assert session.validation_errors == result.errors

    def test_next_step_advances_and_clears_errors(self, session):
        session.validation_errors = ["alt"]
        assert session.next_step().valid is True
        assert session.current_step == 2
        assert session.validation_errors == []

    def test_next_step_stays_before_inaccessible_step(self, session):
        session.set_step(4)
        assert session.next_step().valid is True
        # step 5 needs a short version
        assert session.current_step == 4

    def test_set_step_inaccessible_is_a_no_op(self, session):
        assert session.set_step(8) is False
        assert session.current_step == 1

    def test_prev_step_stops_at_first(self, session):
        assert session.prev_step() is False
        session.set_step(3)
        assert session.prev_step() is True
        assert session.current_step == 2


class TestGates:

    def test_gates_need_short_version(self, session):
        with pytest.raises(ArtifactMissingError):
            session.approve_gate_a()

    def test_gate_statuses(self, session):
        _with_short_version(session)
        session.approve_gate_a()
        assert session.plan.gate_a_approved is True
        assert session.plan.status == PlanStatus.EDITED
        session.approve_gate_b()
        assert session.plan.gate_b_approved is True
        assert session.plan.status == PlanStatus.APPROVED
        assert 8 in session.accessible_steps()

    def test_reset_gates(self, session):
        _with_short_version(session)
        session.approve_gate_a()
        session.approve_gate_b()
        session.reset_gates()
        assert session.plan.gate_a_approved is False
        assert session.plan.gate_b_approved is False
        assert session.plan.status == PlanStatus.DRAFT

    def test_regeneration_keeps_gates(self, session):
        _with_short_version(session)
        session.approve_gate_a()
        _with_short_version(session)
        assert session.plan.gate_a_approved is True


class TestGeneratedContent:

    def test_short_version_replaces_and_resets_edited_copy(self, session):
        _with_short_version(session)
        edited = session.plan.short_version.model_copy(update={"title": "Eigener Titel"})
        session.set_edited_short_version(edited)
        assert session.plan.status == PlanStatus.EDITED
        assert session.edited_short_version.title == "Eigener Titel"

        _with_short_version(session)
        assert session.edited_short_version.title == session.plan.short_version.title
        assert session.plan.status == PlanStatus.AI_GENERATED

    def test_reflection_notes_need_detail_plan(self, session):
        with pytest.raises(ArtifactMissingError):
            session.set_reflection_notes("Gut gelaufen")
        session.set_detail_plan(FallbackGenerator.detail_plan(session.plan))
        session.set_reflection_notes("Gut gelaufen")
        assert session.plan.detail_plan.reflection_notes == "Gut gelaufen"


class TestCurriculumMappings:

    def test_duplicate_mapping_ignored(self, session):
        mapping = CurriculumEngine.create_mapping(get_competency("lp21-nt.5.1"), 0.8)
        assert session.add_curriculum_mapping(mapping) is True
        assert session.add_curriculum_mapping(mapping) is False
        assert len(session.plan.curriculum_mappings) == 1

    def test_confirm_keeps_score(self, session):
        session.add_curriculum_mapping(CurriculumEngine.create_mapping(get_competency("lp21-nt.5.1"), 0.8))
        session.confirm_mapping("lp21-nt.5.1")
        mapping = session.plan.curriculum_mappings[0]
        assert mapping.confirmed is True
        assert mapping.confidence_score == 0.8

    def test_unknown_mapping(self, session):
        with pytest.raises(UnknownCompetencyError):
            session.remove_curriculum_mapping("lp21-nope")


class TestHistory:

    def test_undo_redo_round_trip(self, session):
        session.update_context(subject="Chemie")
        assert session.can_undo is True
        assert session.undo() is True
        assert session.plan.subject == "Physik"
        assert session.can_redo is True
        assert session.redo() is True
        assert session.plan.subject == "Chemie"

    def test_new_mutation_clears_redo(self, session):
        session.update_context(subject="Chemie")
        session.undo()
        session.update_context(subject="Biologie")
        assert session.can_redo is False

    def test_undo_steps_back_from_locked_detail_step(self, session):
        _with_short_version(session)
        session.approve_gate_a()
        session.approve_gate_b()
        assert session.set_step(8) is True
        session.validation_errors = ["alt"]

        assert session.undo() is True

        assert session.plan.gate_b_approved is False
        assert session.current_step == 7
        assert session.current_step in session.accessible_steps()
        assert session.validation_errors == []

        assert session.redo() is True
        assert session.plan.gate_b_approved is True
        assert session.current_step == 7

    def test_undo_of_short_version_leaves_review_steps(self, session):
        _with_short_version(session)
        assert session.set_step(6) is True
        session.undo()
        assert session.plan.short_version is None
        assert session.current_step == 4

    def test_undo_on_empty_history(self):
        session = PlanningSession()
        assert session.undo() is False
        assert session.redo() is False

    def test_history_is_bounded(self):
        history = SnapshotHistory(limit=3)
        for i in range(5):
            history.record(Plan(subject=str(i)))
        assert len(history) == 3
        assert history.undo(Plan()).subject == "4"

    def test_snapshots_are_independent_copies(self, session):
        session.update_context(subject="Chemie")
        session.plan.goals.append("nachträglich")
        session.undo()
        assert "nachträglich" not in session.plan.goals

    def test_reset_clears_everything(self, session):
        session.update_context(subject="Chemie")
        session.set_step(3)
        session.reset()
        assert session.plan == Plan()
        assert session.current_step == 1
        assert session.can_undo is False


class TestRestoreAndGuard:

    def test_restore_clamps_step(self, detailed_plan):
        session = PlanningSession()
        session.restore(detailed_plan, 42)
        assert session.current_step == 9
        assert session.edited_short_version == detailed_plan.short_version
        assert session.can_undo is False

    def test_one_generation_at_a_time(self, session):
        with session.generation():
            assert session.generating is True
            with pytest.raises(GenerationInProgressError):
                with session.generation():
                    pass
        assert session.generating is False

    def test_cancel_sets_abort_signal(self, session):
        assert session.cancel_generation() is False
        with session.generation() as abort:
            assert session.cancel_generation() is True
            assert abort.is_set()
