"""
PlanningSession - the application-state controller of the wizard.

Owns the current Plan, the current step, the undo/redo history and the
in-flight generation flag. Every plan mutation:
1. records the previous snapshot in the history (clears redo)
2. replaces the plan with a new, fully validated instance

No caller ever observes a half-applied update.
"""

import asyncio
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from pydantic import ValidationError

from src.exceptions import (
    ArtifactMissingError,
    GenerationInProgressError,
    GoalIndexError,
    InvalidContextError,
    LessonIndexError,
    UnknownCompetencyError,
)
from src.logging_config import get_logger
from src.orchestration.history import SnapshotHistory
from src.orchestration.state_machine import (
    FIRST_STEP,
    TOTAL_STEPS,
    StepValidation,
    accessible_steps,
    is_step_accessible,
    validate_step,
)
from src.pedagogy.plan import (
    CurriculumMapping,
    DetailPlan,
    DidacticSlots,
    Plan,
    SequenceSkeleton,
    ShortVersion,
    create_initial_plan,
)
from src.pedagogy.types import LearningMode, PlanStatus, QualityLayer, StructureModel

logger = get_logger(__name__)

CONTEXT_FIELDS = frozenset({
    "mode",
    "title",
    "subject",
    "topic_description",
    "level",
    "duration_minutes",
    "lesson_count",
    "special_needs",
    "learning_goal_type",
})
PROFILE_FIELDS = frozenset({"class_size", "heterogeneity", "language_level", "notes"})

_SLOT_TYPES = {1: StructureModel, 2: LearningMode, 3: QualityLayer}


class PlanningSession:
    """Single planning session; one per process."""

    def __init__(
        self,
        plan: Optional[Plan] = None,
        current_step: int = FIRST_STEP,
        history_limit: int = 50,
    ):
        self.plan: Plan = plan or create_initial_plan()
        self.current_step: int = current_step
        self.validation_errors: List[str] = []
        self.edited_short_version: Optional[ShortVersion] = (
            self.plan.short_version.model_copy(deep=True) if self.plan.short_version else None
        )
        self.history = SnapshotHistory(limit=history_limit)
        self.generating = False
        self.updated_at = datetime.now(timezone.utc)
        self._abort: Optional[asyncio.Event] = None

    # ── core mutation ─────────────────────────────────────────────────────

    def _commit(self, new_plan: Plan) -> Plan:
        self.history.record(self.plan)
        self.plan = new_plan
        self.updated_at = datetime.now(timezone.utc)
        return self.plan

    def _update(self, mutate: Callable[[Dict[str, Any]], None]) -> Plan:
        """Apply ``mutate`` to a dump of the plan and commit the re-validated result."""
        data = self.plan.model_dump()
        mutate(data)
        return self._commit(Plan.model_validate(data))

    # ── navigation ────────────────────────────────────────────────────────

    def set_step(self, step: int) -> bool:
        """Jump to ``step``. Inaccessible steps leave the session unchanged."""
        if not is_step_accessible(step, self.plan):
            return False
        self.current_step = step
        self.validation_errors = []
        return True

    def next_step(self) -> StepValidation:
        """Advance if the current step validates; otherwise keep the reasons."""
        result = validate_step(self.current_step, self.plan)
        if not result.valid:
            self.validation_errors = result.errors
            return result
        self.validation_errors = []
        target = self.current_step + 1
        if target <= TOTAL_STEPS and is_step_accessible(target, self.plan):
            self.current_step = target
        return result

    def prev_step(self) -> bool:
        if self.current_step <= FIRST_STEP:
            return False
        self.current_step -= 1
        self.validation_errors = []
        return True

    def accessible_steps(self) -> List[int]:
        return accessible_steps(self.plan)

    # ── context, goals, slots ─────────────────────────────────────────────

    def update_context(self, **fields: Any) -> Plan:
        unknown = set(fields) - CONTEXT_FIELDS - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown context fields: {sorted(unknown)}")

        def mutate(data: Dict[str, Any]) -> None:
            for key, value in fields.items():
                if key in PROFILE_FIELDS:
                    data["class_profile"][key] = value
                else:
                    data[key] = value

        try:
            return self._update(mutate)
        except ValidationError as exc:
            errors = [
                {
                    "field": ".".join(str(loc) for loc in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
            raise InvalidContextError(errors) from exc

    def add_goal(self) -> Plan:
        return self._update(lambda data: data["goals"].append(""))

    def update_goal(self, index: int, text: str) -> Plan:
        self._check_goal_index(index)

        def mutate(data: Dict[str, Any]) -> None:
            data["goals"][index] = text

        return self._update(mutate)

    def remove_goal(self, index: int) -> Plan:
        """Remove a goal; the last remaining goal is kept."""
        self._check_goal_index(index)
        if len(self.plan.goals) <= 1:
            return self.plan
        return self._update(lambda data: data["goals"].pop(index))

    def set_goals(self, goals: List[str]) -> Plan:
        def mutate(data: Dict[str, Any]) -> None:
            data["goals"] = list(goals) or [""]

        return self._update(mutate)

    def _check_goal_index(self, index: int) -> None:
        if index < 0 or index >= len(self.plan.goals):
            raise GoalIndexError(index)

    def set_slot(self, slot: int, value: Optional[str]) -> Plan:
        if slot not in _SLOT_TYPES:
            raise ValueError(f"Unknown didactic slot: {slot}")
        typed = _SLOT_TYPES[slot](value) if value is not None else None

        def mutate(data: Dict[str, Any]) -> None:
            data["didactic_slots"][f"slot{slot}"] = typed

        return self._update(mutate)

    def set_slots(self, slots: DidacticSlots) -> Plan:
        def mutate(data: Dict[str, Any]) -> None:
            data["didactic_slots"] = slots.model_dump()

        return self._update(mutate)

    # ── curriculum mappings ───────────────────────────────────────────────

    def add_curriculum_mapping(self, mapping: CurriculumMapping) -> bool:
        """Attach a competency. Returns False (and records nothing) for duplicates."""
        if any(m.competency_id == mapping.competency_id for m in self.plan.curriculum_mappings):
            return False
        self._update(lambda data: data["curriculum_mappings"].append(mapping.model_dump()))
        return True

    def remove_curriculum_mapping(self, competency_id: str) -> Plan:
        self._require_mapping(competency_id)

        def mutate(data: Dict[str, Any]) -> None:
            data["curriculum_mappings"] = [
                m for m in data["curriculum_mappings"] if m["competency_id"] != competency_id
            ]

        return self._update(mutate)

    def confirm_mapping(self, competency_id: str) -> Plan:
        """Mark a mapping as confirmed; its confidence score is left as is."""
        self._require_mapping(competency_id)

        def mutate(data: Dict[str, Any]) -> None:
            for m in data["curriculum_mappings"]:
                if m["competency_id"] == competency_id:
                    m["confirmed"] = True

        return self._update(mutate)

    def _require_mapping(self, competency_id: str) -> None:
        if not any(m.competency_id == competency_id for m in self.plan.curriculum_mappings):
            raise UnknownCompetencyError(competency_id)

    # ── generated content ────────────────────────────────────────────────

    def set_short_version(self, short_version: ShortVersion) -> Plan:
        """Replace the short version (never appends) and reset the editable copy."""
        def mutate(data: Dict[str, Any]) -> None:
            data["short_version"] = short_version.model_dump()
            data["status"] = PlanStatus.AI_GENERATED

        plan = self._update(mutate)
        self.edited_short_version = short_version.model_copy(deep=True)
        return plan

    def set_edited_short_version(self, short_version: ShortVersion) -> Plan:
        self._require_short_version()
        plan = self._update(lambda data: data.update(status=PlanStatus.EDITED))
        self.edited_short_version = short_version.model_copy(deep=True)
        return plan

    def apply_revision(self, short_version: ShortVersion) -> Plan:
        """Store a revised short version, status ``revised``."""
        def mutate(data: Dict[str, Any]) -> None:
            data["short_version"] = short_version.model_dump()
            data["status"] = PlanStatus.REVISED

        plan = self._update(mutate)
        self.edited_short_version = short_version.model_copy(deep=True)
        return plan

    def set_detail_plan(self, detail_plan: DetailPlan) -> Plan:
        def mutate(data: Dict[str, Any]) -> None:
            data["detail_plan"] = detail_plan.model_dump()
            data["status"] = PlanStatus.DETAIL_READY

        return self._update(mutate)

    def set_sequence_skeleton(
        self,
        skeleton: SequenceSkeleton,
        short_version: Optional[ShortVersion] = None,
    ) -> Plan:
        """Replace the skeleton, optionally together with its derived short version."""
        def mutate(data: Dict[str, Any]) -> None:
            data["sequence_skeleton"] = skeleton.model_dump()
            if short_version is not None:
                data["short_version"] = short_version.model_dump()
                data["status"] = PlanStatus.AI_GENERATED

        plan = self._update(mutate)
        if short_version is not None:
            self.edited_short_version = short_version.model_copy(deep=True)
        return plan

    def set_lesson_detail(self, index: int, detail_plan: DetailPlan) -> Plan:
        skeleton = self.plan.sequence_skeleton
        if skeleton is None:
            raise ArtifactMissingError("Es gibt noch kein Sequenz-Skelett.")
        if index < 0 or index >= len(skeleton.lessons):
            raise LessonIndexError(index)

        def mutate(data: Dict[str, Any]) -> None:
            data["sequence_skeleton"]["lessons"][index]["detail_plan"] = detail_plan.model_dump()

        return self._update(mutate)

    def set_reflection_notes(self, notes: str) -> Plan:
        if self.plan.detail_plan is None:
            raise ArtifactMissingError("Es gibt noch keine Detailplanung.")

        def mutate(data: Dict[str, Any]) -> None:
            data["detail_plan"]["reflection_notes"] = notes

        return self._update(mutate)

    def mark_exported(self) -> Plan:
        return self._update(lambda data: data.update(status=PlanStatus.EXPORTED))

    def _require_short_version(self) -> None:
        if self.plan.short_version is None:
            raise ArtifactMissingError("Es gibt noch keine Kurzversion.")

    # ── gates ─────────────────────────────────────────────────────────────

    def approve_gate_a(self) -> Plan:
        self._require_short_version()
        plan = self._update(lambda data: data.update(gate_a_approved=True, status=PlanStatus.EDITED))
        logger.info("Gate A approved", extra={"mode": plan.mode.value})
        return plan

    def approve_gate_b(self) -> Plan:
        self._require_short_version()
        plan = self._update(lambda data: data.update(gate_b_approved=True, status=PlanStatus.APPROVED))
        logger.info("Gate B approved", extra={"mode": plan.mode.value})
        return plan

    def reset_gates(self) -> Plan:
        plan = self._update(
            lambda data: data.update(
                gate_a_approved=False,
                gate_b_approved=False,
                status=PlanStatus.DRAFT,
            )
        )
        logger.info("Gates reset")
        return plan

    # ── history and reset ─────────────────────────────────────────────────

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> bool:
        previous = self.history.undo(self.plan)
        if previous is None:
            return False
        self.plan = previous
        self._settle_step()
        return True

    def redo(self) -> bool:
        following = self.history.redo(self.plan)
        if following is None:
            return False
        self.plan = following
        self._settle_step()
        return True

    def _settle_step(self) -> None:
        """Step back to the nearest step the restored plan still allows."""
        step = self.current_step
        while step > FIRST_STEP and not is_step_accessible(step, self.plan):
            step -= 1
        if step != self.current_step:
            logger.info("Step moved after history change", extra={"from_step": self.current_step, "to_step": step})
        self.current_step = step
        self.validation_errors = []

    def reset(self) -> Plan:
        """Fresh default plan at step 1 with empty history."""
        self.plan = create_initial_plan()
        self.current_step = FIRST_STEP
        self.validation_errors = []
        self.edited_short_version = None
        self.history.clear()
        self.updated_at = datetime.now(timezone.utc)
        return self.plan

    def restore(self, plan: Plan, current_step: int) -> None:
        """Resume from a persisted draft. History starts empty."""
        self.plan = plan
        self.current_step = min(max(current_step, FIRST_STEP), TOTAL_STEPS)
        self.validation_errors = []
        self.edited_short_version = (
            plan.short_version.model_copy(deep=True) if plan.short_version else None
        )
        self.history.clear()

    # ── generation guard ──────────────────────────────────────────────────

    @contextmanager
    def generation(self) -> Iterator[asyncio.Event]:
        """
        Mark a generation as in flight and hand out its abort signal.

        Raises:
            GenerationInProgressError: another generation is still running.
        """
        if self.generating:
            raise GenerationInProgressError()
        self.generating = True
        self._abort = asyncio.Event()
        try:
            yield self._abort
        finally:
            self.generating = False
            self._abort = None

    def cancel_generation(self) -> bool:
        if self._abort is None:
            return False
        self._abort.set()
        logger.info("Generation cancel requested")
        return True
