"""
Content Generation Service - model first, deterministic fallback second.

Each operation:
1. claims the session's generation guard (one generation at a time)
2. asks the GenerationClient for the artifact
3. on failure builds it with the FallbackGenerator
4. assigns the artifact to the session in a single mutation

A cancelled generation assigns nothing.
"""

import re
from typing import List, Optional

from pydantic import BaseModel

from src.ai.fallback_generator import FallbackGenerator, lesson_scoped_plan
from src.ai.generation_client import GenerationClient
from src.ai.prompts import build_prompt_context
from src.ai.types import (
    Artifact,
    ArtifactKind,
    GenerationErrorKind,
    GenerationResult,
    GenerationSource,
    GenerationStatus,
)
from src.engines.differentiation import DifferentiationEngine
from src.exceptions import ArtifactMissingError, LessonIndexError
from src.logging_config import get_logger
from src.orchestration.planning_session import PlanningSession
from src.pedagogy.plan import (
    DetailPlan,
    Differentiation,
    PhaseSummary,
    Plan,
    SequenceSkeleton,
    ShortVersion,
)
from src.pedagogy.types import PlanMode

logger = get_logger(__name__)

DEFAULT_REVISION_INSTRUCTION = (
    "Überarbeite die Kurzversion basierend auf den Änderungen der Lehrperson. "
    "Verbessere Formulierungen und Kohärenz."
)

FALLBACK_NOTICES = {
    GenerationErrorKind.RATE_LIMITED: "Hinweis: KI-Limit erreicht. Plan wurde mit verbesserter Vorlage erstellt.",
    GenerationErrorKind.TIMEOUT: (
        "Hinweis: Die KI hat nicht rechtzeitig geantwortet. Plan wurde mit verbesserter Vorlage erstellt."
    ),
    GenerationErrorKind.GENERIC: (
        "Hinweis: KI nicht verfügbar. Ein strukturierter Plan wurde trotzdem erstellt (Fallback-Logik)."
    ),
}

_LESSON_PREFIX = re.compile(r"^Lektion \d+:\s*")


class GenerationOutcome(BaseModel):
    """What a generation operation did to the session."""

    kind: ArtifactKind
    status: GenerationStatus
    source: Optional[GenerationSource] = None
    notice: Optional[str] = None
    error_kind: Optional[GenerationErrorKind] = None
    lesson_index: Optional[int] = None

    @property
    def applied(self) -> bool:
        return self.status != GenerationStatus.CANCELLED


def sequence_short_version(plan: Plan, skeleton: SequenceSkeleton) -> ShortVersion:
    """Short version summarising a sequence: one summary row per lesson."""
    return ShortVersion(
        title=plan.title or plan.subject or "Unterrichtssequenz",
        overview=skeleton.progression,
        goals=list(skeleton.overall_goals),
        phases_summary=[
            PhaseSummary(
                name=f"Lektion {lesson.lesson_number}: {_LESSON_PREFIX.sub('', lesson.title)}",
                duration_minutes=lesson.duration_minutes,
                description=lesson.focus,
            )
            for lesson in skeleton.lessons
        ],
        differentiation_summary=Differentiation(
            niveau_a="Scaffolding und Hilfsstrukturen für alle Lektionen.",
            niveau_b="Standardausführung gemäss Sequenzplanung.",
            niveau_c="Erweiterte Aufgaben und Vertiefung.",
        ),
    )


class ContentGenerationService:
    """Generation operations over a PlanningSession."""

    def __init__(self, client: Optional[GenerationClient] = None):
        self.client = client or GenerationClient()

    # ── short version ────────────────────────────────────────────────────

    async def generate_short(self, session: PlanningSession) -> GenerationOutcome:
        """Short version; in sequence mode the skeleton plus its summary."""
        with session.generation() as abort:
            plan = session.plan
            if plan.mode == PlanMode.SEQUENCE:
                result = await self.client.generate(
                    ArtifactKind.SEQUENCE, build_prompt_context(ArtifactKind.SEQUENCE, plan), abort
                )
                if result.status == GenerationStatus.CANCELLED:
                    return self._cancelled(result)
                skeleton = self._artifact_or(result, lambda: FallbackGenerator.sequence_skeleton(plan))
                session.set_sequence_skeleton(skeleton, sequence_short_version(plan, skeleton))
                return self._finished(result)

            result = await self.client.generate(
                ArtifactKind.SHORT, build_prompt_context(ArtifactKind.SHORT, plan), abort
            )
            if result.status == GenerationStatus.CANCELLED:
                return self._cancelled(result)
            session.set_short_version(self._artifact_or(result, lambda: FallbackGenerator.short_version(plan)))
            return self._finished(result)

    async def revise_short(self, session: PlanningSession, instruction: Optional[str] = None) -> GenerationOutcome:
        """
        Revise the teacher-edited short version.

        Raises:
            ArtifactMissingError: no short version yet
        """
        current = session.edited_short_version or session.plan.short_version
        if current is None:
            raise ArtifactMissingError("Es gibt noch keine Kurzversion.")
        instruction = (instruction or "").strip() or DEFAULT_REVISION_INSTRUCTION

        with session.generation() as abort:
            context = build_prompt_context(ArtifactKind.REVISE, session.plan, current=current, instruction=instruction)
            result = await self.client.generate(ArtifactKind.REVISE, context, abort)
            if result.status == GenerationStatus.CANCELLED:
                return self._cancelled(result)
            session.apply_revision(
                self._artifact_or(result, lambda: FallbackGenerator.revise_short_version(current, instruction))
            )
            return self._finished(result)

    # ── detail plan ──────────────────────────────────────────────────────

    async def generate_detail(self, session: PlanningSession) -> GenerationOutcome:
        """
        Detail plan for a single lesson.

        Raises:
            ArtifactMissingError: the short version is not approved yet
        """
        if not session.plan.gate_b_approved:
            raise ArtifactMissingError("Detailplanung erst nach Freigabe der Kurzversion möglich.")

        with session.generation() as abort:
            plan = session.plan
            result = await self.client.generate(
                ArtifactKind.DETAIL, build_prompt_context(ArtifactKind.DETAIL, plan), abort
            )
            if result.status == GenerationStatus.CANCELLED:
                return self._cancelled(result)
            detail = self._artifact_or(result, lambda: FallbackGenerator.detail_plan(plan))
            session.set_detail_plan(self._with_differentiation(detail, plan))
            return self._finished(result)

    async def refine_detail(self, session: PlanningSession, instruction: str) -> GenerationOutcome:
        """
        Adjust the existing detail plan according to a teacher instruction.

        Raises:
            ArtifactMissingError: no detail plan yet
        """
        current = session.plan.detail_plan
        if current is None:
            raise ArtifactMissingError("Es gibt noch keine Detailplanung.")

        with session.generation() as abort:
            plan = session.plan
            context = build_prompt_context(
                ArtifactKind.DETAIL, plan, instruction=instruction, current_detail=current
            )
            result = await self.client.generate(ArtifactKind.DETAIL, context, abort)
            if result.status == GenerationStatus.CANCELLED:
                return self._cancelled(result)
            refined = self._artifact_or(result, lambda: FallbackGenerator.refine_detail_plan(current, instruction))
            session.set_detail_plan(self._with_differentiation(refined, plan))
            return self._finished(result)

    # ── sequence lessons ─────────────────────────────────────────────────

    async def generate_lesson_detail(self, session: PlanningSession, index: int) -> GenerationOutcome:
        """
        Detail plan for lesson ``index`` of the sequence.

        Raises:
            ArtifactMissingError: no skeleton yet
            LessonIndexError: no lesson at ``index``
        """
        self._check_lesson(session.plan, index)
        with session.generation() as abort:
            return await self._lesson_detail(session, index, abort)

    async def generate_all_lessons(self, session: PlanningSession) -> List[GenerationOutcome]:
        """Detail plans for every lesson that has none yet; stops when cancelled."""
        skeleton = session.plan.sequence_skeleton
        if skeleton is None:
            raise ArtifactMissingError("Es gibt noch kein Sequenz-Skelett.")

        outcomes = []
        with session.generation() as abort:
            pending = [i for i, lesson in enumerate(skeleton.lessons) if lesson.detail_plan is None]
            for index in pending:
                outcome = await self._lesson_detail(session, index, abort)
                outcomes.append(outcome)
                if not outcome.applied:
                    break
        return outcomes

    def repair_skeleton(self, session: PlanningSession) -> Plan:
        """Replace the skeleton with a freshly generated deterministic one."""
        plan = session.plan
        skeleton = FallbackGenerator.sequence_skeleton(plan)
        logger.info("Sequence skeleton repaired", extra={"lessons": len(skeleton.lessons)})
        return session.set_sequence_skeleton(skeleton, sequence_short_version(plan, skeleton))

    async def _lesson_detail(self, session: PlanningSession, index: int, abort) -> GenerationOutcome:
        scoped = lesson_scoped_plan(session.plan, index)
        if scoped is None:
            raise LessonIndexError(index)
        result = await self.client.generate(
            ArtifactKind.DETAIL, build_prompt_context(ArtifactKind.DETAIL, scoped), abort
        )
        if result.status == GenerationStatus.CANCELLED:
            return self._cancelled(result, lesson_index=index)
        detail = self._artifact_or(result, lambda: FallbackGenerator.detail_plan(scoped))
        session.set_lesson_detail(index, self._with_differentiation(detail, scoped))
        return self._finished(result, lesson_index=index)

    @staticmethod
    def _check_lesson(plan: Plan, index: int) -> None:
        skeleton = plan.sequence_skeleton
        if skeleton is None:
            raise ArtifactMissingError("Es gibt noch kein Sequenz-Skelett.")
        if index < 0 or index >= len(skeleton.lessons):
            raise LessonIndexError(index)

    # ── helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _artifact_or(result: GenerationResult, fallback) -> Artifact:
        if result.status == GenerationStatus.SUCCEEDED and result.artifact is not None:
            return result.artifact
        return fallback()

    @staticmethod
    def _with_differentiation(detail: DetailPlan, plan: Plan) -> DetailPlan:
        """Fill in differentiation for phases the model left without one."""
        missing = [p for p in detail.phases if p.differentiation is None]
        if not missing:
            return detail
        generated = iter(DifferentiationEngine.differentiate_phases(missing, plan))
        phases = [next(generated) if p.differentiation is None else p for p in detail.phases]
        return detail.model_copy(update={"phases": phases})

    @staticmethod
    def _finished(result: GenerationResult, lesson_index: Optional[int] = None) -> GenerationOutcome:
        if result.status == GenerationStatus.SUCCEEDED:
            outcome = GenerationOutcome(
                kind=result.kind,
                status=result.status,
                source=GenerationSource.AI,
                lesson_index=lesson_index,
            )
        else:
            error_kind = result.error_kind or GenerationErrorKind.GENERIC
            outcome = GenerationOutcome(
                kind=result.kind,
                status=result.status,
                source=GenerationSource.FALLBACK,
                notice=FALLBACK_NOTICES[error_kind],
                error_kind=error_kind,
                lesson_index=lesson_index,
            )
        logger.info(
            "Generation applied",
            extra={
                "kind": result.kind.value,
                "source": outcome.source.value,
                "attempts": result.attempts,
                "lesson_index": lesson_index,
            },
        )
        return outcome

    @staticmethod
    def _cancelled(result: GenerationResult, lesson_index: Optional[int] = None) -> GenerationOutcome:
        logger.info("Generation cancelled", extra={"kind": result.kind.value, "attempts": result.attempts})
        return GenerationOutcome(kind=result.kind, status=result.status, lesson_index=lesson_index)
