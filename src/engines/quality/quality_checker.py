"""
Quality Check Engine - advisory checks over a plan snapshot.

Checks:
- Time reality (detail phases vs. lesson duration, very short phases)
- Short-version phase summary vs. lesson duration
- Workload (phase count, social-form changes)
- Language level (language-sensitive layer for weak language levels)
- Resources (digital tools without an analog Plan B)

Results never block a workflow transition.
"""

from typing import List, Optional, Sequence

from pydantic import BaseModel

from src.config import Settings
from src.pedagogy.plan import DetailPlan, Phase, Plan, QualityWarning
from src.pedagogy.types import (
    LOW_LANGUAGE_LEVELS,
    SEVERITY_RANK,
    Heterogeneity,
    PlanMode,
    QualityLayer,
    Severity,
    WarningType,
)


DIGITAL_KEYWORDS: List[str] = [
    "tablet",
    "laptop",
    "computer",
    "digital",
    "app",
    "online",
    "internet",
    "beamer",
    "smartboard",
]


class QualityThresholds(BaseModel):
    """Heuristic limits; defaults are the classroom rules of thumb."""

    overshoot_tolerance_minutes: int = 2
    undershoot_tolerance_minutes: int = 5
    min_phase_minutes: int = 3
    summary_tolerance_minutes: int = 2
    max_phases: int = 6
    max_social_forms: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> "QualityThresholds":
        return cls(
            overshoot_tolerance_minutes=settings.quality_overshoot_tolerance_minutes,
            undershoot_tolerance_minutes=settings.quality_undershoot_tolerance_minutes,
            min_phase_minutes=settings.quality_min_phase_minutes,
            summary_tolerance_minutes=settings.quality_summary_tolerance_minutes,
            max_phases=settings.quality_max_phases,
            max_social_forms=settings.quality_max_social_forms,
        )


def sort_by_severity(warnings: Sequence[QualityWarning]) -> List[QualityWarning]:
    """Errors, then warnings, then info. Stable within a severity."""
    return sorted(warnings, key=lambda w: SEVERITY_RANK[w.severity])


class QualityChecker:
    """Runs the full battery of quality checks."""

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        self.thresholds = thresholds or QualityThresholds()

    def run(self, plan: Plan) -> List[QualityWarning]:
        """All checks over ``plan``, sorted by severity."""
        warnings: List[QualityWarning] = []

        if plan.detail_plan and plan.detail_plan.phases:
            warnings.extend(self.check_time_reality(plan.detail_plan.phases, plan.duration_minutes))
            warnings.extend(self.check_workload(plan.detail_plan.phases))

        if plan.mode == PlanMode.SEQUENCE and plan.sequence_skeleton:
            for lesson in plan.sequence_skeleton.lessons:
                if lesson.detail_plan and lesson.detail_plan.phases:
                    prefix = f"Lektion {lesson.lesson_number}: "
                    lesson_warnings = self.check_time_reality(
                        lesson.detail_plan.phases, lesson.duration_minutes
                    ) + self.check_workload(lesson.detail_plan.phases)
                    warnings.extend(_prefixed(lesson_warnings, prefix))

        warnings.extend(self.check_short_version_timing(plan))
        warnings.extend(self.check_language_level(plan))
        warnings.extend(self.check_resources(plan))

        return sort_by_severity(warnings)

    def check_time_reality(self, phases: Sequence[Phase], total_duration: int) -> List[QualityWarning]:
        t = self.thresholds
        warnings: List[QualityWarning] = []
        phase_total = sum(p.duration_minutes for p in phases)

        if phase_total > total_duration + t.overshoot_tolerance_minutes:
            warnings.append(
                QualityWarning(
                    type=WarningType.TIME,
                    severity=Severity.ERROR,
                    message=(
                        f"Phasen dauern insgesamt {phase_total} Min, aber nur {total_duration} Min "
                        f"verfügbar ({phase_total - total_duration} Min zu viel)."
                    ),
                    suggestion=f"Kürze Phasen um {phase_total - total_duration} Minuten.",
                )
            )
        elif phase_total < total_duration - t.undershoot_tolerance_minutes:
            warnings.append(
                QualityWarning(
                    type=WarningType.TIME,
                    severity=Severity.WARNING,
                    message=(
                        f"{total_duration - phase_total} Min ungenutzt. Überlege, ob du Phasen "
                        "verlängerst oder eine Pufferzeit einplanst."
                    ),
                )
            )

        for phase in phases:
            if phase.duration_minutes < t.min_phase_minutes:
                warnings.append(
                    QualityWarning(
                        type=WarningType.TIME,
                        severity=Severity.WARNING,
                        message=(
                            f'Phase "{phase.name}" hat nur {phase.duration_minutes} Min, '
                            "zu kurz für sinnvolle Arbeit."
                        ),
                        suggestion="Kombiniere kurze Phasen oder verlängere sie auf mindestens 5 Minuten.",
                    )
                )
        return warnings

    def check_short_version_timing(self, plan: Plan) -> List[QualityWarning]:
        """
        Summary durations against the planned time.

        A sequence summary lists whole lessons, so it is compared against
        ``lesson_count * duration_minutes``.
        """
        if not plan.short_version or not plan.short_version.phases_summary:
            return []
        total = sum(p.duration_minutes for p in plan.short_version.phases_summary)
        expected = plan.duration_minutes
        if plan.mode == PlanMode.SEQUENCE:
            expected = plan.lesson_count * plan.duration_minutes
        if abs(total - expected) <= self.thresholds.summary_tolerance_minutes:
            return []
        return [
            QualityWarning(
                type=WarningType.TIME,
                severity=Severity.WARNING,
                message=f"Phasenzeiten ({total} Min) passen nicht zur Gesamtdauer ({expected} Min).",
                suggestion=(
                    f"Passe die Phasenzeiten an, sodass sie insgesamt {expected} Minuten ergeben."
                ),
            )
        ]

    def check_language_level(self, plan: Plan) -> List[QualityWarning]:
        profile = plan.class_profile
        if profile.language_level not in LOW_LANGUAGE_LEVELS or profile.heterogeneity == Heterogeneity.LOW:
            return []

        warnings: List[QualityWarning] = []
        if plan.didactic_slots.slot3 != QualityLayer.LANGUAGE_SENSITIVE:
            warnings.append(
                QualityWarning(
                    type=WarningType.LANGUAGE,
                    severity=Severity.WARNING,
                    message=(
                        f"Sprachstand {profile.language_level.value.upper()} mit Heterogenität: "
                        "sprachsensible Materialien empfohlen."
                    ),
                    suggestion=(
                        'Wähle "Sprachsensibler Unterricht" als Qualitätslayer oder stelle sicher, '
                        "dass Satzstarter und Wortlisten enthalten sind."
                    ),
                )
            )
        if plan.short_version and not plan.short_version.language_supports:
            warnings.append(
                QualityWarning(
                    type=WarningType.LANGUAGE,
                    severity=Severity.INFO,
                    message="Sprachstützen (Satzstarter, Wortlisten) werden automatisch hinzugefügt.",
                )
            )
        return warnings

    def check_workload(self, phases: Sequence[Phase]) -> List[QualityWarning]:
        t = self.thresholds
        warnings: List[QualityWarning] = []
        if len(phases) > t.max_phases:
            warnings.append(
                QualityWarning(
                    type=WarningType.WORKLOAD,
                    severity=Severity.WARNING,
                    message=f"{len(phases)} Phasen in einer Lektion: hohe kognitive Belastung für SuS.",
                    suggestion="Reduziere auf maximal 5–6 Phasen und priorisiere die wichtigsten Aktivitäten.",
                )
            )
        social_forms = {p.social_form for p in phases if p.social_form}
        if len(social_forms) > t.max_social_forms:
            warnings.append(
                QualityWarning(
                    type=WarningType.WORKLOAD,
                    severity=Severity.INFO,
                    message=f"{len(social_forms)} verschiedene Sozialformen: viele Wechsel können unruhig wirken.",
                    suggestion="Überlege, ob 2–3 Sozialformen reichen.",
                )
            )
        return warnings

    def check_resources(self, plan: Plan) -> List[QualityWarning]:
        warnings: List[QualityWarning] = []
        for detail in _all_detail_plans(plan):
            for phase in detail.phases:
                if uses_digital_tools(phase) and not phase.plan_b_alternative:
                    warnings.append(
                        QualityWarning(
                            type=WarningType.RESOURCES,
                            severity=Severity.WARNING,
                            message=(
                                f'Phase "{phase.name}" nutzt digitale Mittel, aber hat keine '
                                "analoge Alternative (Plan B)."
                            ),
                            suggestion="Ergänze eine analoge Alternative für den Fall, dass die Technik ausfällt.",
                        )
                    )
        return warnings


def uses_digital_tools(phase: Phase) -> bool:
    """True when the description or any material mentions a digital keyword."""
    haystacks = [phase.description.lower()] + [m.lower() for m in (phase.materials or [])]
    return any(keyword in text for keyword in DIGITAL_KEYWORDS for text in haystacks)


def _all_detail_plans(plan: Plan) -> List[DetailPlan]:
    plans: List[DetailPlan] = []
    if plan.detail_plan:
        plans.append(plan.detail_plan)
    if plan.mode == PlanMode.SEQUENCE and plan.sequence_skeleton:
        plans.extend(lesson.detail_plan for lesson in plan.sequence_skeleton.lessons if lesson.detail_plan)
    return plans


def _prefixed(warnings: List[QualityWarning], prefix: str) -> List[QualityWarning]:
    return [w.model_copy(update={"message": prefix + w.message}) for w in warnings]
