"""Orchestration layer - step gating, undo/redo history, planning session."""

from src.orchestration.history import SnapshotHistory
from src.orchestration.planning_session import PlanningSession
from src.orchestration.state_machine import (
    TOTAL_STEPS,
    StepValidation,
    accessible_steps,
    is_step_accessible,
    validate_step,
)

__all__ = [
    "PlanningSession",
    "SnapshotHistory",
    "StepValidation",
    "TOTAL_STEPS",
    "accessible_steps",
    "is_step_accessible",
    "validate_step",
]
