"""
Differentiation Engine - Niveau A/B/C and language supports per phase.
"""

from src.engines.differentiation.differentiation_engine import (
    DifferentiationContext,
    DifferentiationEngine,
    PhaseInput,
    PhaseType,
    PHASE_TYPE_PATTERNS,
)

__all__ = [
    "DifferentiationContext",
    "DifferentiationEngine",
    "PhaseInput",
    "PhaseType",
    "PHASE_TYPE_PATTERNS",
]
