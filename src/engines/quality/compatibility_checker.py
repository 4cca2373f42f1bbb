"""
Didactic compatibility check for the three slot choices.
"""

from typing import List, Optional, Sequence

from src.pedagogy.constants import INCOMPATIBLE_COMBOS, IncompatibleCombo
from src.pedagogy.plan import CompatibilityResult, DidacticSlots, QualityWarning
from src.pedagogy.types import Severity, WarningType


class CompatibilityChecker:
    """Looks up known-conflicting slot combinations."""

    MIN_MATCHING_SLOTS = 2

    @classmethod
    def _matching_slots(cls, combo: IncompatibleCombo, slots: DidacticSlots) -> Optional[int]:
        """Number of named slots that match, or None if any named slot differs."""
        matched = 0
        for name in ("slot1", "slot2", "slot3"):
            wanted = getattr(combo, name)
            if wanted is None:
                continue
            if getattr(slots, name) != wanted:
                return None
            matched += 1
        return matched

    @classmethod
    def check(
        cls,
        slots: DidacticSlots,
        combos: Sequence[IncompatibleCombo] = INCOMPATIBLE_COMBOS,
    ) -> CompatibilityResult:
        warnings: List[QualityWarning] = []
        alternatives: List[str] = []
        for combo in combos:
            matched = cls._matching_slots(combo, slots)
            if matched is None or matched < cls.MIN_MATCHING_SLOTS:
                continue
            warnings.append(
                QualityWarning(
                    type=WarningType.COMPATIBILITY,
                    severity=Severity.WARNING,
                    message=combo.reason,
                    suggestion=combo.alternative,
                )
            )
            alternatives.append(combo.alternative)
        return CompatibilityResult(
            compatible=not warnings,
            warnings=warnings,
            alternatives=alternatives,
        )
