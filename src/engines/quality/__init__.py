"""
Quality Engine - advisory plan checks and didactic compatibility.
"""

from src.engines.quality.compatibility_checker import CompatibilityChecker
from src.engines.quality.quality_checker import (
    DIGITAL_KEYWORDS,
    QualityChecker,
    QualityThresholds,
    sort_by_severity,
    uses_digital_tools,
)

__all__ = [
    "CompatibilityChecker",
    "DIGITAL_KEYWORDS",
    "QualityChecker",
    "QualityThresholds",
    "sort_by_severity",
    "uses_digital_tools",
]
