"""
Shared AI types - artifact kinds and the generation result.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from src.pedagogy.plan import DetailPlan, SequenceSkeleton, ShortVersion


Artifact = Union[ShortVersion, DetailPlan, SequenceSkeleton]


class ArtifactKind(str, Enum):
    """What the generative model is asked to produce."""
    SHORT = "short"
    DETAIL = "detail"
    SEQUENCE = "sequence"
    REVISE = "revise"


class GenerationErrorKind(str, Enum):
    """Failure classes used for user messaging."""
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    GENERIC = "generic"


class GenerationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class GenerationSource(str, Enum):
    AI = "ai"
    FALLBACK = "fallback"


class GenerationResult(BaseModel):
    """Outcome of one generation call. Service failures are values, not exceptions."""

    status: GenerationStatus
    kind: ArtifactKind
    artifact: Optional[Artifact] = None
    error_kind: Optional[GenerationErrorKind] = None
    error_message: Optional[str] = None
    attempts: int = 0
    model_used: str = "none"

    @classmethod
    def succeeded(cls, kind: ArtifactKind, artifact: Artifact, attempts: int, model: str) -> "GenerationResult":
        return cls(
            status=GenerationStatus.SUCCEEDED,
            kind=kind,
            artifact=artifact,
            attempts=attempts,
            model_used=model,
        )

    @classmethod
    def failed(
        cls,
        kind: ArtifactKind,
        error_kind: GenerationErrorKind,
        message: str,
        attempts: int = 0,
    ) -> "GenerationResult":
        return cls(
            status=GenerationStatus.FAILED,
            kind=kind,
            error_kind=error_kind,
            error_message=message,
            attempts=attempts,
        )

    @classmethod
    def cancelled(cls, kind: ArtifactKind, attempts: int = 0) -> "GenerationResult":
        return cls(status=GenerationStatus.CANCELLED, kind=kind, attempts=attempts)
