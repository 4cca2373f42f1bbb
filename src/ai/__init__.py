"""
Content Generation - model-backed artifacts with deterministic fallback.

All generation flows through ContentGenerationService:
- the model is asked first (GenerationClient)
- any failure falls back to the FallbackGenerator
- cancelled generations leave the plan untouched
"""

from src.ai.types import (
    ArtifactKind,
    GenerationErrorKind,
    GenerationResult,
    GenerationSource,
    GenerationStatus,
)
from src.ai.prompts import (
    DetailPromptContext,
    PromptContext,
    RevisePromptContext,
    SequencePromptContext,
    ShortPromptContext,
    build_prompt_context,
)
from src.ai.generation_client import GenerationClient
from src.ai.fallback_generator import FallbackGenerator, lesson_scoped_plan
from src.ai.generation_service import ContentGenerationService, GenerationOutcome

__all__ = [
    "ArtifactKind",
    "GenerationErrorKind",
    "GenerationResult",
    "GenerationSource",
    "GenerationStatus",
    "DetailPromptContext",
    "PromptContext",
    "RevisePromptContext",
    "SequencePromptContext",
    "ShortPromptContext",
    "build_prompt_context",
    "GenerationClient",
    "FallbackGenerator",
    "lesson_scoped_plan",
    "ContentGenerationService",
    "GenerationOutcome",
]
