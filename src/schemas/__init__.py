"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import ErrorResponse, HealthResponse
from src.schemas.plan import (
    CancelResponse,
    CompetencyList,
    ContextUpdate,
    DifferentiationRequest,
    DifferentiationResponse,
    ExportReadinessResponse,
    GenerationResponse,
    GoalUpdate,
    GoalsReplace,
    InstructionRequest,
    MappingCreate,
    QualityResponse,
    RefineRequest,
    ReflectionNotesUpdate,
    SessionStateResponse,
    StepValidationResponse,
    SuggestionItem,
    UploadResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "CancelResponse",
    "CompetencyList",
    "ContextUpdate",
    "DifferentiationRequest",
    "DifferentiationResponse",
    "ExportReadinessResponse",
    "GenerationResponse",
    "GoalUpdate",
    "GoalsReplace",
    "InstructionRequest",
    "MappingCreate",
    "QualityResponse",
    "RefineRequest",
    "ReflectionNotesUpdate",
    "SessionStateResponse",
    "StepValidationResponse",
    "SuggestionItem",
    "UploadResponse",
]
