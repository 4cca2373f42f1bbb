"""
Domain exceptions raised by PlanPilot services.

Each carries the HTTP status the API layer maps it to.
"""

from typing import List, Optional


class PlanPilotError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400
    code: str = "planpilot_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StepNotAccessibleError(PlanPilotError):
    status_code = 409
    code = "step_not_accessible"

    def __init__(self, step: int):
        super().__init__(f"Schritt {step} ist noch nicht zugänglich.")
        self.step = step


class StepValidationError(PlanPilotError):
    """Current step is incomplete; ``errors`` lists the reasons."""

    status_code = 409
    code = "step_incomplete"

    def __init__(self, step: int, errors: List[str]):
        super().__init__(f"Schritt {step} ist unvollständig.")
        self.step = step
        self.errors = errors


class GenerationInProgressError(PlanPilotError):
    status_code = 409
    code = "generation_in_progress"

    def __init__(self):
        super().__init__("Es läuft bereits eine Generierung.")


class ArtifactMissingError(PlanPilotError):
    status_code = 409
    code = "artifact_missing"


class LessonIndexError(PlanPilotError):
    status_code = 404
    code = "lesson_not_found"

    def __init__(self, index: int):
        super().__init__(f"Lektion {index + 1} existiert nicht.")
        self.index = index


class UnknownCompetencyError(PlanPilotError):
    status_code = 404
    code = "competency_not_found"

    def __init__(self, competency_id: str):
        super().__init__(f"Kompetenz '{competency_id}' nicht gefunden.")
        self.competency_id = competency_id


class CurriculumUploadError(PlanPilotError):
    status_code = 422
    code = "invalid_upload"

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename


class ExportNotReadyError(PlanPilotError):
    status_code = 409
    code = "export_not_ready"

    def __init__(self, messages: List[str]):
        super().__init__("Export noch nicht möglich.")
        self.errors = messages


class GoalIndexError(PlanPilotError):
    status_code = 404
    code = "goal_not_found"

    def __init__(self, index: int):
        super().__init__(f"Lernziel {index + 1} existiert nicht.")
        self.index = index


class InvalidContextError(PlanPilotError):
    """Context update would leave the plan invalid; ``errors`` lists the fields."""

    status_code = 422
    code = "invalid_context"

    def __init__(self, errors: List[dict]):
        super().__init__("Ungültige Angaben im Kontext.")
        self.errors = errors
