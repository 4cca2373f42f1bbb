"""
Export Controller - Decides if a plan can be exported and produces the file.
"""

import json
import re
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from src.engines.export.docx_renderer import render_docx
from src.engines.export.document import build_document
from src.engines.export.pdf_renderer import render_pdf
from src.exceptions import ExportNotReadyError
from src.logging_config import get_logger
from src.orchestration.state_machine import EXPORT_STEP, validate_step
from src.pedagogy.plan import Plan

logger = get_logger(__name__)


class ExportFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.PDF: "application/pdf",
    ExportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ExportFormat.JSON: "application/json",
}


class ExportDecision(BaseModel):
    """Decision on whether export is allowed."""

    allowed: bool
    messages: List[str] = []


class ExportArtifact(BaseModel):
    filename: str
    media_type: str
    content: bytes


def build_filename(plan: Plan, fmt: ExportFormat, now: datetime) -> str:
    subject = re.sub(r"\s+", "_", plan.subject.strip()) or "Plan"
    return f"PlanPilot_{subject}_{now.strftime('%Y%m%d_%H%M%S')}.{fmt.value}"


class ExportController:
    """
    Controls plan export.

    Export is blocked while the final step does not validate:
    - single lesson: no detail plan yet
    - sequence: no lesson with a detail plan yet
    """

    @classmethod
    def evaluate(cls, plan: Plan) -> ExportDecision:
        result = validate_step(EXPORT_STEP, plan)
        return ExportDecision(allowed=result.valid, messages=result.errors)

    @classmethod
    def export(cls, plan: Plan, fmt: ExportFormat, now: Optional[datetime] = None) -> ExportArtifact:
        """
        Render ``plan`` in ``fmt``.

        Raises:
            ExportNotReadyError: the plan is not complete enough to export
        """
        decision = cls.evaluate(plan)
        if not decision.allowed:
            raise ExportNotReadyError(decision.messages)

        now = now or datetime.now(timezone.utc)
        if fmt == ExportFormat.JSON:
            content = json.dumps(plan.model_dump(mode="json"), indent=2, ensure_ascii=False).encode("utf-8")
        elif fmt == ExportFormat.PDF:
            content = render_pdf(build_document(plan, now))
        else:
            content = render_docx(build_document(plan, now))

        artifact = ExportArtifact(
            filename=build_filename(plan, fmt, now),
            media_type=MEDIA_TYPES[fmt],
            content=content,
        )
        logger.info(
            "Plan exported",
            extra={"format": fmt.value, "filename": artifact.filename, "bytes": len(content)},
        )
        return artifact
