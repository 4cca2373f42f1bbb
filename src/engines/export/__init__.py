"""
Export Engine - readiness decision and PDF/DOCX/JSON rendering.
"""

from src.engines.export.export_controller import (
    ExportArtifact,
    ExportController,
    ExportDecision,
    ExportFormat,
    build_filename,
)
from src.engines.export.document import ExportDocument, build_document

__all__ = [
    "ExportArtifact",
    "ExportController",
    "ExportDecision",
    "ExportFormat",
    "build_filename",
    "ExportDocument",
    "build_document",
]
