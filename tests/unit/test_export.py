"""
Unit tests for the export engine.

Covers readiness, filenames, the format-neutral document and the three renderers.
"""

import json
from datetime import datetime, timezone

import pytest

from conftest import make_plan, make_sequence_plan, with_detail

from src.ai.fallback_generator import FallbackGenerator
from src.engines.export import (
    ExportController,
    ExportFormat,
    build_document,
    build_filename,
)
from src.exceptions import ExportNotReadyError
from src.pedagogy.plan import Plan

NOW = datetime(2026, 10, 19, 14, 5, 9, tzinfo=timezone.utc)


def _sequence_with_lesson_detail() -> Plan:
    plan = make_sequence_plan()
    skeleton = FallbackGenerator.sequence_skeleton(plan)
    skeleton.lessons[0].detail_plan = FallbackGenerator.detail_plan(plan)
    return plan.model_copy(update={"sequence_skeleton": skeleton})


class TestExportDecision:

    def test_blocked_without_detail_plan(self, plan):
        decision = ExportController.evaluate(plan)
        assert decision.allowed is False
        assert decision.messages == ["Bitte erstelle zuerst eine Detailplanung."]

    def test_allowed_with_detail_plan(self, detailed_plan):
        decision = ExportController.evaluate(detailed_plan)
        assert decision.allowed is True
        assert decision.messages == []

    def test_sequence_needs_one_lesson_detail(self, sequence_plan):
        skeleton_only = sequence_plan.model_copy(
            update={"sequence_skeleton": FallbackGenerator.sequence_skeleton(sequence_plan)}
        )
        assert ExportController.evaluate(skeleton_only).allowed is False
        assert ExportController.evaluate(_sequence_with_lesson_detail()).allowed is True

    def test_export_refused_when_not_ready(self, plan):
        with pytest.raises(ExportNotReadyError) as exc_info:
            ExportController.export(plan, ExportFormat.PDF, NOW)
        assert exc_info.value.status_code == 409
        assert exc_info.value.errors == ["Bitte erstelle zuerst eine Detailplanung."]


class TestFilename:

    def test_subject_and_timestamp(self):
        plan = make_plan(subject="Natur und  Technik")
        assert build_filename(plan, ExportFormat.DOCX, NOW) == "PlanPilot_Natur_und_Technik_20261019_140509.docx"

    def test_empty_subject(self):
        plan = make_plan(subject="  ")
        assert build_filename(plan, ExportFormat.JSON, NOW) == "PlanPilot_Plan_20261019_140509.json"


class TestDocument:

    def test_single_lesson_sections(self, detailed_plan):
        document = build_document(detailed_plan, NOW)
        headings = [s.heading for s in document.sections]

        assert document.title == detailed_plan.short_version.title
        assert headings[0] == "Lernziele"
        assert "Kurzversion: Phasenübersicht" in headings
        assert "Detailplanung: Unterrichtsverlauf" in headings
        assert "Bewertungsraster" in headings
        assert ["Dauer", "45 Minuten"] in document.metadata.rows
        assert not any(row[0] == "Lektionen" for row in document.metadata.rows)

    def test_detail_table_has_one_row_per_phase(self, detailed_plan):
        document = build_document(detailed_plan, NOW)
        table = next(s for s in document.sections if s.heading == "Detailplanung: Unterrichtsverlauf").table
        assert len(table.rows) == len(detailed_plan.detail_plan.phases)
        assert table.rows[0][0] == f"{detailed_plan.detail_plan.phases[0].duration_minutes}'"

    def test_sequence_lists_lessons(self):
        plan = _sequence_with_lesson_detail()
        document = build_document(plan, NOW)
        overview = next(s for s in document.sections if s.heading == "Sequenzübersicht")

        assert ["Lektionen", "4"] in document.metadata.rows
        assert len(overview.table.rows) == 4
        lesson_sections = [s for s in document.sections if s.heading == plan.sequence_skeleton.lessons[0].title]
        assert lesson_sections[0].level == 2


class TestRenderers:

    def test_json_is_the_plan(self, detailed_plan):
        artifact = ExportController.export(detailed_plan, ExportFormat.JSON, NOW)
        assert artifact.media_type == "application/json"
        data = json.loads(artifact.content.decode("utf-8"))
        assert data["subject"] == "Physik"
        assert len(data["detail_plan"]["phases"]) == len(detailed_plan.detail_plan.phases)

    def test_pdf(self, detailed_plan):
        artifact = ExportController.export(detailed_plan, ExportFormat.PDF, NOW)
        assert artifact.content.startswith(b"%PDF")
        assert artifact.filename.endswith(".pdf")
        assert artifact.media_type == "application/pdf"

    def test_docx(self, detailed_plan):
        artifact = ExportController.export(detailed_plan, ExportFormat.DOCX, NOW)
        assert artifact.content.startswith(b"PK")
        assert artifact.filename.endswith(".docx")

    def test_sequence_pdf(self):
        artifact = ExportController.export(_sequence_with_lesson_detail(), ExportFormat.PDF, NOW)
        assert artifact.content.startswith(b"%PDF")

    def test_markup_characters_survive_pdf(self):
        plan = with_detail(make_plan(title="Strom <Teil 1> & mehr", subject="Physik & Chemie"))
        artifact = ExportController.export(plan, ExportFormat.PDF, NOW)
        assert artifact.content.startswith(b"%PDF")
