"""
DOCX rendering with python-docx.
"""

from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH

from src.engines.export.document import ExportDocument, TableBlock


def _add_table(doc, block: TableBlock) -> None:
    table = doc.add_table(rows=1, cols=len(block.header))
    table.style = "Table Grid"
    for cell, text in zip(table.rows[0].cells, block.header):
        cell.text = ""
        cell.paragraphs[0].add_run(text).bold = True
    for row in block.rows:
        cells = table.add_row().cells
        for cell, text in zip(cells, row):
            cell.text = text


def render_docx(document: ExportDocument) -> bytes:
    """Render ``document`` as a Word file."""
    doc = Document()

    title = doc.add_heading(document.title, 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    doc.add_paragraph(f"PlanPilot · {document.generated_at.strftime('%d.%m.%Y %H:%M')}")
    _add_table(doc, document.metadata)

    for section in document.sections:
        doc.add_heading(section.heading, min(section.level, 4))
        for text in section.paragraphs:
            doc.add_paragraph(text)
        for item in section.bullets:
            doc.add_paragraph(item, style="List Bullet")
        if section.table is not None and section.table.rows:
            _add_table(doc, section.table)

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
