"""
PDF rendering with reportlab.
"""

import io
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from src.engines.export.document import ExportDocument, TableBlock


HEADER_COLOR = colors.HexColor("#6366F1")
MARGIN = 36


def _markup(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


def _table(block: TableBlock, cell_style: ParagraphStyle, head_style: ParagraphStyle) -> Table:
    data = [[Paragraph(_markup(h), head_style) for h in block.header]]
    for row in block.rows:
        data.append([Paragraph(_markup(cell), cell_style) for cell in row])
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    return table


def render_pdf(document: ExportDocument) -> bytes:
    """Render ``document`` as an A4 landscape PDF."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=landscape(A4),
        rightMargin=MARGIN, leftMargin=MARGIN, topMargin=MARGIN, bottomMargin=MARGIN,
        title=document.title,
    )

    styles = getSampleStyleSheet()
    cell_style = ParagraphStyle("Cell", parent=styles["BodyText"], fontSize=8, leading=10)
    head_style = ParagraphStyle(
        "HeadCell", parent=cell_style, fontName="Helvetica-Bold", textColor=colors.whitesmoke
    )
    heading_styles = {1: styles["Heading2"], 2: styles["Heading3"], 3: styles["Heading4"]}

    elements: List = [
        Paragraph("PlanPilot", styles["Title"]),
        Paragraph(document.generated_at.strftime("%d.%m.%Y %H:%M"), styles["Normal"]),
        Spacer(1, 8),
        Paragraph(_markup(document.title), styles["Heading1"]),
        _table(document.metadata, cell_style, head_style),
        Spacer(1, 12),
    ]

    for section in document.sections:
        style = heading_styles.get(section.level, styles["Heading4"])
        elements.append(Paragraph(_markup(section.heading), style))
        for text in section.paragraphs:
            elements.append(Paragraph(_markup(text), styles["BodyText"]))
        for item in section.bullets:
            elements.append(Paragraph(_markup(item), styles["BodyText"], bulletText="•"))
        if section.table is not None and section.table.rows:
            elements.append(Spacer(1, 4))
            elements.append(_table(section.table, cell_style, head_style))
        elements.append(Spacer(1, 10))

    doc.build(elements)
    return buf.getvalue()
