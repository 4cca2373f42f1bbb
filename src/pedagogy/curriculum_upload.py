"""
Parser for teacher-supplied curriculum files (CSV or plain text).
"""

import re
from typing import List

from src.exceptions import CurriculumUploadError
from src.logging_config import get_logger
from src.pedagogy.plan import CurriculumCompetency
from src.pedagogy.types import CompetencySource

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = (".csv", ".txt")

_CSV_SPLIT = re.compile(r"[;,\t]")
_TXT_CODE = re.compile(r"^([A-Z]{1,4}\.\d+\.[A-Z]\.\d+|[A-Z]{1,4}\.\d+\.\d+)")
_TXT_SEPARATOR = re.compile(r"^[:\-–]\s*")


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _col(cols: List[str], n: int) -> str:
    return cols[n] if len(cols) > n else ""


def parse_csv(text: str) -> List[CurriculumCompetency]:
    """
    Columns: code, area, competency area, competency, level indicators (``|``-separated).

    A first line mentioning "code" or "kompetenz" is treated as header.
    Rows with fewer than two columns are skipped.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return []
    first = lines[0].lower()
    start = 1 if ("code" in first or "kompetenz" in first) else 0

    results: List[CurriculumCompetency] = []
    for i in range(start, len(lines)):
        cols = [_strip_quotes(c) for c in _CSV_SPLIT.split(lines[i])]
        if len(cols) < 2:
            continue
        indicators = [s.strip() for s in _col(cols, 4).split("|")] if _col(cols, 4) else []
        results.append(
            CurriculumCompetency(
                id=f"upload-{i}",
                code=_col(cols, 0) or f"U.{i}",
                area=_col(cols, 1) or "Custom",
                competency_area=_col(cols, 2) or "Allgemein",
                competency=_col(cols, 3) or _col(cols, 1) or _col(cols, 0),
                cycle=None,
                level_indicators=indicators,
                source=CompetencySource.CUSTOM_UPLOAD,
            )
        )
    return results


def parse_txt(text: str) -> List[CurriculumCompetency]:
    """One competency per line, optionally prefixed by a code like ``MA.1.A.2``."""
    lines = [line for line in text.split("\n") if line.strip()]
    results: List[CurriculumCompetency] = []
    for i, raw in enumerate(lines):
        line = raw.strip()
        if line.startswith("#") or line.startswith("//"):
            continue
        match = _TXT_CODE.match(line)
        if match:
            code = match.group(1)
            body = _TXT_SEPARATOR.sub("", line[match.end():].strip())
        else:
            code = f"U.{i + 1}"
            body = line
        results.append(
            CurriculumCompetency(
                id=f"upload-{i}",
                code=code,
                area="Upload",
                competency_area="Benutzerdefiniert",
                competency=body,
                cycle=None,
                level_indicators=[],
                source=CompetencySource.CUSTOM_UPLOAD,
            )
        )
    return results


def parse_curriculum_file(filename: str, content: bytes) -> List[CurriculumCompetency]:
    """
    Parse an uploaded curriculum file.

    Raises:
        CurriculumUploadError: unsupported extension, undecodable bytes,
            or no competencies found.
    """
    name = (filename or "").lower()
    if not name.endswith(ALLOWED_EXTENSIONS):
        raise CurriculumUploadError(
            "Nur CSV- oder TXT-Dateien werden unterstützt.", filename=filename
        )
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise CurriculumUploadError(
            "Die Datei ist nicht UTF-8-kodiert.", filename=filename
        )

    competencies = parse_csv(text) if name.endswith(".csv") else parse_txt(text)
    if not competencies:
        raise CurriculumUploadError(
            "In der Datei wurden keine Kompetenzen gefunden.", filename=filename
        )
    logger.info(
        "Parsed curriculum upload",
        extra={"upload_filename": filename, "competencies": len(competencies)},
    )
    return competencies
