# app/domain/services/gst_export.py
"""
Export flat query results as CSV, Excel, JSON or a tabular PDF.

Records are arbitrary MongoDB documents, so columns are the union of keys
across all records in first-seen order. In tabular formats nested values are
JSON-encoded and ObjectId / datetime values are stringified.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable
from xml.sax.saxutils import escape

from bson import Decimal128, ObjectId
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph

logger = logging.getLogger("gst_export")


class UnsupportedExportFormatError(Exception):
    """Requested export format is not one of csv, excel, json, pdf."""


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    JSON = "json"
    PDF = "pdf"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return "xlsx" if self is ExportFormat.EXCEL else self.value


_MIME_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.JSON: "application/json",
    ExportFormat.PDF: "application/pdf",
}

_PDF_HEADER_BG = colors.Color(41 / 255, 128 / 255, 185 / 255)
_GRID_COLOR = colors.Color(0.8, 0.8, 0.8)


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    mime_type: str
    filename: str


def parse_format(fmt: str | ExportFormat) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).strip().lower())
    except ValueError:
        raise UnsupportedExportFormatError(f"Unsupported export format: {fmt!r}") from None


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def _json_default(val: Any) -> Any:
    if isinstance(val, ObjectId):
        return str(val)
    if isinstance(val, Decimal128):
        val = val.to_decimal()
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    if isinstance(val, Decimal):
        return float(val)
    raise TypeError(f"Object of type {type(val).__name__} is not JSON serializable")


def columns(records: Iterable[dict]) -> list[str]:
    """Union of keys across records, in the order they are first seen."""
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(str(key), None)
    return list(seen)


def cell_text(val: Any) -> str:
    """Flatten one value into a table cell."""
    if val is None:
        return ""
    if isinstance(val, (dict, list, tuple)):
        return json.dumps(val, default=_json_default)
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val)


def _excel_value(val: Any) -> Any:
    if isinstance(val, Decimal128):
        val = val.to_decimal()
    if isinstance(val, (bool, int, float, Decimal)):
        return val
    return cell_text(val)


def _rows(records: list[dict], headers: list[str]) -> list[list[Any]]:
    return [[record.get(h) for h in headers] for record in records]


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def to_csv(records: list[dict]) -> bytes:
    headers = columns(records)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    for row in _rows(records, headers):
        writer.writerow([cell_text(v) for v in row])
    return buf.getvalue().encode("utf-8")


def to_excel(records: list[dict]) -> bytes:
    headers = columns(records)
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="2980B9")
    for row in _rows(records, headers):
        ws.append([_excel_value(v) for v in row])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def to_json(records: list[dict]) -> bytes:
    return json.dumps(records, default=_json_default, indent=2).encode("utf-8")


def _draw_page_number(canv, doc) -> None:
    canv.saveState()
    canv.setFont("Helvetica", 8)
    canv.drawString(doc.leftMargin, 8 * mm, f"Page {doc.page}")
    canv.restoreState()


def to_pdf(records: list[dict], title: str) -> bytes:
    headers = columns(records)
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=12 * mm,
        bottomMargin=15 * mm,
        title=title,
    )

    styles = getSampleStyleSheet()
    cell_style = ParagraphStyle("ExportCell", parent=styles["Normal"], fontSize=7, leading=9)
    head_style = ParagraphStyle("ExportHead", parent=cell_style, textColor=colors.white, fontName="Helvetica-Bold")

    data = [[Paragraph(escape(h), head_style) for h in headers]]
    for row in _rows(records, headers):
        data.append([Paragraph(escape(cell_text(v)), cell_style) for v in row])

    col_width = doc.width / max(len(headers), 1)
    tbl = Table(data, colWidths=[col_width] * len(headers), repeatRows=1)
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), _PDF_HEADER_BG),
        ("GRID", (0, 0), (-1, -1), 0.5, _GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))

    elements = [Paragraph(f"{escape(title)} - Data Export", styles["Heading2"]), tbl]
    doc.build(elements, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    return buf.getvalue()


def export_records(records: list[dict], fmt: str | ExportFormat, filename: str = "export") -> ExportResult:
    """
    Serialize ``records`` in the requested format.

    Raises:
        UnsupportedExportFormatError: unknown format.
        ValueError: no records for a tabular format (JSON accepts an empty list).
    """
    export_format = parse_format(fmt)
    filename = filename or "export"

    if not records and export_format is not ExportFormat.JSON:
        raise ValueError("Nothing to export: record list is empty")

    if export_format is ExportFormat.CSV:
        content = to_csv(records)
    elif export_format is ExportFormat.EXCEL:
        content = to_excel(records)
    elif export_format is ExportFormat.JSON:
        content = to_json(records)
    else:
        content = to_pdf(records, filename)

    logger.info("Exported %d records as %s (%d bytes)", len(records), export_format.value, len(content))
    return ExportResult(
        content=content,
        mime_type=export_format.mime_type,
        filename=f"{filename}.{export_format.extension}",
    )
