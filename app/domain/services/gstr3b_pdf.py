# app/domain/services/gstr3b_pdf.py
"""
Render an assembled GSTR-3B report as a paginated PDF using ReportLab.

Tables appear in the fixed order of the return: 3.1, 3.1.1, 3.2, 4, 5, 5.1
and 6. Cells for tax heads that cannot apply to a row are left empty rather
than showing zero. Every page carries the generation time and "Page X of Y".
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from decimal import Decimal
from functools import partial

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from app.domain.models.gstr3b import Gstr3bReport, HeadTotals, TaxTotals
from app.domain.models.transaction import ALL_HEADS

logger = logging.getLogger("gstr3b_pdf")

_HEADER_BG = colors.Color(0.26, 0.26, 0.26)
_LABEL_BG = colors.Color(0.95, 0.95, 0.95)
_GRID_COLOR = colors.Color(0.8, 0.8, 0.8)

SUPPLY_HEADERS = ["Nature of Supplies", "Taxable Value", "IGST", "CGST", "SGST", "CESS"]
HEAD_HEADERS = ["Details", "IGST", "CGST", "SGST", "CESS"]
INWARD_HEADERS = ["Nature of supplies", "Inter-State supplies", "Intra-State supplies"]

Row = list[str]


def _fmt(val: Decimal | None) -> str:
    """Two-decimal amount; None means the head does not apply."""
    if val is None:
        return ""
    return f"{val:,.2f}"


def _supply_row(label: str, totals: TaxTotals) -> Row:
    return [label, _fmt(totals.taxable_value)] + [_fmt(totals.get(h)) for h in ALL_HEADS]


def _head_row(label: str, totals: HeadTotals) -> Row:
    return [label] + [_fmt(totals.get(h)) for h in ALL_HEADS]


# ---------------------------------------------------------------------------
# Row builders (pure)
# ---------------------------------------------------------------------------

def header_rows(report: Gstr3bReport) -> list[Row]:
    h = report.header
    rows = [
        ["GSTIN", h.gstin or "N/A"],
        ["Legal Name", h.legal_name or "N/A"],
        ["Trade Name", h.trade_name or "N/A"],
        ["Period", f"{h.period.month:02d}/{h.period.year}"],
    ]
    if h.arn:
        rows.append(["ARN", h.arn])
    if h.arn_date:
        rows.append(["Date of ARN", h.arn_date])
    rows.append(["Authorized Signatory", h.authorized_signatory or "N/A"])
    return rows


def section3_1_rows(report: Gstr3bReport) -> list[Row]:
    s = report.section3_1
    return [
        _supply_row("(a) Outward taxable supplies (other than zero rated, nil rated and exempted)",
                    s.outward_taxable),
        ["(b) Outward taxable supplies (zero rated)",
         _fmt(s.outward_zero.taxable_value), _fmt(s.outward_zero.integrated), "", "",
         _fmt(s.outward_zero.cess)],
        ["(c) Other outward supplies (Nil rated, exempted)",
         _fmt(s.outward_nil_exempt.taxable_value), "", "", "", ""],
        _supply_row("(d) Inward supplies (liable to reverse charge)", s.inward_reverse_charge),
        ["(e) Non-GST outward supplies", _fmt(s.non_gst_outward.taxable_value), "", "", "", ""],
    ]


def section3_1_1_rows(report: Gstr3bReport) -> list[Row]:
    return [
        _supply_row("Taxable supplies on which e-commerce operator pays tax u/s 9(5)",
                    report.section3_1_1.ecommerce_operator),
    ]


def section3_2_rows(report: Gstr3bReport) -> list[Row]:
    s = report.section3_2
    return [
        _supply_row("Supplies made to unregistered persons", s.unregistered),
        _supply_row("Supplies made to composition taxable persons", s.composition),
        _supply_row("Supplies made to UIN holders", s.uin),
    ]


def section4_rows(report: Gstr3bReport) -> list[Row]:
    itc = report.section4.itc
    eligible, reversed_ = itc.eligible, itc.reversed
    return [
        ["(A) ITC Available (whether in full or part)"]
        + [_fmt(eligible.total(h)) for h in ALL_HEADS],
        _head_row("  (1) Import of goods", eligible.import_goods),
        _head_row("  (2) Import of services", eligible.import_services),
        _head_row("  (3) Inward supplies liable to reverse charge", eligible.reverse_charge),
        _head_row("  (4) Inward supplies from ISD", eligible.isd),
        _head_row("  (5) All other ITC", eligible.others),
        ["(B) ITC Reversed"] + [_fmt(reversed_.total(h)) for h in ALL_HEADS],
        _head_row("  (1) As per rules 38, 42 & 43 of CGST Rules", reversed_.rules_38_42_43),
        _head_row("  (2) Others", reversed_.others),
        _head_row("(C) Net ITC Available (A) - (B)", itc.net),
    ]


def section5_rows(report: Gstr3bReport) -> list[Row]:
    s = report.section5.exempt_nil_non_gst
    return [
        ["From a supplier under composition scheme",
         _fmt(s.composition.interstate), _fmt(s.composition.intrastate)],
        ["Exempt supplies", _fmt(s.exempt.interstate), _fmt(s.exempt.intrastate)],
        ["Nil-rated supplies", _fmt(s.nil_rated.interstate), _fmt(s.nil_rated.intrastate)],
        ["Non-GST supplies", _fmt(s.non_gst.interstate), _fmt(s.non_gst.intrastate)],
    ]


def _late_fee_row(label: str, late_fee: dict) -> Row:
    return [label] + [_fmt(late_fee.get(h)) for h in ALL_HEADS]


def section5_1_rows(report: Gstr3bReport) -> list[Row]:
    s = report.section5_1
    return [
        _head_row("Interest", s.interest),
        _late_fee_row("Late Fee", s.late_fee),
    ]


def section6_rows(report: Gstr3bReport) -> list[Row]:
    p = report.section6.payment
    return [
        ["(a) Tax paid through cash"] + [_fmt(p.tax.get(h).cash) for h in ALL_HEADS],
        ["(b) Tax paid through ITC"] + [_fmt(p.tax.get(h).itc) for h in ALL_HEADS],
        _head_row("(c) Interest paid in cash", p.interest),
        _late_fee_row("(d) Late fee paid in cash", p.late_fee),
    ]


SECTIONS = (
    ("3.1 Details of Outward supplies and inward supplies liable to reverse charge",
     SUPPLY_HEADERS, section3_1_rows),
    ("3.1.1 Details of supplies notified under section 9(5) of the CGST Act",
     SUPPLY_HEADERS, section3_1_1_rows),
    ("3.2 Inter-state supplies", SUPPLY_HEADERS, section3_2_rows),
    ("4. Eligible ITC", HEAD_HEADERS, section4_rows),
    ("5. Values of exempt, nil-rated and non-GST inward supplies", INWARD_HEADERS, section5_rows),
    ("5.1 Interest and Late Fee", HEAD_HEADERS, section5_1_rows),
    ("6. Payment of tax", HEAD_HEADERS, section6_rows),
)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so each footer can show the page total."""

    def __init__(self, *args, generated_at: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self._generated_at = generated_at
        self._saved_page_states: list[dict] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawString(15 * mm, 8 * mm, f"Generated on: {self._generated_at}")
        self.drawRightString(width - 15 * mm, 8 * mm, f"Page {self._pageNumber} of {total}")


def _table_style() -> list:
    return [
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, _GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_BG),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 1), (0, -1), _LABEL_BG),
    ]


def _wrap_labels(rows: list[Row], style: ParagraphStyle) -> list[list]:
    return [[Paragraph(row[0], style)] + row[1:] for row in rows]


def generate_gstr3b_pdf(report: Gstr3bReport, generated_at: datetime | None = None) -> bytes:
    """Render ``report`` and return the PDF bytes."""
    generated_at = generated_at or datetime.now()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=18 * mm,
        title="GSTR-3B Report",
    )

    base = getSampleStyleSheet()
    title_style = ParagraphStyle("Gstr3bTitle", parent=base["Heading1"], fontSize=16, alignment=1, spaceAfter=8)
    section_style = ParagraphStyle(
        "Gstr3bSection", parent=base["Heading2"], fontSize=11, spaceBefore=10, spaceAfter=5,
    )
    cell_style = ParagraphStyle("Gstr3bCell", parent=base["Normal"], fontSize=8, leading=10)

    elements: list = [Paragraph("GSTR-3B Report", title_style)]

    header_table = Table(header_rows(report), colWidths=[120, 300])
    header_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (0, -1), _LABEL_BG),
        ("TEXTCOLOR", (0, 0), (0, -1), colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, _GRID_COLOR),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    elements.append(header_table)

    for title, headers, build_rows in SECTIONS:
        elements.append(Paragraph(title, section_style))
        rows = [headers] + _wrap_labels(build_rows(report), cell_style)
        label_width = 180 if len(headers) > 3 else 240
        other = (doc.width - label_width) / (len(headers) - 1)
        tbl = Table(rows, colWidths=[label_width] + [other] * (len(headers) - 1), repeatRows=1)
        tbl.setStyle(TableStyle(_table_style()))
        elements.append(tbl)
        elements.append(Spacer(1, 4))

    doc.build(
        elements,
        canvasmaker=partial(_NumberedCanvas, generated_at=generated_at.strftime("%d-%b-%Y %H:%M")),
    )
    logger.info(
        "GSTR-3B PDF rendered for company=%s period=%02d/%d",
        report.header.company_id, report.header.period.month, report.header.period.year,
    )
    return buf.getvalue()
