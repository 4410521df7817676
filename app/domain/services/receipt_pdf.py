# app/domain/services/receipt_pdf.py
"""
Generate a one-page receipt PDF for a single stored document.
Uses ReportLab for PDF generation.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from app.domain.services.gst_calculator import (
    GST_AMOUNT_KEY,
    GST_PERCENTAGE_KEY,
    TOTAL_AMOUNT_KEY,
    calculate_gst,
    to_decimal,
)
from app.domain.services.gst_export import cell_text
from app.domain.models.gstr3b import round_money

logger = logging.getLogger("receipt_pdf")

_EXCLUDED_KEYS = {"_id", GST_AMOUNT_KEY, GST_PERCENTAGE_KEY, TOTAL_AMOUNT_KEY}


@dataclass(frozen=True)
class ReceiptGst:
    percentage: Decimal
    amount: Decimal
    total: Decimal


def receipt_gst(document: dict, field: str, percentage: Any) -> ReceiptGst:
    """GST block for ``document``, levied on ``field`` at ``percentage`` percent."""
    base = to_decimal(document.get(field)) or Decimal("0")
    rate = to_decimal(percentage) or Decimal("0")
    amount = calculate_gst(base, rate)
    return ReceiptGst(percentage=rate, amount=amount, total=round_money(base + amount))


def detail_rows(document: dict) -> list[list[str]]:
    """Field / value pairs shown on the receipt, skipping the id and GST keys."""
    return [
        [str(key), cell_text(value)]
        for key, value in document.items()
        if key not in _EXCLUDED_KEYS
    ]


def gst_rows(gst: ReceiptGst) -> list[list[str]]:
    return [
        ["GST Percentage", f"{gst.percentage.normalize():f}%"],
        ["GST Amount", f"{gst.amount:,.2f}"],
        ["Total Amount", f"{gst.total:,.2f}"],
    ]


def generate_receipt_pdf(document: dict, gst: ReceiptGst | None = None) -> bytes:
    """
    Render a receipt for one document.

    Args:
        document: The stored document; ``_id`` becomes the receipt id.
        gst: Optional GST block, printed below the item details.

    Returns:
        PDF file as bytes.
    """
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title="Receipt",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReceiptTitle",
        parent=styles["Heading1"],
        fontSize=20,
        alignment=1,  # center
        spaceAfter=10,
    )
    meta_style = ParagraphStyle("ReceiptMeta", parent=styles["Normal"], fontSize=10, leading=14)
    heading_style = ParagraphStyle(
        "ReceiptHeading", parent=styles["Heading3"], fontSize=12, spaceBefore=10, spaceAfter=6,
    )
    cell_style = ParagraphStyle("ReceiptCell", parent=styles["Normal"], fontSize=9, leading=11)

    elements = [
        Paragraph("RECEIPT", title_style),
        Paragraph(f"Date: {datetime.now().strftime('%d-%b-%Y')}", meta_style),
        Paragraph(f"Receipt ID: {escape(str(document.get('_id', 'N/A')))}", meta_style),
        Spacer(1, 8),
        Paragraph("Item Details", heading_style),
    ]

    rows = [["Field", "Value"]] + [
        [Paragraph(escape(k), cell_style), Paragraph(escape(v), cell_style)]
        for k, v in detail_rows(document)
    ]
    details_table = Table(rows, colWidths=[150, 320], repeatRows=1)
    details_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.26, 0.26, 0.26)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.Color(0.95, 0.95, 0.95)]),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.Color(0.8, 0.8, 0.8)),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ]
        )
    )
    elements.append(details_table)

    if gst is not None:
        elements.append(Paragraph("GST Details", heading_style))
        gst_table = Table(gst_rows(gst), colWidths=[150, 320])
        gst_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, -1), (-1, -1), colors.Color(0.9, 0.95, 1.0)),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.Color(0.8, 0.8, 0.8)),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("TOPPADDING", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ]
            )
        )
        elements.append(gst_table)

    elements.append(Spacer(1, 30))
    elements.append(
        Paragraph(
            "Thank you for your business!",
            ParagraphStyle(
                "Footer",
                parent=styles["Normal"],
                fontSize=10,
                textColor=colors.grey,
                alignment=1,
            ),
        )
    )

    doc.build(elements)
    logger.info("Receipt rendered for document %s", document.get("_id"))
    return buf.getvalue()
