# app/domain/services/gst_liability.py
"""
Net GST Liability Computation.

Derives output tax, net ITC and net payable per tax head from an assembled
GSTR-3B report.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from app.domain.models.gstr3b import Gstr3bReport, HeadTotals, LiabilitySummary, round_money
from app.domain.models.transaction import ALL_HEADS, TaxHead

logger = logging.getLogger("gst_liability")

ZERO = Decimal("0")


def output_tax(report: Gstr3bReport) -> HeadTotals:
    """
    Output tax per head = outward taxable + zero rated + reverse charge.

    Zero-rated supplies carry only integrated tax and cess, so they add
    nothing to the central and state heads.
    """
    s31 = report.section3_1
    zero_rated = {
        TaxHead.INTEGRATED: s31.outward_zero.integrated,
        TaxHead.CESS: s31.outward_zero.cess,
    }
    return HeadTotals(**{
        head.value: round_money(
            s31.outward_taxable.get(head)
            + zero_rated.get(head, ZERO)
            + s31.inward_reverse_charge.get(head)
        )
        for head in ALL_HEADS
    })


def compute_liability(report: Gstr3bReport) -> LiabilitySummary:
    """
    Net payable per head = max(0, output tax - net ITC).

    Excess credit is not carried forward here, so a head where ITC exceeds
    output tax simply contributes zero.
    """
    out = output_tax(report)
    net_itc = report.section4.itc.net

    net = HeadTotals(**{
        head.value: round_money(max(ZERO, out.get(head) - net_itc.get(head)))
        for head in ALL_HEADS
    })
    total = round_money(sum((net.get(head) for head in ALL_HEADS), ZERO))

    logger.info(
        "Liability computed: company=%s, net_payable=%.2f (IGST=%.2f, CGST=%.2f, SGST=%.2f, CESS=%.2f)",
        report.header.company_id,
        total,
        net.integrated,
        net.central,
        net.state,
        net.cess,
    )

    return LiabilitySummary(
        output_tax=out,
        net_itc=net_itc.model_copy(),
        net_liability=net,
        total_liability=total,
    )
