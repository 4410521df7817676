# app/api/v1/routes/reports.py
"""
GSTR-3B endpoints: the full report (JSON or PDF), net liability and the
per-type transaction summary.
"""

from __future__ import annotations

import base64
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from app.api.v1.deps import get_gstr3b_repository
from app.api.v1.envelope import ok
from app.api.v1.routes.explorer import serialize_documents
from app.api.v1.schemas.explorer import FilePayload
from app.api.v1.schemas.report import Gstr3bReportRequest, ReportFormat, ReportPeriodRequest
from app.domain.models.gstr3b import Gstr3bReport
from app.domain.services.gst_liability import compute_liability
from app.domain.services.gstr3b_pdf import generate_gstr3b_pdf
from app.domain.services.gstr3b_report import (
    CompanyNotFoundError,
    InvalidPeriodError,
    assemble_report,
    transaction_summary,
)
from app.infrastructure.db.repositories.gstr3b_repository import Gstr3bRepository, StorageUnavailableError

logger = logging.getLogger("api.v1.reports")

router = APIRouter(prefix="/report", tags=["GSTR-3B"])


async def _load_report(body: ReportPeriodRequest, repo: Gstr3bRepository) -> Gstr3bReport:
    try:
        return await assemble_report(body.company_id, body.year, body.month, repo)
    except InvalidPeriodError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CompanyNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except StorageUnavailableError as exc:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {exc}")


@router.post("/gstr3b", response_model=dict)
async def gstr3b_report(
    body: Gstr3bReportRequest,
    repo: Gstr3bRepository = Depends(get_gstr3b_repository),
):
    """
    Assemble the GSTR-3B return for one company and month.

    ``format=pdf`` returns the rendered PDF as base64 instead of the
    section structure.
    """
    report = await _load_report(body, repo)

    if body.format == ReportFormat.PDF:
        pdf_bytes = await run_in_threadpool(generate_gstr3b_pdf, report)
        payload = FilePayload(
            data=base64.b64encode(pdf_bytes).decode("ascii"),
            mime_type="application/pdf",
            filename=f"GSTR3B_{body.company_id}_{body.year}_{body.month}.pdf",
        )
        return ok(data=payload.model_dump())

    return ok(
        data=report.model_dump(mode="json"),
        message=f"GSTR-3B report for {body.month:02d}/{body.year}",
    )


@router.post("/gstr3b/liability", response_model=dict)
async def gstr3b_liability(
    body: ReportPeriodRequest,
    repo: Gstr3bRepository = Depends(get_gstr3b_repository),
):
    report = await _load_report(body, repo)
    summary = compute_liability(report)
    return ok(data=summary.model_dump(mode="json"))


@router.get("/transaction-summary", response_model=dict)
async def gstr3b_transaction_summary(
    company_id: str = Query(min_length=1),
    year: int = Query(),
    month: int = Query(),
    repo: Gstr3bRepository = Depends(get_gstr3b_repository),
):
    """Transaction counts and tax totals for the month, grouped by type and GST type."""
    try:
        summary = await transaction_summary(company_id, year, month, repo)
    except InvalidPeriodError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except StorageUnavailableError as exc:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {exc}")
    return ok(data=serialize_documents(summary))
