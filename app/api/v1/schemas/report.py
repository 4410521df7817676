# app/api/v1/schemas/report.py
"""Request schemas for GSTR-3B report endpoints."""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field


class ReportFormat(str, Enum):
    JSON = "json"
    PDF = "pdf"


class ReportPeriodRequest(BaseModel):
    """
    Company and month to report on.

    Year and month are range-checked by the report service, not here, so an
    out-of-range period is a 400 rather than a validation error.
    """

    company_id: str = Field(min_length=1, validation_alias=AliasChoices("company_id", "companyId"))
    year: int
    month: int


class Gstr3bReportRequest(ReportPeriodRequest):
    format: ReportFormat = ReportFormat.JSON
