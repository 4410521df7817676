# app/api/v1/schemas/explorer.py
"""Request and response schemas for the collection explorer endpoints."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class GstConfig(BaseModel):
    """Optional flat-rate GST surcharge applied to a numeric field."""

    enabled: bool = False
    field: str | None = None
    percentage: Decimal | None = Field(default=None, ge=0, description="GST percentage, e.g. 5, 12, 18, 28")

    @property
    def active(self) -> bool:
        return bool(self.enabled and self.field and self.percentage)


class QueryRequest(BaseModel):
    collection: str = Field(min_length=1)
    fields: list[str] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1)
    gst_config: GstConfig | None = Field(
        default=None, validation_alias=AliasChoices("gst_config", "gstConfig"),
    )


class QueryResponse(BaseModel):
    count: int
    records: list[dict[str, Any]]


class ExportRequest(BaseModel):
    data: list[dict[str, Any]]
    format: str = Field(min_length=1, description="csv, excel, json or pdf")
    filename: str = "export"


class FilePayload(BaseModel):
    """Base64-encoded file plus the metadata a client needs to save it."""

    data: str
    mime_type: str
    filename: str


class ReceiptRequest(BaseModel):
    gst_config: GstConfig | None = Field(
        default=None, validation_alias=AliasChoices("gst_config", "gstConfig"),
    )
