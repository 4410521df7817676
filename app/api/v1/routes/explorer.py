# app/api/v1/routes/explorer.py
"""
Collection explorer endpoints: list collections and fields, run a projected
query with an optional GST surcharge, export results, print a receipt.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from bson import Decimal128, ObjectId
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool

from app.api.v1.deps import get_explorer_repository
from app.api.v1.envelope import ok
from app.api.v1.schemas.explorer import (
    ExportRequest,
    FilePayload,
    QueryRequest,
    QueryResponse,
    ReceiptRequest,
)
from app.domain.services.gst_calculator import apply_gst
from app.domain.services.gst_export import UnsupportedExportFormatError, export_records
from app.domain.services.receipt_pdf import generate_receipt_pdf, receipt_gst
from app.infrastructure.db.repositories.explorer_repository import ExplorerRepository
from app.infrastructure.db.repositories.gstr3b_repository import StorageUnavailableError

logger = logging.getLogger("api.v1.explorer")

router = APIRouter(tags=["Explorer"])


def serialize_documents(docs: Any) -> Any:
    """Make MongoDB documents JSON-safe (ObjectId as hex string, Decimal128 as a number)."""
    return jsonable_encoder(
        docs,
        custom_encoder={ObjectId: str, Decimal128: lambda d: float(d.to_decimal())},
    )


def _storage_error(exc: StorageUnavailableError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Database unavailable: {exc}")


@router.get("/collections", response_model=dict)
async def list_collections(repo: ExplorerRepository = Depends(get_explorer_repository)):
    try:
        names = await repo.list_collections()
    except StorageUnavailableError as exc:
        raise _storage_error(exc)
    return ok(data=names)


@router.get("/fields", response_model=dict)
async def list_fields(
    collection: str = Query(min_length=1),
    repo: ExplorerRepository = Depends(get_explorer_repository),
):
    """Top-level field names, sampled from one document of the collection."""
    try:
        fields = await repo.get_fields(collection)
    except StorageUnavailableError as exc:
        raise _storage_error(exc)
    if fields is None:
        raise HTTPException(status_code=404, detail=f"No documents found in collection {collection}")
    return ok(data=fields)


@router.post("/query", response_model=dict)
async def run_query(
    body: QueryRequest,
    repo: ExplorerRepository = Depends(get_explorer_repository),
):
    try:
        records = await repo.execute_query(body.collection, body.fields, body.limit)
    except StorageUnavailableError as exc:
        raise _storage_error(exc)

    gst = body.gst_config
    if gst is not None and gst.active:
        records = apply_gst(records, gst.field, gst.percentage)

    resp = QueryResponse(count=len(records), records=serialize_documents(records))
    return ok(data=resp.model_dump())


@router.post("/export", response_model=dict)
async def export_data(body: ExportRequest):
    try:
        result = await run_in_threadpool(export_records, body.data, body.format, body.filename)
    except UnsupportedExportFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    payload = FilePayload(
        data=base64.b64encode(result.content).decode("ascii"),
        mime_type=result.mime_type,
        filename=result.filename,
    )
    return ok(data=payload.model_dump())


@router.post("/receipt/{collection}/{document_id}", response_model=dict)
async def print_receipt(
    collection: str,
    document_id: str,
    body: ReceiptRequest = ReceiptRequest(),
    repo: ExplorerRepository = Depends(get_explorer_repository),
):
    try:
        document = await repo.find_document(collection, document_id)
    except StorageUnavailableError as exc:
        raise _storage_error(exc)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    gst = None
    if body.gst_config is not None and body.gst_config.active:
        gst = receipt_gst(document, body.gst_config.field, body.gst_config.percentage)

    pdf_bytes = await run_in_threadpool(generate_receipt_pdf, document, gst)
    payload = FilePayload(
        data=base64.b64encode(pdf_bytes).decode("ascii"),
        mime_type="application/pdf",
        filename=f"receipt-{document_id}.pdf",
    )
    return ok(data=payload.model_dump())
