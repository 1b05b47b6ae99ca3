"""
File upload endpoints: hand an uploaded CSV/spreadsheet to the ingestion runner.
"""

from __future__ import annotations

import asyncio
import os
import time

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_ingestion_runner
from app.api.schemas import IngestionRunResponse, IngestionStatsResponse, UploadResponse
from app.core.config import settings
from app.core.errors import AppError, RequestValidationFailed
from app.core.logging import get_logger
from app.ingestion.runner import IngestionRunner
from app.repositories import ingestion_runs as run_repository

logger = get_logger(__name__)

router = APIRouter(tags=["Uploads"])


def _save_upload(upload_dir: str, file_name: str, content: bytes) -> str:
    os.makedirs(upload_dir, exist_ok=True)
    stored_name = f"{int(time.time() * 1000)}-{os.path.basename(file_name)}"
    file_path = os.path.join(upload_dir, stored_name)
    with open(file_path, "wb") as fh:
        fh.write(content)
    return file_path


# ─── Upload ───────────────────────────────────────────────
@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(None),
    runner: IngestionRunner = Depends(get_ingestion_runner),
):
    """
    Ingest one CSV or spreadsheet file.

    The file is stored under UPLOAD_DIR, processed in an isolated worker
    and deleted afterwards, whatever the outcome.
    """
    if file is None or not file.filename:
        raise RequestValidationFailed("No file uploaded")

    content = await file.read()
    file_path = await asyncio.to_thread(_save_upload, settings.UPLOAD_DIR, file.filename, content)
    logger.info("Upload received", file_name=file.filename, size_bytes=len(content))

    outcome = await runner.submit(file_path, file.filename)
    if not outcome.success:
        raise AppError(outcome.error or "File processing failed")

    return UploadResponse(
        message="File processed successfully",
        data=outcome.summary,
        stats=IngestionStatsResponse.model_validate(outcome.stats),
    )


# ─── Upload history ───────────────────────────────────────
@router.get("/uploads", response_model=list[IngestionRunResponse])
async def list_uploads(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Recent ingestion runs, newest first."""
    return await run_repository.list_runs(db, limit=limit, offset=offset)
