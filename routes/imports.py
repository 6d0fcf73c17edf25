"""
Import API routes.

Bulk import of PDV and product catalogs from CSV/XLSX files, plus preview
and import of legacy SQL dumps.
"""

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.imports import (
    ImportCommitResponse,
    ImportPreviewResponse,
    SqlDumpImportResponse,
    SqlDumpPreviewResponse,
)
from parsers.import_jobs import get_import_job
from parsers.sql_dump_parser import parse_sql_dump
from routes.errors import handle_error
from services.import_service import get_import_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/imports", tags=["Imports"])

PREVIEW_SIZE = 5


# ===================
# HELPERS
# ===================

def decode_dump(content: bytes) -> str:
    """Dumps from the legacy system are utf-8 or latin-1."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


# ===================
# ROUTES
# ===================

@router.post("/sql/preview", response_model=SqlDumpPreviewResponse)
async def preview_sql_dump(file: UploadFile = File(...)):
    """
    Parse a legacy SQL dump and list the unidades, motoristas and produtos
    found in its INSERT statements.
    """
    logger.info("sql_dump_upload_started", filename=file.filename)

    try:
        result = parse_sql_dump(decode_dump(await file.read()))
        return SqlDumpPreviewResponse(**result.to_dict())

    except Exception as e:
        return handle_error(e)


@router.post("/sql", response_model=SqlDumpImportResponse)
async def import_sql_dump(file: UploadFile = File(...)):
    """
    Import the unidades and produtos of a legacy SQL dump.

    Unidades are upserted by codigo and produtos by cod. Motoristas are
    reported as skipped.

    Raises:
        502: The store rejected unidades or produtos
    """
    logger.info("sql_dump_import_started", filename=file.filename)

    try:
        dump = parse_sql_dump(decode_dump(await file.read()))
        result = get_import_service().import_sql_dump(dump)

        response = SqlDumpImportResponse(**result.to_dict(), errors=dump.errors)

        if not result.success:
            return JSONResponse(status_code=502, content=response.model_dump())

        return response

    except Exception as e:
        return handle_error(e)


@router.post("/{job_name}/preview", response_model=ImportPreviewResponse)
async def preview_import(job_name: str, file: UploadFile = File(...)):
    """
    Parse an import file without writing anything.

    Returns the header mapping, the first records and every row error.

    Raises:
        404: Unknown import job
        422: Unreadable file or missing required columns
    """
    logger.info("import_preview_requested", job=job_name, filename=file.filename)

    try:
        job = get_import_job(job_name)
        content = await file.read()

        preview = get_import_service().preview(job, content, file.filename or "")
        extraction = preview.extraction

        return ImportPreviewResponse(
            job=job.name,
            column_mapping=preview.column_mapping,
            total_accepted=extraction.total_accepted,
            total_rejected=extraction.total_rejected,
            skipped_empty=extraction.skipped_empty,
            preview=extraction.records[:PREVIEW_SIZE],
            errors=extraction.errors,
            summary=extraction.summary(),
        )

    except Exception as e:
        return handle_error(e)


@router.post("/{job_name}", response_model=ImportCommitResponse)
async def run_import(
    job_name: str,
    file: UploadFile = File(...),
    unidade: Optional[str] = Query(None, description="Unidade code, required for PDV imports"),
):
    """
    Import a file.

    PDVs replace every PDV of the given unidade. Products are inserted or
    updated by code.

    Raises:
        404: Unknown import job
        422: Unreadable file, missing columns or missing unidade
        502: The store rejected the batch
    """
    logger.info("import_requested", job=job_name, filename=file.filename, unidade=unidade)

    try:
        job = get_import_job(job_name)
        content = await file.read()

        outcome = get_import_service().run(job, content, file.filename or "", partition=unidade)
        extraction = outcome.preview.extraction

        response = ImportCommitResponse(
            job=job.name,
            partition=unidade.upper() if unidade else None,
            success=outcome.commit.success,
            total_committed=outcome.commit.total_committed,
            error=outcome.commit.error,
            duplicates_dropped=outcome.commit.duplicates_dropped,
            total_rejected=extraction.total_rejected,
            errors=extraction.errors,
            summary=outcome.summary,
        )

        if not outcome.commit.success:
            return JSONResponse(status_code=502, content=response.model_dump())

        return response

    except Exception as e:
        return handle_error(e)
