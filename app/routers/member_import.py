"""
Bulk member import routes for the membership portal.

- POST /api/members/bulk         JSON member records or CSV text, one chunk
- POST /api/members/bulk-csv     CSV text, one chunk
- POST /api/members/bulk-upload  CSV/JSON file, imported chunk by chunk
- GET  /api/members/bulk-upload/history

Errors are returned as {"error": message} with the status carried by the
import exception (400 validation/policy, 413 payload, 500 store/resolution).
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.models import ImportHistory, ImportSource, ImportStatus
from app.schemas import (
    BulkCsvRequest,
    BulkImportRequest,
    BulkImportResponse,
    BulkUploadResponse,
    ImportHistoryResponse,
    MemberResponse,
)
from app.services.member_import import (
    ChunkedImportResult,
    DuplicatePolicy,
    ImportResult,
    MemberImportError,
    MemberImportService,
    PayloadTooLarge,
    ValidationError,
    parse_member_csv,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["member-import"])


def check_payload_size(size: int | None, settings: Settings) -> None:
    """Reject bodies above the configured ceiling."""
    if size is not None and size > settings.max_payload_bytes:
        limit_mb = settings.max_payload_bytes / (1024 * 1024)
        raise PayloadTooLarge(f"Request too large. Maximum size is {limit_mb:g}MB.")


def _content_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    if value and value.isdigit():
        return int(value)
    return None


async def read_json_body(request: Request, settings: Settings) -> dict[str, Any]:
    """
    Read a JSON object body after enforcing the payload ceiling.

    The Content-Length header is checked before anything is read, and the
    actual size again afterwards for bodies sent without one.
    """
    check_payload_size(_content_length(request), settings)
    raw = await request.body()
    check_payload_size(len(raw), settings)

    try:
        body = json.loads(raw or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _error_response(error: MemberImportError) -> JSONResponse:
    return JSONResponse(content={"error": error.message}, status_code=error.status_code)


def _import_response(result: ImportResult) -> dict[str, Any]:
    return {
        "message": result.message,
        "data": [MemberResponse.model_validate(member) for member in result.members],
        "stats": result.stats.to_dict(),
    }


def _json_body_schema(model: type[BaseModel]) -> dict[str, Any]:
    """OpenAPI request body for routes that read their JSON body by hand."""
    return {"requestBody": {"content": {"application/json": {"schema": model.model_json_schema()}}}}


def _csv_text(csv_data: Any) -> str:
    if not isinstance(csv_data, str) or not csv_data.strip():
        raise ValidationError("CSV data is required")
    return csv_data


@router.post(
    "/bulk",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=_json_body_schema(BulkImportRequest),
)
async def bulk_import_members(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Import one chunk of members.

    Accepts either `members` (list of organization_name, school_name,
    member_name, submission_url) or `csvData`; `members` wins if both are
    given. Organizations and schools are created as needed; existing
    members are handled per `duplicateHandling` (skip, update, error).
    """
    service = MemberImportService(db, settings)
    try:
        payload = BulkImportRequest.model_validate(await read_json_body(request, settings))
        if payload.members is not None:
            result = service.import_members(payload.members, payload.duplicate_handling)
        elif payload.csv_data is not None:
            DuplicatePolicy.parse(payload.duplicate_handling)
            result = service.import_csv(_csv_text(payload.csv_data), payload.duplicate_handling)
        else:
            DuplicatePolicy.parse(payload.duplicate_handling)
            raise ValidationError("Members array is required")
    except MemberImportError as e:
        logger.warning(f"Bulk import rejected ({e.status_code}): {e.message}")
        return _error_response(e)

    return _import_response(result)


@router.post(
    "/bulk-csv",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=_json_body_schema(BulkCsvRequest),
)
async def bulk_import_csv(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Import one chunk of members from CSV text (organization, school, member_name, submission_url)."""
    service = MemberImportService(db, settings)
    try:
        payload = BulkCsvRequest.model_validate(await read_json_body(request, settings))
        DuplicatePolicy.parse(payload.duplicate_handling)
        result = service.import_csv(_csv_text(payload.csv_data), payload.duplicate_handling)
    except MemberImportError as e:
        logger.warning(f"CSV import rejected ({e.status_code}): {e.message}")
        return _error_response(e)

    return _import_response(result)


def _parse_upload(filename: str, content: bytes) -> tuple[ImportSource, list[Any]]:
    """Turn an uploaded CSV or JSON file into import records."""
    lowered = filename.lower()
    if lowered.endswith(".csv"):
        return ImportSource.csv, parse_member_csv(content)

    if lowered.endswith(".json"):
        try:
            data = json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"Failed to parse JSON file: {e}") from e
        if isinstance(data, dict):
            data = data.get("members")
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ValidationError("JSON file must contain a list of member objects")
        return ImportSource.json, data

    raise ValidationError("Invalid file type. Please upload a CSV or JSON file.")


def _history_status(result: ChunkedImportResult) -> ImportStatus:
    if result.chunks_failed == 0:
        return ImportStatus.success
    if result.chunks_succeeded == 0:
        return ImportStatus.failed
    return ImportStatus.partial


@router.post("/bulk-upload", response_model=BulkUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_members_file(
    request: Request,
    file: UploadFile = File(..., description="CSV or JSON file of members"),
    duplicate_handling: str = Form("skip", alias="duplicateHandling"),
    chunk_size: Optional[int] = Form(None, alias="chunkSize"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Import a member file chunk by chunk.

    Each chunk is committed independently; failed chunks are reported in
    `errors` and do not undo earlier chunks. An ImportHistory row is
    written for every upload.
    """
    filename = file.filename or "unknown"
    service = MemberImportService(db, settings)

    try:
        check_payload_size(_content_length(request), settings)
        policy = DuplicatePolicy.parse(duplicate_handling)
        content = await file.read()
        check_payload_size(len(content), settings)
        source, records = _parse_upload(filename, content)
        result = service.import_in_chunks(records, policy, chunk_size)
    except MemberImportError as e:
        logger.warning(f"Upload of {filename!r} rejected ({e.status_code}): {e.message}")
        if e.status_code == status.HTTP_400_BAD_REQUEST:
            # Record failed import
            history = ImportHistory(
                source=ImportSource.json if filename.lower().endswith(".json") else ImportSource.csv,
                status=ImportStatus.failed,
                original_filename=filename,
                duplicate_handling=duplicate_handling[:20],
                error_message=e.message,
            )
            db.add(history)
            db.commit()
        return _error_response(e)

    history = ImportHistory(
        source=source,
        status=_history_status(result),
        original_filename=filename,
        duplicate_handling=policy.value,
        records_parsed=result.records_total,
        organizations_created=result.stats.organizations_created,
        schools_created=result.stats.schools_created,
        members_created=result.stats.members_created,
        duplicates_skipped=result.stats.duplicates_skipped,
        duplicates_updated=result.stats.duplicates_updated,
        chunks_total=result.chunks_total,
        chunks_failed=result.chunks_failed,
        error_message="\n".join(
            f"Chunk {err.chunk_index} (rows {err.first_row}-{err.last_row}): {err.message}"
            for err in result.errors
        ) or None,
    )
    db.add(history)
    db.commit()

    errors = [
        {
            "chunk": err.chunk_index,
            "firstRow": err.first_row,
            "lastRow": err.last_row,
            "error": err.message,
            "status": err.status_code,
        }
        for err in result.errors
    ]

    if result.chunks_succeeded == 0:
        first = result.errors[0]
        return JSONResponse(
            content={"error": first.message, "errors": errors, "importId": str(history.id)},
            status_code=first.status_code,
        )

    return {
        "message": (
            f"{len(result.members)} members processed successfully "
            f"({result.chunks_succeeded}/{result.chunks_total} chunks)"
        ),
        "data": [MemberResponse.model_validate(member) for member in result.members],
        "stats": result.stats.to_dict(),
        "importId": history.id,
        "chunksTotal": result.chunks_total,
        "chunksFailed": result.chunks_failed,
        "errors": errors,
    }


@router.get("/bulk-upload/history", response_model=list[ImportHistoryResponse])
async def get_import_history(db: Session = Depends(get_db)):
    """List previous uploads, newest first."""
    return db.query(ImportHistory).order_by(ImportHistory.imported_at.desc()).all()
