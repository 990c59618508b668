"""
Pydantic schemas for Member and bulk member import.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.import_history import ImportSource, ImportStatus
from app.schemas.organization import OrganizationSummary
from app.schemas.school import SchoolSummary


class MemberCreate(BaseModel):
    """Schema for creating a Member."""
    name: Optional[str] = Field(None, max_length=300)
    school_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    submission_url: Optional[str] = None


class MemberUpdate(MemberCreate):
    """Schema for updating a Member."""
    pass


class MemberResponse(BaseModel):
    """Schema for Member response, enriched with school and organization."""
    id: UUID
    name: str
    school_id: UUID
    organization_id: UUID
    submission_url: str
    created_at: datetime
    school: Optional[SchoolSummary] = None
    organization: Optional[OrganizationSummary] = None

    class Config:
        from_attributes = True


# Bulk import


class BulkImportRequest(BaseModel):
    """
    Body of POST /api/members/bulk. Either members or csvData is used.

    Fields are left untyped; shape and policy are checked by the import
    service so that bad input answers 400 {"error"} rather than 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    members: Any = None
    csv_data: Any = Field(None, alias="csvData")
    duplicate_handling: Any = Field("skip", alias="duplicateHandling")


class BulkCsvRequest(BaseModel):
    """Body of POST /api/members/bulk-csv."""
    model_config = ConfigDict(populate_by_name=True)

    csv_data: Any = Field(None, alias="csvData")
    duplicate_handling: Any = Field("skip", alias="duplicateHandling")


class ImportStatsResponse(BaseModel):
    """Aggregate statistics of a bulk import."""
    organizationsCreated: int = 0
    schoolsCreated: int = 0
    membersCreated: int = 0
    duplicatesSkipped: int = 0
    duplicatesUpdated: int = 0


class BulkImportResponse(BaseModel):
    """Successful bulk import response."""
    message: str
    data: list[MemberResponse]
    stats: ImportStatsResponse


class ChunkErrorResponse(BaseModel):
    """A failed chunk of a chunked upload."""
    chunk: int
    firstRow: int
    lastRow: int
    error: str
    status: int


class BulkUploadResponse(BulkImportResponse):
    """Chunked upload response."""
    importId: UUID
    chunksTotal: int
    chunksFailed: int
    errors: list[ChunkErrorResponse]


class ImportHistoryResponse(BaseModel):
    """Import history entry."""
    id: UUID
    source: ImportSource
    status: ImportStatus
    original_filename: str
    duplicate_handling: str
    records_parsed: int
    organizations_created: int
    schools_created: int
    members_created: int
    duplicates_skipped: int
    duplicates_updated: int
    chunks_total: int
    chunks_failed: int
    error_message: Optional[str] = None
    imported_at: datetime
    total_processed: int

    class Config:
        from_attributes = True
