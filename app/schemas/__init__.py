"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.organization import (
    OrganizationCreate,
    OrganizationUpdate,
    OrganizationResponse,
    OrganizationSummary,
)
from app.schemas.school import (
    SchoolCreate,
    SchoolUpdate,
    SchoolResponse,
    SchoolSummary,
)
from app.schemas.member import (
    MemberCreate,
    MemberUpdate,
    MemberResponse,
    BulkImportRequest,
    BulkCsvRequest,
    BulkImportResponse,
    BulkUploadResponse,
    ChunkErrorResponse,
    ImportStatsResponse,
    ImportHistoryResponse,
)

__all__ = [
    # Organizations
    "OrganizationCreate",
    "OrganizationUpdate",
    "OrganizationResponse",
    "OrganizationSummary",
    # Schools
    "SchoolCreate",
    "SchoolUpdate",
    "SchoolResponse",
    "SchoolSummary",
    # Members
    "MemberCreate",
    "MemberUpdate",
    "MemberResponse",
    # Bulk import
    "BulkImportRequest",
    "BulkCsvRequest",
    "BulkImportResponse",
    "BulkUploadResponse",
    "ChunkErrorResponse",
    "ImportStatsResponse",
    "ImportHistoryResponse",
]
