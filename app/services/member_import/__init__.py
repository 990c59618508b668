"""
Bulk member import for the membership portal.

Key Components:
- csv_parser: Turns CSV text into member import records
- EntityResolver: Finds or creates organizations and schools
- DuplicateReconciler: Applies the skip / update / error duplicate policy
- MemberImportService: Runs the pipeline per chunk and aggregates statistics
"""

from app.services.member_import.errors import (
    MemberImportError,
    ValidationError,
    PolicyViolation,
    ResolutionError,
    PayloadTooLarge,
    StoreError,
)
from app.services.member_import.records import (
    DuplicatePolicy,
    MemberImportRecord,
    ResolvedMember,
    ImportStats,
    ChunkError,
    ChunkedImportResult,
)
from app.services.member_import.csv_parser import (
    REQUIRED_COLUMNS,
    normalize_header,
    parse_csv,
    parse_member_csv,
)
from app.services.member_import.entity_resolver import EntityResolver, ResolvedEntities
from app.services.member_import.duplicate_reconciler import (
    DuplicateReconciler,
    ReconciliationResult,
    MemberUpdate,
)
from app.services.member_import.service import (
    MemberImportService,
    ImportResult,
    get_member_import_service,
)

__all__ = [
    # Exceptions
    "MemberImportError",
    "ValidationError",
    "PolicyViolation",
    "ResolutionError",
    "PayloadTooLarge",
    "StoreError",
    # Records
    "DuplicatePolicy",
    "MemberImportRecord",
    "ResolvedMember",
    "ImportStats",
    "ChunkError",
    "ChunkedImportResult",
    # CSV
    "REQUIRED_COLUMNS",
    "normalize_header",
    "parse_csv",
    "parse_member_csv",
    # Pipeline
    "EntityResolver",
    "ResolvedEntities",
    "DuplicateReconciler",
    "ReconciliationResult",
    "MemberUpdate",
    "MemberImportService",
    "ImportResult",
    "get_member_import_service",
]
