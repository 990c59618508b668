"""
Application services for the membership portal.
"""

from app.services.member_import import (
    MemberImportService,
    MemberImportError,
    ValidationError,
    PolicyViolation,
    ResolutionError,
    PayloadTooLarge,
    StoreError,
    DuplicatePolicy,
    get_member_import_service,
)

__all__ = [
    # Bulk import
    "MemberImportService",
    "get_member_import_service",
    "DuplicatePolicy",
    # Errors
    "MemberImportError",
    "ValidationError",
    "PolicyViolation",
    "ResolutionError",
    "PayloadTooLarge",
    "StoreError",
]
