"""
Exceptions raised by the bulk member import pipeline.

Each error carries the HTTP status the routers answer with.
"""


class MemberImportError(Exception):
    """Base exception for bulk import errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MemberImportError):
    """Raised when the request is malformed or incomplete."""

    status_code = 400


class PolicyViolation(MemberImportError):
    """Raised when a duplicate member is found under the 'error' policy."""

    status_code = 400

    def __init__(self, message: str, member_name: str | None = None):
        super().__init__(message)
        self.member_name = member_name


class ResolutionError(MemberImportError):
    """Raised when a record's organization or school cannot be resolved after creation."""

    status_code = 500


class PayloadTooLarge(MemberImportError):
    """Raised when the request body exceeds the configured size ceiling."""

    status_code = 413


class StoreError(MemberImportError):
    """Raised when the database rejects a read or write. Message is passed through."""

    status_code = 500
