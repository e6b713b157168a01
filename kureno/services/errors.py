"""Shared exception hierarchy for Kureno admin services.

Every error carries the HTTP status the API layer answers with, so routes
never translate exceptions by hand.
"""


class KurenoError(Exception):
    """Base exception for admin data services."""

    status_code: int = 500


# ── Request-fatal ─────────────────────────────────────────────────────────────


class UnauthorizedError(KurenoError):
    """Caller is not an authenticated administrator."""

    status_code = 401


class InvalidRequestError(KurenoError):
    """Request parameters are missing or malformed."""

    status_code = 400


class UnsupportedFormatError(InvalidRequestError):
    """CSV requested for a multi-entity export."""


class UnsupportedEntityError(InvalidRequestError):
    """Entity cannot be used for the requested operation."""


class MalformedFileError(InvalidRequestError):
    """Uploaded file could not be decoded or holds no records."""


class InvalidActionError(InvalidRequestError):
    """Unknown bulk action name."""


class PayloadTooLargeError(KurenoError):
    """Upload exceeds the configured size limit."""

    status_code = 413


class NoDataError(KurenoError):
    """Export matched no rows."""

    status_code = 404


# ── Record-level (import) ─────────────────────────────────────────────────────


class RecordError(KurenoError):
    """A single record was rejected. Collected per record during import."""

    status_code = 400


class ValidationError(RecordError):
    """Record failed shape checks or references a missing row."""


class DuplicateKeyError(RecordError):
    """Natural unique key already exists."""

    status_code = 409


# ── Storage ───────────────────────────────────────────────────────────────────


class StorageError(KurenoError):
    """Underlying database failure. Details are logged, never returned."""

    status_code = 500


class ExportTimeoutError(StorageError):
    """Multi-entity export did not finish within the configured budget."""
