"""PayID error types and predefined error instances."""

from __future__ import annotations

from payid_server.errors.payid_errors import (
    APIVersionError,
    DuplicateAddressError,
    MalformedPayIDError,
    MalformedReason,
    PayIDConflictError,
    PayIDError,
    PayIDNotFoundError,
    StorageUnavailableError,
)

__all__ = [
    "APIVersionError",
    "DuplicateAddressError",
    "MalformedPayIDError",
    "MalformedReason",
    "PayIDConflictError",
    "PayIDError",
    "PayIDNotFoundError",
    "StorageUnavailableError",
]
