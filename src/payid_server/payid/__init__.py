"""PayID domain models."""

from __future__ import annotations

from payid_server.payid.models import (
    PAYID_DELIMITER,
    AddressEntry,
    PayIDRecord,
    SanitizedPayID,
    UpsertOutcome,
    UpsertResult,
    validate_addresses,
)

__all__ = [
    "PAYID_DELIMITER",
    "AddressEntry",
    "PayIDRecord",
    "SanitizedPayID",
    "UpsertOutcome",
    "UpsertResult",
    "validate_addresses",
]
