"""Predefined error instances for fixed-message failures."""

from __future__ import annotations

from payid_server.errors.payid_errors import (
    APIVersionError,
    MalformedPayIDError,
    MalformedReason,
    PayIDConflictError,
)

# -- Identifier validation -------------------------------------------------

ErrPayIDMissingDelimiter = MalformedPayIDError(
    'Bad input. PayIDs must contain a "$"',
    reason=MalformedReason.MISSING_DELIMITER,
)
ErrPayIDMultipleDelimiters = MalformedPayIDError(
    'Bad input. PayIDs must contain only one "$"',
    reason=MalformedReason.MULTIPLE_DELIMITERS,
)

# -- Conflict --------------------------------------------------------------

ErrPayIDConflict = PayIDConflictError("There already exists a user with the provided PayID")

# -- API version header ----------------------------------------------------

ErrMissingAPIVersion = APIVersionError("A PayID-API-Version header is required in the request.")
ErrInvalidAPIVersion = APIVersionError(
    "A PayID-API-Version header must be in the form YYYY-MM-DD."
)
