"""PayIDError — base exception class for all PayID server errors."""

from __future__ import annotations

import enum
from http import HTTPStatus
from typing import Any


class PayIDError(Exception):
    """Base error for all PayID operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "payid-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @property
    def error(self) -> str:
        """HTTP reason phrase for :attr:`status_code` (e.g. ``"Not Found"``)."""
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return "Error"

    def to_response(self) -> dict[str, Any]:
        """Render the caller-facing error body."""
        return {
            "statusCode": self.status_code,
            "error": self.error,
            "message": self.message,
        }


class MalformedReason(enum.StrEnum):
    """Why an identifier failed validation."""

    MISSING_DELIMITER = "missing delimiter"
    MULTIPLE_DELIMITERS = "multiple delimiters"


class MalformedPayIDError(PayIDError):
    """Identifier does not contain exactly one delimiter."""

    def __init__(self, message: str, *, reason: MalformedReason) -> None:
        super().__init__(message, status_code=400, code="malformed-payid")
        self.reason = reason


class PayIDNotFoundError(PayIDError):
    """No record is stored under the requested PayID."""

    def __init__(self, pay_id: str) -> None:
        super().__init__(
            f"No information could be found for the PayID {pay_id}.",
            status_code=404,
            code="payid-not-found",
        )
        self.pay_id = pay_id


class PayIDConflictError(PayIDError):
    """The PayID is already claimed by another record."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=409, code="payid-conflict")


class DuplicateAddressError(PayIDError):
    """Two address entries in one record share a (network, environment) pair."""

    def __init__(self, payment_network: str, environment: str | None) -> None:
        if environment is None:
            message = (
                f"More than one address for paymentNetwork {payment_network} "
                "with no environment was provided."
            )
        else:
            message = (
                f"More than one address for paymentNetwork {payment_network} "
                f"and environment {environment} was provided."
            )
        super().__init__(message, status_code=400, code="duplicate-address")
        self.payment_network = payment_network
        self.environment = environment


class StorageUnavailableError(PayIDError):
    """The storage backend timed out or could not be reached."""

    def __init__(self, message: str = "The PayID datastore is currently unavailable.") -> None:
        super().__init__(message, status_code=503, code="storage-unavailable")


class APIVersionError(PayIDError):
    """The ``PayID-API-Version`` request header is missing or unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400, code="invalid-api-version")
