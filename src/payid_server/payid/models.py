"""PayID data models.

Dataclasses representing the directory's domain structures:
- SanitizedPayID — parsed and normalized ``account$host``
- AddressEntry — one payment destination under a PayID
- PayIDRecord — a PayID with its ordered address list
- UpsertOutcome / UpsertResult — tagged result of an update request
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from payid_server.errors.definitions import (
    ErrPayIDMissingDelimiter,
    ErrPayIDMultipleDelimiters,
)
from payid_server.errors.payid_errors import DuplicateAddressError

if TYPE_CHECKING:
    from collections.abc import Iterable

PAYID_DELIMITER = "$"
PAYID_MAX_LENGTH = 200


@dataclass(frozen=True, slots=True)
class SanitizedPayID:
    """A validated and normalized PayID.

    ``pay_id`` is the full ``account$host`` string used as the storage key.
    Either side of the ``$`` may be empty.
    """

    pay_id: str

    @classmethod
    def from_string(cls, raw: str) -> SanitizedPayID:
        """Parse and sanitize a PayID string.

        The delimiter count is checked on the raw input. The result is
        stripped of surrounding whitespace and lowercased.

        Raises:
            MalformedPayIDError: If the string has zero or several ``$``.
        """
        count = raw.count(PAYID_DELIMITER)
        if count == 0:
            raise ErrPayIDMissingDelimiter
        if count > 1:
            raise ErrPayIDMultipleDelimiters

        return cls(pay_id=raw.strip().lower())

    def __str__(self) -> str:
        return self.pay_id


@dataclass(frozen=True, slots=True)
class AddressEntry:
    """One payment destination.

    ``details`` is opaque to the engine and stored verbatim.
    """

    payment_network: str
    environment: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str | None]:
        """Composite key unique within a record; ``None`` is a key value."""
        return (self.payment_network, self.environment)


@dataclass(frozen=True, slots=True)
class PayIDRecord:
    """A PayID together with its ordered address entries."""

    pay_id: str
    addresses: tuple[AddressEntry, ...] = ()


class UpsertOutcome(enum.StrEnum):
    """Which branch an upsert took."""

    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class UpsertResult:
    """Final stored record plus the branch that produced it."""

    outcome: UpsertOutcome
    record: PayIDRecord

    @property
    def created(self) -> bool:
        return self.outcome is UpsertOutcome.CREATED


def validate_addresses(addresses: Iterable[AddressEntry]) -> None:
    """Reject address lists that repeat a (network, environment) pair.

    Raises:
        DuplicateAddressError: On the first repeated composite key.
    """
    seen: set[tuple[str, str | None]] = set()
    for entry in addresses:
        if entry.key in seen:
            raise DuplicateAddressError(entry.payment_network, entry.environment)
        seen.add(entry.key)
