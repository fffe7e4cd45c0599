"""Private API request/response Pydantic schemas.

These are the *API-layer* schemas that define the HTTP contract. The
engine works on :mod:`payid_server.payid.models` dataclasses; the route
code maps between the two.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from payid_server.payid.models import PAYID_MAX_LENGTH, AddressEntry, PayIDRecord, SanitizedPayID


class AddressSchema(BaseModel):
    """One address entry — ``{paymentNetwork, environment?, details}``."""

    model_config = ConfigDict(populate_by_name=True)

    payment_network: str = Field(alias="paymentNetwork", min_length=1, max_length=64)
    environment: str | None = Field(default=None, min_length=1, max_length=64)
    details: dict[str, Any]

    def to_entry(self) -> AddressEntry:
        return AddressEntry(
            payment_network=self.payment_network,
            environment=self.environment,
            details=self.details,
        )


class PayIDRecordSchema(BaseModel):
    """POST /users and PUT /users/{payId} body."""

    model_config = ConfigDict(populate_by_name=True)

    pay_id: str = Field(alias="payId", max_length=PAYID_MAX_LENGTH)
    addresses: list[AddressSchema]

    @field_validator("pay_id", mode="before")
    @classmethod
    def _check_delimiter(cls, value: Any) -> Any:
        # Malformed PayIDs fail with their fixed message before the length rule.
        if isinstance(value, str):
            SanitizedPayID.from_string(value)
        return value

    def to_record(self) -> PayIDRecord:
        return PayIDRecord(
            pay_id=self.pay_id,
            addresses=tuple(address.to_entry() for address in self.addresses),
        )


def record_body(record: PayIDRecord) -> dict[str, Any]:
    """Serialise a record for responses; ``environment`` is omitted when absent."""
    addresses: list[dict[str, Any]] = []
    for entry in record.addresses:
        body: dict[str, Any] = {"paymentNetwork": entry.payment_network}
        if entry.environment is not None:
            body["environment"] = entry.environment
        body["details"] = entry.details
        addresses.append(body)
    return {"payId": record.pay_id, "addresses": addresses}
