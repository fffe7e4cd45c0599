"""Address model — a payment destination owned by an account."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payid_server.engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payid_server.engine.models.account import Account


class Address(Base, TimestampMixin):
    """One (payment network, environment) destination of a PayID.

    ``details`` is stored verbatim as JSON. ``position`` keeps the order
    the addresses were submitted in.
    """

    __tablename__ = "addresses"
    __table_args__ = (
        UniqueConstraint(
            "account_id",
            "payment_network",
            "environment",
            name="uq_addresses_account_network_environment",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payment_network: Mapped[str] = mapped_column(String(64), nullable=False)
    environment: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(nullable=False)

    account: Mapped[Account] = relationship("Account", back_populates="addresses")

    def __repr__(self) -> str:
        return f"<Address {self.payment_network}/{self.environment}>"
