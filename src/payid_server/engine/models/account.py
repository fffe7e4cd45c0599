"""Account model — one row per PayID."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payid_server.engine.models.base import Base, TimestampMixin
from payid_server.payid.models import PAYID_MAX_LENGTH

if TYPE_CHECKING:
    from payid_server.engine.models.address import Address


def _new_id() -> str:
    return str(uuid.uuid4())


class Account(Base, TimestampMixin):
    """A PayID and the address entries it owns.

    Renaming a PayID updates ``pay_id`` in place, so the row id and the
    owned addresses carry over.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    pay_id: Mapped[str] = mapped_column(
        String(PAYID_MAX_LENGTH),
        unique=True,
        nullable=False,
        index=True,
        comment="Normalized account$host",
    )

    addresses: Mapped[list[Address]] = relationship(
        "Address",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="Address.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Account {self.pay_id}>"
