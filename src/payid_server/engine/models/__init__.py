"""ORM models — importing this package registers every table with ``Base``."""

from payid_server.engine.models.account import Account
from payid_server.engine.models.address import Address
from payid_server.engine.models.base import Base, TimestampMixin

__all__ = ["Account", "Address", "Base", "TimestampMixin"]
