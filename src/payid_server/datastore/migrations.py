"""Schema bootstrap.

The server creates any missing tables at start-up so a fresh SQLite file
works out of the box. Schema changes on existing databases go through the
Alembic scripts under ``alembic/``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payid_server.engine.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def run_auto_migrate(engine: AsyncEngine) -> None:
    """Create the ``accounts`` and ``addresses`` tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Schema ready: %s", ", ".join(sorted(Base.metadata.tables)))
