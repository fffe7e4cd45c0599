"""PayID service — the identifier record store.

Validates PayIDs and manages their address sets:
- Validate a PayID (exactly one ``$``; normalized for key comparison)
- Get the record stored under a PayID
- Create a record (conflict if the PayID is taken)
- Upsert a record (update, rename, or create; conflict on a claimed PayID)
- Delete a record (idempotent)

Mutations run through ``Datastore.transaction`` (one write lock per store,
one database transaction), so the upsert decision and its write are never
interleaved with another writer.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import joinedload

from payid_server.engine.models.account import Account
from payid_server.engine.models.address import Address
from payid_server.errors.definitions import ErrPayIDConflict
from payid_server.errors.payid_errors import PayIDNotFoundError, StorageUnavailableError
from payid_server.payid.models import (
    AddressEntry,
    PayIDRecord,
    SanitizedPayID,
    UpsertOutcome,
    UpsertResult,
    validate_addresses,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Iterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from payid_server.engine.client import PayIDEngine

logger = logging.getLogger(__name__)


class PayIDService:
    """Business logic for PayID record management.

    Handles validation, lookup, creation, upsert and deletion of PayID
    records together with their address entries.
    """

    def __init__(self, engine: PayIDEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, pay_id: str) -> SanitizedPayID:
        """Validate and normalize a PayID.

        Args:
            pay_id: Raw PayID, e.g. ``alice$example.com``.

        Returns:
            The sanitized PayID used as the storage key.

        Raises:
            MalformedPayIDError: If the PayID has no ``$`` or more than one.
        """
        return SanitizedPayID.from_string(pay_id)

    async def get(self, pay_id: str) -> PayIDRecord:
        """Look up the record stored under a PayID.

        Args:
            pay_id: The PayID to resolve.

        Returns:
            The stored record with its full address list.

        Raises:
            MalformedPayIDError: If the PayID is malformed.
            PayIDNotFoundError: If nothing is stored under the PayID.
            StorageUnavailableError: If the datastore cannot be reached.
        """
        sanitized = self.validate(pay_id)

        with self._track("get"):
            async with self._storage_guard("get"), self._engine.datastore.session() as session:
                account = await self._find(session, sanitized.pay_id)
                record = _to_record(account) if account is not None else None

        if record is None:
            self._record_outcome("get", "not_found")
            logger.debug("PayID %s not found", sanitized)
            raise PayIDNotFoundError(sanitized.pay_id)

        self._record_outcome("get", "found")
        return record

    async def create(self, record: PayIDRecord) -> PayIDRecord:
        """Create a new record.

        Args:
            record: PayID and address entries to store.

        Returns:
            The stored record (the input with its PayID normalized).

        Raises:
            MalformedPayIDError: If the PayID is malformed.
            DuplicateAddressError: If two addresses share a network/environment pair.
            PayIDConflictError: If the PayID is already taken.
            StorageUnavailableError: If the datastore cannot be reached.
        """
        sanitized = self.validate(record.pay_id)
        validate_addresses(record.addresses)

        with self._track("create"):
            async with self._storage_guard("create"):
                try:
                    async with self._engine.datastore.transaction() as session:
                        if await self._find(session, sanitized.pay_id) is not None:
                            raise ErrPayIDConflict

                        account = Account(
                            pay_id=sanitized.pay_id,
                            addresses=_to_rows(record.addresses),
                        )
                        session.add(account)
                        await session.flush()
                        stored = _to_record(account)
                except IntegrityError as exc:
                    # Another process claimed the PayID between check and commit.
                    raise ErrPayIDConflict from exc

        self._record_outcome("create", "created")
        logger.info("Created PayID %s with %d address(es)", sanitized, len(stored.addresses))
        return stored

    async def upsert(self, target: str, record: PayIDRecord) -> UpsertResult:
        """Update the record at *target*, renaming it if needed, or create one.

        Outcomes:
        - A record exists at *target*: its addresses are replaced and, if
          ``record.pay_id`` differs, it is moved to that PayID. ``UPDATED``.
        - No record exists at *target*: a record is created under
          ``record.pay_id`` (not *target*). ``CREATED``.

        Args:
            target: The PayID being updated (request path).
            record: The desired final record (request body).

        Returns:
            The outcome together with the final stored record.

        Raises:
            MalformedPayIDError: If *target* or ``record.pay_id`` is malformed.
            DuplicateAddressError: If two addresses share a network/environment pair.
            PayIDConflictError: If ``record.pay_id`` differs from *target* and
                already belongs to another record.
            StorageUnavailableError: If the datastore cannot be reached.
        """
        current = self.validate(target)
        desired = self.validate(record.pay_id)
        validate_addresses(record.addresses)
        renaming = desired.pay_id != current.pay_id

        with self._track("upsert"):
            async with self._storage_guard("upsert"):
                try:
                    async with self._engine.datastore.transaction() as session:
                        existing = await self._find(session, current.pay_id)
                        if renaming and await self._find(session, desired.pay_id) is not None:
                            raise ErrPayIDConflict

                        if existing is None:
                            outcome = UpsertOutcome.CREATED
                            account = Account(
                                pay_id=desired.pay_id,
                                addresses=_to_rows(record.addresses),
                            )
                            session.add(account)
                        else:
                            outcome = UpsertOutcome.UPDATED
                            account = existing
                            # Flush the removals first so re-used (network, environment)
                            # pairs don't trip the unique constraint.
                            account.addresses.clear()
                            await session.flush()
                            account.pay_id = desired.pay_id
                            account.addresses.extend(_to_rows(record.addresses))

                        await session.flush()
                        stored = _to_record(account)
                except IntegrityError as exc:
                    raise ErrPayIDConflict from exc

        self._record_outcome("upsert", outcome.value)
        if outcome is UpsertOutcome.CREATED:
            logger.info("Created PayID %s via update of %s", desired, current)
        elif renaming:
            logger.info("Renamed PayID %s to %s", current, desired)
        else:
            logger.info("Updated PayID %s", desired)
        return UpsertResult(outcome=outcome, record=stored)

    async def delete(self, pay_id: str) -> bool:
        """Delete the record stored under a PayID.

        Deleting a PayID that doesn't exist is a no-op, not an error.

        Args:
            pay_id: The PayID to delete.

        Returns:
            True if a record was removed, False if there was nothing to remove.

        Raises:
            MalformedPayIDError: If the PayID is malformed.
            StorageUnavailableError: If the datastore cannot be reached.
        """
        sanitized = self.validate(pay_id)

        with self._track("delete"):
            async with (
                self._storage_guard("delete"),
                self._engine.datastore.transaction() as session,
            ):
                account = await self._find(session, sanitized.pay_id)
                if account is not None:
                    await session.delete(account)

        if account is None:
            self._record_outcome("delete", "noop")
            logger.debug("Delete of unknown PayID %s ignored", sanitized)
            return False

        self._record_outcome("delete", "deleted")
        logger.info("Deleted PayID %s", sanitized)
        return True

    async def count_addresses(self) -> dict[tuple[str, str | None], int]:
        """Count stored address entries per (payment network, environment).

        Returns:
            Mapping of composite key to number of entries across all PayIDs.
        """
        stmt = select(
            Address.payment_network,
            Address.environment,
            func.count(Address.id),
        ).group_by(Address.payment_network, Address.environment)

        async with self._storage_guard("count"), self._engine.datastore.session() as session:
            result = await session.execute(stmt)
            return {(network, env): count for network, env, count in result.all()}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _find(session: AsyncSession, pay_id: str) -> Account | None:
        """Load an account and its addresses in a single statement."""
        result = await session.execute(
            select(Account)
            .options(joinedload(Account.addresses))
            .where(Account.pay_id == pay_id)
        )
        return result.unique().scalar_one_or_none()

    @contextlib.asynccontextmanager
    async def _storage_guard(self, operation: str) -> AsyncIterator[None]:
        """Translate backend connectivity failures into ``StorageUnavailableError``."""
        try:
            yield
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            logger.warning("Datastore unavailable during %s: %s", operation, exc)
            raise StorageUnavailableError from exc
        except DBAPIError as exc:
            if not exc.connection_invalidated:
                raise
            logger.warning("Datastore connection lost during %s: %s", operation, exc)
            raise StorageUnavailableError from exc

    def _track(self, operation: str) -> contextlib.AbstractContextManager[None]:
        metrics = self._engine.metrics
        if metrics is None:
            return contextlib.nullcontext()
        return metrics.track_operation(operation)

    def _record_outcome(self, operation: str, outcome: str) -> None:
        metrics = self._engine.metrics
        if metrics is not None:
            metrics.record_outcome(operation, outcome)


def _to_rows(addresses: Iterable[AddressEntry]) -> list[Address]:
    return [
        Address(
            position=position,
            payment_network=entry.payment_network,
            environment=entry.environment,
            details=dict(entry.details),
        )
        for position, entry in enumerate(addresses)
    ]


def _to_record(account: Account) -> PayIDRecord:
    return PayIDRecord(
        pay_id=account.pay_id,
        addresses=tuple(_iter_entries(account.addresses)),
    )


def _iter_entries(rows: Iterable[Address]) -> Iterator[AddressEntry]:
    for row in sorted(rows, key=lambda r: r.position):
        yield AddressEntry(
            payment_network=row.payment_network,
            environment=row.environment,
            details=row.details,
        )
