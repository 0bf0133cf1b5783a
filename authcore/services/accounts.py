"""Account store adapter: create and look up accounts by email or id."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.core.database import StoreConnection
from authcore.core.errors import DuplicateKeyError, StoreUnavailable
from authcore.models import Account

logger = logging.getLogger(__name__)


class AccountStore:
    """
    Thin async repository over the accounts table.

    The unique index on email is the authoritative duplicate guard: an insert
    that violates it raises DuplicateKeyError. Lost connections raise
    StoreUnavailable and hand the connection back to the retry loop.
    """

    def __init__(self, connection: StoreConnection) -> None:
        self._connection = connection

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._connection.session() as session:
                yield session
        except (OperationalError, InterfaceError, OSError) as e:
            self._connection.report_failure(e)
            raise StoreUnavailable() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                self._connection.report_failure(e)
                raise StoreUnavailable() from e
            raise

    async def create(self, account: Account) -> Account:
        """Insert a new account. Raises DuplicateKeyError if the email is taken."""
        async with self._session() as session:
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("Insert rejected by unique email constraint")
                raise DuplicateKeyError(account.email) from e
            return account

    async def find_by_email(self, email: str) -> Account | None:
        async with self._session() as session:
            result = await session.execute(select(Account).where(Account.email == email))
            return result.scalar_one_or_none()

    async def find_by_id(self, account_id: str) -> Account | None:
        async with self._session() as session:
            return await session.get(Account, account_id)
