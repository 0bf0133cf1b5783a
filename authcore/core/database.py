"""Account store connection: async engine, sessions and the reconnect loop."""

import asyncio
import enum
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authcore.core.config import Settings
from authcore.core.errors import StoreUnavailable
from authcore.models.base import Base

logger = logging.getLogger(__name__)


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class StoreConnection:
    """
    Process-wide handle on the account store.

    The connection state is written by the retry loop and report_failure;
    request handlers read ``state`` / ``is_connected`` and get StoreUnavailable
    from ``session()`` while the store is down instead of waiting for it.
    """

    def __init__(
        self,
        url: str,
        retry_delay: float = 5.0,
        create_schema: bool = True,
        echo: bool = False,
    ) -> None:
        self.url = url
        self.retry_delay = retry_delay
        self.create_schema = create_schema
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._state = ConnectionState.DISCONNECTED
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoreConnection":
        return cls(
            settings.DATABASE_URL,
            retry_delay=settings.STORE_RETRY_DELAY_SEC,
            create_schema=settings.STORE_CREATE_SCHEMA,
            echo=settings.DEBUG,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def engine(self) -> AsyncEngine:
        # Created lazily so building the app never touches the driver.
        if self._engine is None:
            self._engine = create_async_engine(
                self.url, pool_pre_ping=True, echo=self.echo
            )
            self._sessionmaker = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._engine

    async def connect_once(self) -> None:
        """Open a connection, check it answers and ensure the schema exists."""
        self._state = ConnectionState.CONNECTING
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if self.create_schema:
                    await conn.run_sync(Base.metadata.create_all)
        except BaseException:
            self._state = ConnectionState.DISCONNECTED
            raise
        self._state = ConnectionState.CONNECTED
        logger.info("Account store connected")

    async def connect_with_retry(self) -> None:
        """Try to connect until it succeeds, sleeping retry_delay between attempts."""
        while True:
            try:
                await self.connect_once()
                return
            except (SQLAlchemyError, OSError) as e:
                logger.error("Account store connection error: %s", e)
            except Exception:
                logger.exception("Unexpected error while connecting to the account store")
            logger.info("Retrying connection in %s seconds...", self.retry_delay)
            await asyncio.sleep(self.retry_delay)

    def start(self) -> "asyncio.Task[None]":
        """Run the retry loop in the background unless it is already running."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(
                self.connect_with_retry(), name="store-connect"
            )
        return self._task

    def report_failure(self, exc: BaseException) -> None:
        """
        Called on a connection-level error during a request.

        Drops the state to DISCONNECTED so later requests fail fast, then
        restarts the retry loop unless one is already running.
        """
        logger.warning("Account store connection lost: %s", exc)
        if self._task is not None and not self._task.done():
            return
        self._state = ConnectionState.DISCONNECTED
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._task = loop.create_task(
            self.connect_with_retry(), name="store-reconnect"
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, or raise StoreUnavailable while disconnected."""
        if not self.is_connected or self._sessionmaker is None:
            raise StoreUnavailable()
        async with self._sessionmaker() as session:
            yield session

    async def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self._engine is not None:
            await self._engine.dispose()
        self._state = ConnectionState.DISCONNECTED
