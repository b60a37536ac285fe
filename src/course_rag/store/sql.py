"""
SQL Store

SQLAlchemy async implementation of `KVStore`. Runs on PostgreSQL (asyncpg)
in deployment and on SQLite (aiosqlite) for local runs and tests.

Every operation uses its own short-lived session and commits before
returning, so a completed `put` is durable by the time the caller continues.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..core.errors import StoreUnavailableError
from .base import KVEntry, KVStore
from .keys import Key, decode_key, encode_key, scan_prefix
from .models import Base, KVEntryRecord

logger = logging.getLogger("rag.store")


def build_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """
    Create the async engine for `database_url`.

    Extra keyword arguments are passed through to `create_async_engine`.
    """
    kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(database_url, **kwargs)


class SqlKVStore(KVStore):
    """
    Durable key-value store on a single SQL table.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """
        Parameters
        ----------
        engine : AsyncEngine
            Engine bound to the target database. The store takes ownership and
            disposes it on `close()`.
        """
        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_all(self) -> None:
        """Create the backing table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(
                f"Failed to initialize store: {type(exc).__name__}"
            ) from exc

    async def close(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # KVStore API
    # ------------------------------------------------------------------

    async def get(self, key: Key) -> Optional[Any]:
        encoded = encode_key(key)
        try:
            async with self._session_factory() as session:
                record = await session.get(KVEntryRecord, encoded)
                return None if record is None else record.value
        except (SQLAlchemyError, OSError) as exc:
            raise self._unavailable("get", exc) from exc

    async def put(self, key: Key, value: Any) -> None:
        encoded = encode_key(key)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.merge(KVEntryRecord(key=encoded, value=value))
        except (SQLAlchemyError, OSError) as exc:
            raise self._unavailable("put", exc) from exc

    async def delete(self, key: Key) -> None:
        encoded = encode_key(key)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(KVEntryRecord).where(KVEntryRecord.key == encoded)
                    )
        except (SQLAlchemyError, OSError) as exc:
            raise self._unavailable("delete", exc) from exc

    async def list(self, prefix: Key) -> List[KVEntry]:
        start = scan_prefix(prefix)
        stmt = select(KVEntryRecord).order_by(KVEntryRecord.key)
        if start:
            # substr keeps the match case-sensitive on every backend (LIKE is not on SQLite)
            stmt = stmt.where(func.substr(KVEntryRecord.key, 1, len(start)) == start)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            raise self._unavailable("list", exc) from exc

        return [KVEntry(decode_key(r.key), r.value) for r in records]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _unavailable(operation: str, exc: Exception) -> StoreUnavailableError:
        logger.error(
            "Store %s failed (%s): %s",
            operation,
            type(exc).__name__,
            str(exc),
        )
        return StoreUnavailableError(
            f"Durable store {operation} failed: {type(exc).__name__}"
        )
