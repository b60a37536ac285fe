"""
Index Cache

This module implements the in-memory index: a snapshot of every chunk record
in the durable store, rebuilt wholesale whenever it is considered stale.

Staleness
---------
A snapshot is stale when any of the following holds:
- it was never loaded (or was invalidated),
- it is older than the configured time-to-live,
- the durable corpus version differs from the version it was built at,
- the caller forces a rebuild.

The version check is a pull: each process polls the counter on access, so
independent processes sharing one store converge without any notification
channel between them.

Rebuild Protocol
----------------
The new snapshot is built completely before it replaces the old one with a
single reference assignment. Readers therefore see either the old or the new
snapshot, never a partial one. A failed scan leaves the previous snapshot in
place.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..core.errors import StoreUnavailableError
from ..corpus.version import read_version
from ..store.base import KVEntry, KVStore
from ..store.keys import CHUNK_PREFIX
from .models import EMPTY_SNAPSHOT, IndexedChunk, IndexSnapshot

logger = logging.getLogger("rag.cache")


class IndexCache:
    """
    Version- and time-gated materialization of the chunk store.

    One instance is owned per process (see `api.dependencies`), but the class
    holds no global state, so tests can build isolated instances over any
    `KVStore`.
    """

    def __init__(
        self,
        store: KVStore,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Parameters
        ----------
        store : KVStore
            Durable store to scan.
        ttl_seconds : float
            Maximum snapshot age before a rebuild is due.
        clock : Callable[[], float]
            Wall-clock source in seconds.
        """
        self._store = store
        self._ttl = ttl_seconds
        self._clock = clock

        self._snapshot: IndexSnapshot = EMPTY_SNAPSHOT
        self._version_seen: Optional[int] = None
        self.rebuild_count = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    async def refresh(self, force: bool = False) -> IndexSnapshot:
        """
        Rebuild the snapshot if it is stale (or `force` is set) and return
        the current snapshot.

        Raises
        ------
        StoreUnavailableError
            If the store cannot be read. The previous snapshot is kept.
        """
        now = self._clock()
        version = await read_version(self._store)

        if not force and not self._is_stale(now, version):
            return self._snapshot

        return await self._rebuild(version, now)

    async def ensure_fresh(self) -> IndexSnapshot:
        """
        Lazy reader path.

        Like `refresh()`, but when the store is unreachable and a non-empty
        snapshot is already held, that snapshot is served instead of failing.
        """
        try:
            return await self.refresh()
        except StoreUnavailableError:
            if not self._snapshot:
                raise
            logger.warning(
                "Store unavailable; serving last good snapshot (version=%d, chunks=%d)",
                self._snapshot.version,
                len(self._snapshot),
            )
            return self._snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot. The next access rebuilds."""
        self._snapshot = EMPTY_SNAPSHOT
        self._version_seen = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_stale(self, now: float, version: int) -> bool:
        built_at = self._snapshot.built_at
        if built_at is None:
            return True
        if now - built_at > self._ttl:
            return True
        return version != self._version_seen

    async def _rebuild(self, version: int, now: float) -> IndexSnapshot:
        entries = await self._store.list((CHUNK_PREFIX,))

        chunks: List[IndexedChunk] = []
        dimension: Optional[int] = None

        for entry in entries:
            chunk = self._to_chunk(entry)
            if chunk is None:
                continue

            if dimension is None:
                dimension = len(chunk.embedding)
            elif len(chunk.embedding) != dimension:
                logger.warning(
                    "Skipping chunk %s#%d: embedding dimension %d != %d",
                    chunk.doc_id,
                    chunk.index,
                    len(chunk.embedding),
                    dimension,
                )
                continue

            chunks.append(chunk)

        snapshot = IndexSnapshot.build(chunks, version=version, built_at=now)

        # Single assignment: readers never observe a partial snapshot
        self._snapshot = snapshot
        self._version_seen = version
        self.rebuild_count += 1

        logger.info(
            "Index rebuilt: version=%d chunks=%d",
            version,
            len(snapshot),
        )
        return snapshot

    @staticmethod
    def _to_chunk(entry: KVEntry) -> Optional[IndexedChunk]:
        """
        Reconstruct a chunk from a store entry keyed ``("pack", doc_id, i)``.

        Malformed entries are skipped.
        """
        key, value = entry
        if (
            len(key) != 3
            or key[0] != CHUNK_PREFIX
            or not isinstance(key[2], int)
            or not isinstance(value, dict)
        ):
            logger.warning("Skipping malformed chunk key: %r", key)
            return None

        if not (value.get("title") and value.get("text") and value.get("e")):
            logger.warning("Skipping incomplete chunk record: %r", key)
            return None

        try:
            return IndexedChunk(
                doc_id=str(key[1]),
                index=key[2],
                title=value["title"],
                text=value["text"],
                embedding=value["e"],
            )
        except ValidationError:
            logger.warning("Skipping invalid chunk record: %r", key)
            return None
