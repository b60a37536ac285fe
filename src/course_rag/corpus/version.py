"""
Corpus version counter.

A single monotonically increasing integer in the durable store. Writers bump
it once per completed mutation; every index cache compares it against the
version it last observed to decide whether to rebuild.
"""

from __future__ import annotations

import logging

from ..store.base import KVStore
from ..store.keys import VERSION_KEY

logger = logging.getLogger("rag.version")


async def read_version(store: KVStore) -> int:
    """Return the current corpus version (0 when never bumped)."""
    value = await store.get(VERSION_KEY)
    return int(value) if value is not None else 0


async def bump_version(store: KVStore) -> int:
    """
    Increment the corpus version and return the new value.

    Must only be called after every durable write of the enclosing mutation
    has completed. Concurrent bumps from different writers may collapse into
    one increment; any change still invalidates every cache that saw the old
    value.
    """
    version = await read_version(store) + 1
    await store.put(VERSION_KEY, version)
    logger.info("Corpus version bumped to %d", version)
    return version
