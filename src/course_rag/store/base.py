"""
Durable Store Interface

The retrieval core treats persistence as an ordered, prefix-scannable
key-value store. Every backend implements this interface; the corpus and the
index cache only ever talk to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, NamedTuple, Optional

from .keys import Key


class KVEntry(NamedTuple):
    key: Key
    value: Any


class KVStore(ABC):
    """
    Asynchronous ordered key-value store.

    Implementations raise `StoreUnavailableError` when the backing storage
    cannot be reached. `list` returns entries in a stable, backend-defined
    order (encoded key order for the bundled backends).
    """

    @abstractmethod
    async def get(self, key: Key) -> Optional[Any]:
        """Return the value stored at `key`, or None."""

    @abstractmethod
    async def put(self, key: Key, value: Any) -> None:
        """Create or overwrite the value at `key`."""

    @abstractmethod
    async def delete(self, key: Key) -> None:
        """Delete `key`. Deleting a missing key is a no-op."""

    @abstractmethod
    async def list(self, prefix: Key) -> List[KVEntry]:
        """Return every entry whose key starts with `prefix`, in key order."""

    async def close(self) -> None:
        """Release backend resources."""
