"""
In-Memory Store

Process-local `KVStore` used by tests and single-process development runs.

Values are deep-copied on the way in and out, so callers observe the same
isolation they would get from a real persistent backend.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

from .base import KVEntry, KVStore
from .keys import Key, encode_key, scan_prefix


class MemoryKVStore(KVStore):

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[Key, Any]] = {}

    async def get(self, key: Key) -> Optional[Any]:
        entry = self._data.get(encode_key(key))
        if entry is None:
            return None
        return copy.deepcopy(entry[1])

    async def put(self, key: Key, value: Any) -> None:
        self._data[encode_key(key)] = (tuple(key), copy.deepcopy(value))

    async def delete(self, key: Key) -> None:
        self._data.pop(encode_key(key), None)

    async def list(self, prefix: Key) -> List[KVEntry]:
        start = scan_prefix(prefix)
        return [
            KVEntry(key, copy.deepcopy(value))
            for encoded, (key, value) in sorted(self._data.items())
            if encoded.startswith(start)
        ]

    def __len__(self) -> int:
        return len(self._data)
