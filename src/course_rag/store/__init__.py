"""
Store Package

Ordered, prefix-scannable key-value persistence for document metadata, chunk
records and the corpus version counter.
"""

from .base import KVEntry, KVStore
from .keys import Key, chunk_key, doc_meta_key, VERSION_KEY
from .memory import MemoryKVStore
from .sql import SqlKVStore, build_engine

__all__ = [
    "KVEntry",
    "KVStore",
    "Key",
    "chunk_key",
    "doc_meta_key",
    "VERSION_KEY",
    "MemoryKVStore",
    "SqlKVStore",
    "build_engine",
]
