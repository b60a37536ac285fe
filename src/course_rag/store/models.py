"""
SQLAlchemy Models

Defines the single table backing `SqlKVStore`: one row per store key, with the
encoded key as primary key and the record as a JSON document.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Scans ORDER BY key and must match code-point order of the encoded keys.
# SQLite compares TEXT with BINARY already; PostgreSQL needs the "C" collation.
KeyText = Text().with_variant(Text(collation="C"), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class KVEntryRecord(Base):
    """
    A single durable key-value entry.

    `key` holds the output of `course_rag.store.keys.encode_key`.
    """
    __tablename__ = "kv_entry"

    key: Mapped[str] = mapped_column(KeyText, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
