"""
Index Data Models

This module defines the in-memory form of a stored chunk and the immutable
snapshot the index cache serves to readers.

Each `IndexedChunk` corresponds to ONE durable chunk record: one window of a
document's text plus the embedding computed for exactly that text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, ConfigDict


class IndexedChunk(BaseModel):
    """
    A single chunk as materialized in the index cache.
    """

    doc_id: str = Field(
        ...,
        description="Identifier of the owning document.",
    )

    index: int = Field(
        ...,
        ge=0,
        description="Sequence index of this chunk within its document.",
    )

    title: str = Field(
        ...,
        min_length=1,
        description="Denormalized copy of the owning document's title.",
    )

    text: str = Field(
        ...,
        min_length=1,
        description="Raw text content of this chunk.",
    )

    embedding: List[float] = Field(
        ...,
        min_length=1,
        description="Embedding vector of `text`.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


@dataclass(frozen=True, eq=False)
class IndexSnapshot:
    """
    An immutable view of every chunk in the store at some corpus version.

    `matrix` holds the chunk embeddings row by row in `chunks` order, and
    `norms` their L2 norms, so scoring is a single matrix product.
    """

    chunks: Tuple[IndexedChunk, ...] = ()
    version: int = 0
    built_at: Optional[float] = None
    matrix: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)), repr=False)
    norms: np.ndarray = field(default_factory=lambda: np.zeros(0), repr=False)

    @classmethod
    def build(
        cls,
        chunks: List[IndexedChunk],
        version: int,
        built_at: float,
    ) -> "IndexSnapshot":
        if chunks:
            matrix = np.asarray([c.embedding for c in chunks], dtype=np.float64)
        else:
            matrix = np.zeros((0, 0))
        return cls(
            chunks=tuple(chunks),
            version=version,
            built_at=built_at,
            matrix=matrix,
            norms=np.linalg.norm(matrix, axis=1) if chunks else np.zeros(0),
        )

    @property
    def is_loaded(self) -> bool:
        return self.built_at is not None

    @property
    def dimension(self) -> int:
        return int(self.matrix.shape[1]) if self.chunks else 0

    def __len__(self) -> int:
        return len(self.chunks)

    def __bool__(self) -> bool:
        # An empty snapshot (never loaded, invalidated or empty corpus) is falsy
        return bool(self.chunks)

    def titles(self) -> List[str]:
        """Distinct titles in first-occurrence order."""
        return list(dict.fromkeys(c.title for c in self.chunks))


EMPTY_SNAPSHOT = IndexSnapshot()
