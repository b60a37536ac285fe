"""
Retrieval Engine

This module scores every cached chunk against a query embedding and applies
the selection policy that decides what counts as "found".

Selection Policy
----------------
1. Cosine similarity against every chunk (exhaustive linear scan).
2. Stable sort by similarity, descending; ties keep cache order.
3. Keep chunks scoring >= min_score, then the first top_k of those.
4. Nothing left:
   - strict mode  -> BELOW_THRESHOLD, empty selection
   - lenient mode -> FALLBACK, first top_k of the full ranking
5. Sources are the selection's titles, de-duplicated in first-occurrence order.

An empty snapshot short-circuits to NO_CORPUS before any scoring.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .cache import IndexCache
from .models import IndexedChunk, IndexSnapshot

EPSILON = 1e-8


class RetrievalStatus(str, enum.Enum):
    MATCHED = "matched"
    FALLBACK = "fallback"
    BELOW_THRESHOLD = "below_threshold"
    NO_CORPUS = "no_corpus"


@dataclass(frozen=True)
class ScoredChunk:
    chunk: IndexedChunk
    score: float

    @property
    def title(self) -> str:
        return self.chunk.title

    @property
    def text(self) -> str:
        return self.chunk.text


@dataclass(frozen=True)
class RetrievalResult:
    status: RetrievalStatus
    chunks: List[ScoredChunk] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status in (RetrievalStatus.MATCHED, RetrievalStatus.FALLBACK)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    ``dot(a, b) / (|a| * |b| + eps)``; 0.0 for a zero vector.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape} != {vb.shape}")
    return float(va @ vb / (np.linalg.norm(va) * np.linalg.norm(vb) + EPSILON))


def unique_sources(chunks: Sequence[ScoredChunk]) -> List[str]:
    return list(dict.fromkeys(c.title for c in chunks))


class RetrievalEngine:
    """
    Similarity search over the index cache.
    """

    def __init__(self, cache: IndexCache) -> None:
        self._cache = cache

    async def retrieve(
        self,
        query_vector: Sequence[float],
        min_score: float,
        top_k: int,
        strict: bool,
    ) -> RetrievalResult:
        """
        Refresh the cache if stale, then `select` against the snapshot.
        """
        snapshot = await self._cache.ensure_fresh()
        return self.select(snapshot, query_vector, min_score, top_k, strict)

    def select(
        self,
        snapshot: IndexSnapshot,
        query_vector: Sequence[float],
        min_score: float,
        top_k: int,
        strict: bool,
    ) -> RetrievalResult:
        """
        Apply the selection policy to `snapshot`.

        Raises
        ------
        ValueError
            If the query dimension does not match the indexed embeddings.
        """
        if not snapshot:
            return RetrievalResult(status=RetrievalStatus.NO_CORPUS)

        # Nothing can be selected; strict callers must treat this as a miss
        if top_k <= 0:
            if strict:
                return RetrievalResult(status=RetrievalStatus.BELOW_THRESHOLD)
            return RetrievalResult(status=RetrievalStatus.FALLBACK)

        ranked = self.rank(snapshot, query_vector)

        hits = [sc for sc in ranked if sc.score >= min_score][:top_k]
        status = RetrievalStatus.MATCHED

        if not hits:
            if strict:
                return RetrievalResult(status=RetrievalStatus.BELOW_THRESHOLD)
            hits = ranked[:top_k]
            status = RetrievalStatus.FALLBACK

        return RetrievalResult(
            status=status,
            chunks=hits,
            sources=unique_sources(hits),
        )

    @staticmethod
    def rank(
        snapshot: IndexSnapshot,
        query_vector: Sequence[float],
    ) -> List[ScoredChunk]:
        """
        Score every chunk and return them similarity-descending.
        """
        q = np.asarray(query_vector, dtype=np.float64)
        if q.ndim != 1 or q.shape[0] != snapshot.dimension:
            raise ValueError(
                f"Query dimension {q.shape} does not match index dimension {snapshot.dimension}"
            )

        scores = (snapshot.matrix @ q) / (snapshot.norms * np.linalg.norm(q) + EPSILON)

        # Stable sort keeps cache order among equal scores
        order = np.argsort(-scores, kind="stable")

        return [
            ScoredChunk(chunk=snapshot.chunks[i], score=float(scores[i]))
            for i in order
        ]
