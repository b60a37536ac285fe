"""
Corpus Mutation Operations

This module implements the writer side of the retrieval core: ingest, retitle
and wipe, plus the read-only stats view.

Write Ordering
--------------
Within one operation every durable write completes before the corpus version
is bumped, so a reader that observes the new version also observes the data.
The version is bumped exactly once per successful operation.

Failure Semantics
-----------------
Operations are not transactional. If an embedding call or a store write fails
halfway through an ingest batch, the records already written stay in the
store, the version is NOT bumped and no cache reloads. The next successful
ingest of the same document id (which first clears that id's chunks) or a wipe
cleans them up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..core.errors import NotFoundError
from ..embeddings.embedder import Embedder
from ..index.cache import IndexCache
from ..store.base import KVStore
from ..store.keys import CHUNK_PREFIX, DOC_PREFIX, chunk_key, doc_meta_key
from .chunker import DEFAULT_MAX_CHARS, DEFAULT_OVERLAP, chunk_text
from .version import bump_version

logger = logging.getLogger("rag.corpus")

SAMPLE_TITLES = 10


@dataclass(frozen=True)
class DocumentInput:
    id: str
    title: str
    text: str


@dataclass(frozen=True)
class IngestReport:
    documents: int
    chunks: int
    chunk_counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CorpusStats:
    lecture_count: int
    chunk_count: int
    sample_titles: List[str]


class CorpusService:
    """
    Mutates the durable corpus and keeps the local index cache coherent.
    """

    def __init__(
        self,
        store: KVStore,
        cache: IndexCache,
        embedder: Embedder,
        max_chars: int = DEFAULT_MAX_CHARS,
        overlap: int = DEFAULT_OVERLAP,
    ) -> None:
        self._store = store
        self._cache = cache
        self._embedder = embedder
        self._max_chars = max_chars
        self._overlap = overlap

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    async def ingest(self, items: Iterable[DocumentInput]) -> IngestReport:
        """
        Chunk, embed and persist a batch of documents.

        A document whose id already exists is replaced: all of its previous
        chunk records are deleted before the new ones are written.

        Raises
        ------
        UpstreamError
            If an embedding call fails. Earlier writes are kept.
        StoreUnavailableError
            If the store cannot be written.
        """
        chunk_counts = {}

        for item in items:
            parts = chunk_text(item.text, self._max_chars, self._overlap)

            removed = await self._delete_chunks(item.id)
            if removed:
                logger.info("Re-ingest of %s: removed %d old chunks", item.id, removed)

            for i, text in enumerate(parts):
                embedding = await self._embedder.embed_text(text)
                await self._store.put(
                    chunk_key(item.id, i),
                    {"title": item.title, "text": text, "e": embedding},
                )

            await self._store.put(
                doc_meta_key(item.id),
                {"title": item.title, "n": len(parts)},
            )
            chunk_counts[item.id] = len(parts)
            logger.info("Ingested %s (%r): %d chunks", item.id, item.title, len(parts))

        await bump_version(self._store)
        await self._cache.refresh(force=True)

        return IngestReport(
            documents=len(chunk_counts),
            chunks=sum(chunk_counts.values()),
            chunk_counts=chunk_counts,
        )

    # ------------------------------------------------------------------
    # Retitle
    # ------------------------------------------------------------------

    async def retitle(self, doc_id: str, title: str) -> int:
        """
        Rename a document and every one of its chunk records.

        Embeddings are left untouched.

        Returns
        -------
        int
            Number of chunk records updated.

        Raises
        ------
        NotFoundError
            If no document metadata exists for `doc_id`.
        """
        meta = await self._store.get(doc_meta_key(doc_id))
        if not meta:
            raise NotFoundError(f"Document not found: {doc_id}")

        await self._store.put(doc_meta_key(doc_id), {**meta, "title": title})

        updated = 0
        for entry in await self._store.list((CHUNK_PREFIX, doc_id)):
            await self._store.put(entry.key, {**entry.value, "title": title})
            updated += 1

        await bump_version(self._store)
        await self._cache.refresh(force=True)

        logger.info("Retitled %s to %r (%d chunks)", doc_id, title, updated)
        return updated

    # ------------------------------------------------------------------
    # Wipe
    # ------------------------------------------------------------------

    async def wipe(self) -> int:
        """
        Delete every document and chunk record.

        Returns
        -------
        int
            Number of deleted records.
        """
        deleted = 0
        for prefix in ((DOC_PREFIX,), (CHUNK_PREFIX,)):
            for entry in await self._store.list(prefix):
                await self._store.delete(entry.key)
                deleted += 1

        await bump_version(self._store)
        self._cache.invalidate()

        logger.info("Wiped %d records", deleted)
        return deleted

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def stats(self) -> CorpusStats:
        """
        Summarize the cached corpus. Never exposes chunk text or vectors.
        """
        snapshot = await self._cache.ensure_fresh()
        titles = snapshot.titles()
        return CorpusStats(
            lecture_count=len(titles),
            chunk_count=len(snapshot),
            sample_titles=titles[:SAMPLE_TITLES],
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _delete_chunks(self, doc_id: str) -> int:
        entries = await self._store.list((CHUNK_PREFIX, doc_id))
        for entry in entries:
            await self._store.delete(entry.key)
        return len(entries)
