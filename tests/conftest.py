"""
Shared test fixtures.

Provides: fake embedder, controllable clock, failure-injecting store, and
ready-wired cache / corpus service instances over an in-memory store.
"""

from typing import Callable, List, Optional

import pytest

from course_rag.core.errors import StoreUnavailableError
from course_rag.corpus.service import CorpusService
from course_rag.embeddings.embedder import EmbeddingError
from course_rag.index.cache import IndexCache
from course_rag.store.memory import MemoryKVStore

ALPHABET = "abcd"


def letter_vector(text: str) -> List[float]:
    """Embedding stand-in: letter counts over a tiny alphabet."""
    return [float(text.count(c)) for c in ALPHABET]


class FakeEmbedder:
    """
    Deterministic embedder.

    `fail_after` makes every call after the first N raise EmbeddingError.
    """

    def __init__(
        self,
        fn: Callable[[str], List[float]] = letter_vector,
        fail_after: Optional[int] = None,
    ) -> None:
        self.fn = fn
        self.fail_after = fail_after
        self.calls: List[str] = []

    async def embed_text(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_after is not None and len(self.calls) > self.fail_after:
            raise EmbeddingError("Embedding generation failed: HTTPStatusError")
        return self.fn(text)

    async def embed(self, texts, batch_size: int = 20):
        return [await self.embed_text(t) for t in texts]


class FlakyStore(MemoryKVStore):
    """In-memory store that can be switched offline."""

    def __init__(self) -> None:
        super().__init__()
        self.offline = False

    def _check(self) -> None:
        if self.offline:
            raise StoreUnavailableError("Durable store list failed: OperationalError")

    async def get(self, key):
        self._check()
        return await super().get(key)

    async def put(self, key, value):
        self._check()
        await super().put(key, value)

    async def delete(self, key):
        self._check()
        await super().delete(key)

    async def list(self, prefix):
        self._check()
        return await super().list(prefix)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def cache(store, clock):
    return IndexCache(store, ttl_seconds=3600, clock=clock)


@pytest.fixture
def corpus(store, cache, embedder):
    return CorpusService(store, cache, embedder, max_chars=1700, overlap=200)
