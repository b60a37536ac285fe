from functools import lru_cache

from fastapi import Depends

from ..config import Settings, settings
from ..store.base import KVStore
from ..store.sql import SqlKVStore, build_engine
from ..index.cache import IndexCache
from ..index.retrieval import RetrievalEngine
from ..embeddings.embedder import Embedder
from ..llm.client import LLMClient
from ..corpus.service import CorpusService
from ..answers.assembler import AnswerAssembler


@lru_cache
def get_settings() -> Settings:
    return settings


@lru_cache
def get_kv_store() -> KVStore:
    return SqlKVStore(build_engine(settings.database_url))


# One cache per process. Other processes sharing the store keep their own and
# converge through the corpus version counter.
@lru_cache
def get_index_cache() -> IndexCache:
    return IndexCache(get_kv_store(), ttl_seconds=settings.cache_ttl_seconds)


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


def get_retrieval_engine(
    cache: IndexCache = Depends(get_index_cache),
) -> RetrievalEngine:
    return RetrievalEngine(cache)


def get_corpus_service(
    store: KVStore = Depends(get_kv_store),
    cache: IndexCache = Depends(get_index_cache),
    embedder: Embedder = Depends(get_embedder),
    config: Settings = Depends(get_settings),
) -> CorpusService:
    return CorpusService(
        store,
        cache,
        embedder,
        max_chars=config.chunk_max_chars,
        overlap=config.chunk_overlap,
    )


def get_answer_assembler(
    cache: IndexCache = Depends(get_index_cache),
    engine: RetrievalEngine = Depends(get_retrieval_engine),
    embedder: Embedder = Depends(get_embedder),
    llm: LLMClient = Depends(get_llm_client),
    config: Settings = Depends(get_settings),
) -> AnswerAssembler:
    return AnswerAssembler(cache, engine, embedder, llm, config)
