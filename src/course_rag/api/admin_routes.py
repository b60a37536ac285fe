"""
Corpus Administration Routes

This module exposes the corpus mutation operations and diagnostics:
- Ingesting documents (chunk, embed, persist)
- Retitling a document without re-embedding
- Wiping the corpus
- Reporting corpus statistics

Security
--------
All endpoints are protected by `verify_admin`.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import (
    IngestRequest,
    RetitleRequest,
    OperationResult,
    StatsResponse,
)
from .dependencies import get_corpus_service, get_settings
from ..auth.security import verify_admin
from ..config import Settings
from ..corpus.service import CorpusService, DocumentInput

router = APIRouter(tags=["admin"], dependencies=[Depends(verify_admin)])


@router.post(
    "/ingest",
    response_model=OperationResult,
    summary="Ingest or replace documents",
)
async def ingest(
    req: IngestRequest,
    corpus: Annotated[CorpusService, Depends(get_corpus_service)],
    config: Annotated[Settings, Depends(get_settings)],
) -> OperationResult:
    """
    Chunk, embed and store every item, then reload the index.

    Workflow
    --------
    1. For each item, delete any chunks stored under its id.
    2. Embed and store each chunk, then the document metadata.
    3. Bump the corpus version once for the whole batch.
    4. Force-rebuild this instance's index cache.
    """
    if not config.openai_api_key.get_secret_value():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing OpenAI API key",
        )

    report = await corpus.ingest(
        DocumentInput(id=item.id, title=item.title, text=item.text)
        for item in req.items
    )

    return OperationResult(
        status="ok",
        count=report.chunks,
        details={"documents": report.documents, "chunks": report.chunk_counts},
    )


@router.post(
    "/retitle",
    response_model=OperationResult,
    summary="Rename a document without re-embedding",
)
async def retitle(
    req: RetitleRequest,
    corpus: Annotated[CorpusService, Depends(get_corpus_service)],
) -> OperationResult:
    """
    Update the title on the document and all of its chunks.
    Unknown ids yield 404 through the NotFoundError handler.
    """
    count = await corpus.retitle(req.id, req.title)

    return OperationResult(status="updated", count=count)


@router.post(
    "/wipe",
    response_model=OperationResult,
    summary="Delete every document and chunk",
)
async def wipe(
    corpus: Annotated[CorpusService, Depends(get_corpus_service)],
) -> OperationResult:
    count = await corpus.wipe()

    return OperationResult(
        status="deleted",
        count=count,
        details={"message": f"wiped {count} keys"},
    )


@router.api_route(
    "/stats",
    methods=["GET", "POST"],
    response_model=StatsResponse,
    summary="Corpus statistics",
)
async def stats(
    corpus: Annotated[CorpusService, Depends(get_corpus_service)],
) -> StatsResponse:
    """
    Return lecture count, chunk count and a sample of titles.
    """
    result = await corpus.stats()

    return StatsResponse(
        lecture_count=result.lecture_count,
        chunk_count=result.chunk_count,
        sample_titles=result.sample_titles,
    )
