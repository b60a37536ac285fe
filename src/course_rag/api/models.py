"""
API Models

This module defines all Pydantic models used for request/response validation
across the chat and corpus administration endpoints.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Clear schema documentation
- Explicit output contracts
"""

from __future__ import annotations

from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    Used for ingest/retitle/wipe endpoints.
    """
    status: Literal["updated", "deleted", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Chat Models
# ---------------------------------------------------------------------

class ChatRequest(BaseModel):
    """
    Question to answer from the course materials.
    """
    query: str = ""


class ChatResponse(BaseModel):
    """
    Grounded answer.

    `outcome` is one of:
    - "answered"  : model answered from retrieved context
    - "no_corpus" : nothing has been ingested
    - "not_found" : strict mode, no chunk cleared the similarity threshold
    """
    answer: str
    outcome: Literal["answered", "no_corpus", "not_found"]
    sources: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Corpus Administration Models
# ---------------------------------------------------------------------

# Document ids become key parts; the key separator is not allowed in them
DOC_ID_PATTERN = r"^[^\x1f]+$"


class IngestItem(BaseModel):
    """
    One document to (re)ingest.
    """
    id: str = Field(..., min_length=1, pattern=DOC_ID_PATTERN)
    title: str = Field(..., min_length=1)
    text: str

    model_config = ConfigDict(extra="forbid")


class IngestRequest(BaseModel):
    items: List[IngestItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class RetitleRequest(BaseModel):
    id: str = Field(..., min_length=1, pattern=DOC_ID_PATTERN)
    title: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class StatsResponse(BaseModel):
    """
    Corpus statistics as seen by this instance's index cache.
    Serialized with camelCase keys.
    """
    lecture_count: int = Field(..., ge=0)
    chunk_count: int = Field(..., ge=0)
    sample_titles: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )
