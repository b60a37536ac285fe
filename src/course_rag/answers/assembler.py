"""
Answer Assembler

Turns a question into a grounded answer:

1. Make sure the index cache is fresh; with no corpus, answer so directly.
2. Embed the question and select chunks with the retrieval engine.
3. In strict mode with nothing above the threshold, say so; never ask the
   model to answer without context.
4. Otherwise send the numbered context to the completion gateway, drop any
   "Sources:" lines the model wrote, and append the exact source titles.

"No corpus loaded" and "not in the course materials" produce different text
and a different `outcome`, so callers can tell a configuration problem from a
legitimate miss.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..config import Settings
from ..embeddings.embedder import Embedder
from ..index.cache import IndexCache
from ..index.retrieval import RetrievalEngine, RetrievalStatus, ScoredChunk
from ..llm.client import LLMClient
from . import prompts

logger = logging.getLogger("rag.answers")

_SOURCES_LINE = re.compile(r"^\s*Sources:.*$", re.IGNORECASE | re.MULTILINE)

OUTCOME_ANSWERED = "answered"
OUTCOME_NO_CORPUS = "no_corpus"
OUTCOME_NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Answer:
    text: str
    outcome: str
    sources: List[str] = field(default_factory=list)


def build_context(chunks: List[ScoredChunk]) -> str:
    """Numbered context block handed to the model."""
    return "\n\n---\n\n".join(
        f"({i}) {c.title}\n{c.text}" for i, c in enumerate(chunks, start=1)
    )


def strip_model_sources(text: str) -> str:
    return _SOURCES_LINE.sub("", text).strip()


class AnswerAssembler:

    def __init__(
        self,
        cache: IndexCache,
        engine: RetrievalEngine,
        embedder: Embedder,
        llm: LLMClient,
        settings: Settings,
    ) -> None:
        self._cache = cache
        self._engine = engine
        self._embedder = embedder
        self._llm = llm
        self._settings = settings

    def footer(self) -> str:
        if self._settings.syllabus_link:
            return prompts.FOOTER_WITH_LINK.format(link=self._settings.syllabus_link)
        return prompts.FOOTER_DEFAULT

    def load_syllabus(self) -> str:
        try:
            return Path(self._settings.syllabus_path).read_text(encoding="utf-8")
        except OSError:
            logger.warning("Could not read syllabus at %s", self._settings.syllabus_path)
            return prompts.SYLLABUS_UNAVAILABLE

    async def answer(self, question: str) -> Answer:
        strict = self._settings.strict_rag

        snapshot = await self._cache.ensure_fresh()
        if not snapshot:
            return Answer(
                text=prompts.NO_CORPUS_MESSAGE + self.footer(),
                outcome=OUTCOME_NO_CORPUS,
            )

        query_vector = await self._embedder.embed_text(question)
        result = self._engine.select(
            snapshot,
            query_vector,
            min_score=self._settings.rag_min_score,
            top_k=self._settings.rag_top_k,
            strict=strict,
        )

        if result.status is RetrievalStatus.BELOW_THRESHOLD:
            logger.info("No chunk above %.2f for question", self._settings.rag_min_score)
            return Answer(
                text=prompts.NOT_FOUND_MESSAGE + self.footer(),
                outcome=OUTCOME_NOT_FOUND,
            )

        messages = self.build_messages(question, result.chunks, strict)
        completion = await self._llm.complete(messages, temperature=0.2, max_tokens=1500)

        body = strip_model_sources(completion)
        sources_line = ""
        if result.sources:
            sources_line = "\n\nSources: " + "; ".join(result.sources)

        return Answer(
            text=f"{body}{sources_line}{self.footer()}",
            outcome=OUTCOME_ANSWERED,
            sources=result.sources,
        )

    def build_messages(
        self,
        question: str,
        chunks: List[ScoredChunk],
        strict: Optional[bool] = None,
    ) -> List[Dict[str, str]]:
        if strict is None:
            strict = self._settings.strict_rag
        system = prompts.STRICT_SYSTEM_PROMPT if strict else prompts.LENIENT_SYSTEM_PROMPT
        return [
            {"role": "system", "content": system},
            {"role": "system", "content": prompts.SYLLABUS_PROMPT.format(syllabus=self.load_syllabus())},
            {
                "role": "user",
                "content": prompts.USER_PROMPT.format(
                    question=question,
                    context=build_context(chunks),
                ),
            },
        ]
