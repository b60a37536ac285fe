"""
Embedding Gateway

Turns text into vectors through the OpenAI embeddings API (or any provider
speaking the same protocol). Ingest embeds one chunk per call; chat embeds
the question once.

Output contract
---------------
- One vector per input text, in input order, whatever order the provider
  returns its records in.
- Every vector is a non-empty list of floats.
- Transport errors, HTTP errors and malformed payloads all surface as
  `EmbeddingError`, which the API maps to 502.

No caching, no retries.
"""

from __future__ import annotations

from typing import Any, List, Sequence, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import UpstreamError

logger = logging.getLogger("rag.embedder")


class EmbeddingError(UpstreamError):
    """Raised when the provider cannot produce usable embeddings."""


class Embedder:
    """
    Stateless embedding client; one instance is shared per process.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1/embeddings",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_key : Optional[str]
            Provider key. Defaults to settings.openai_api_key.
        model : Optional[str]
            Embedding model. Defaults to settings.embedding_model.
        base_url : str
            Full URL of the embeddings endpoint.
        timeout : float
            Per-request timeout in seconds.
        transport : Optional[httpx.AsyncBaseTransport]
            Replaces the network transport (tests use httpx.MockTransport).
        """
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def embed_text(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self.embed([text])
        if len(vectors) != 1:
            raise EmbeddingError(f"Expected 1 embedding, got {len(vectors)}.")
        return vectors[0]

    async def embed(
        self,
        texts: Sequence[str],
        batch_size: int = 20,
    ) -> List[List[float]]:
        """
        Embed `texts`, sending at most `batch_size` inputs per request.

        Raises
        ------
        EmbeddingError
            If any request fails or returns an unusable payload.
        """
        if not texts:
            return []

        vectors: List[List[float]] = []

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for start in range(0, len(texts), batch_size):
                batch = list(texts[start : start + batch_size])
                body = await self._request(client, batch)

                batch_vectors = self._parse(body)
                if len(batch_vectors) != len(batch):
                    raise EmbeddingError(
                        f"Provider returned {len(batch_vectors)} embeddings "
                        f"for {len(batch)} inputs."
                    )
                vectors.extend(batch_vectors)

        return vectors

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, client: httpx.AsyncClient, batch: List[str]) -> Any:
        try:
            response = await client.post(
                self.base_url,
                json={"model": self.model, "input": batch},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            logger.error(
                "Embedding request failed (%s) for %d input(s): %s",
                type(exc).__name__,
                len(batch),
                exc,
            )
            raise EmbeddingError(
                f"Embedding generation failed: {type(exc).__name__}"
            ) from exc
        except ValueError as exc:
            logger.error("Embedding response was not JSON: %s", exc)
            raise EmbeddingError("Embedding response was not valid JSON.") from exc

    @staticmethod
    def _parse(body: Any) -> List[List[float]]:
        """
        Validate ``{"data": [{"index": i, "embedding": [...]}, ...]}``.

        Records are put back in input order by ``index`` when every record
        carries one.
        """
        records = body.get("data") if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise EmbeddingError("Embedding response has no 'data' list.")

        if all(isinstance(r, dict) and isinstance(r.get("index"), int) for r in records):
            records = sorted(records, key=lambda r: r["index"])

        vectors: List[List[float]] = []
        for position, record in enumerate(records):
            vector = record.get("embedding") if isinstance(record, dict) else None
            if (
                not isinstance(vector, list)
                or not vector
                or not all(isinstance(x, (float, int)) and not isinstance(x, bool) for x in vector)
            ):
                raise EmbeddingError(f"Unusable embedding at position {position}.")
            vectors.append([float(x) for x in vector])

        return vectors
