from typing import List, Dict, Any, Optional
import logging

import httpx

from ..config import settings
from ..core.errors import UpstreamError

logger = logging.getLogger("rag.llm")


class CompletionError(UpstreamError):
    """Raised when the chat completion call fails."""


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1/chat/completions",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.openai_model
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ) -> str:
        """
        Returns the assistant message content, or "No response" when the
        provider answers without one.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.base_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Completion request failed (%s): %s", type(exc).__name__, exc)
            raise CompletionError(
                f"Completion failed: {type(exc).__name__}"
            ) from exc

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Completion response had no message content")
            return "No response"
        return str(content) if content else "No response"
