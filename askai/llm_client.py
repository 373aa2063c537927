"""OpenAI-compatible completion client."""
from __future__ import annotations

import time
from typing import Any

from askai.config import Settings
from askai.services import logger as log_service


class CompletionClient:
    """Text-in/text-out wrapper around an ``AsyncOpenAI`` chat client.

    Constructed once per process from settings and handed to the pipeline.
    """

    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""

    async def complete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        *,
        caller: str = "completion",
    ) -> str:
        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages,
            )
        except Exception as e:
            log_service.log_llm_call(
                model=model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="failed",
                error=str(e),
            )
            raise

        text = self._extract_text(response)
        log_service.log_llm_call(
            model=model,
            caller=caller,
            duration_ms=int((time.monotonic() - t0) * 1000),
            output_chars=len(text),
        )
        return text


def get_client(settings: Settings) -> CompletionClient:
    """Build a completion client for the configured endpoint."""
    from openai import AsyncOpenAI

    if not settings.api_key:
        raise ValueError("ASKAI_API_KEY not configured")

    openai_client = AsyncOpenAI(
        api_key=settings.api_key,
        base_url=settings.base_url.strip() or "https://api.openai.com/v1",
    )
    return CompletionClient(openai_client)
