from __future__ import annotations

from typing import Protocol

import httpx

from askai.config import Settings


class MarkdownRenderer(Protocol):
    async def render(self, markdown: str) -> bytes: ...


class HttpMarkdownRenderer:
    """Client for a markdown-to-image HTTP service.

    POSTs ``{"markdown": ...}`` and returns the response body as PNG bytes.
    """

    mime_type = "image/png"

    def __init__(self, endpoint: str, *, timeout: float = 30.0):
        self.endpoint = endpoint
        self.timeout = timeout

    async def render(self, markdown: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.endpoint,
                json={"markdown": markdown},
                headers={"Accept": self.mime_type},
            )
            response.raise_for_status()
            return response.content


def get_renderer(settings: Settings) -> MarkdownRenderer | None:
    if not settings.render_url.strip():
        return None
    return HttpMarkdownRenderer(settings.render_url.strip(), timeout=settings.http_timeout_seconds)
