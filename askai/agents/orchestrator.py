from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from askai.config import Settings, settings as default_settings
from askai.llm_client import CompletionClient
from askai.services import logger as log_service
from askai.services.citation_cache import CitationCache
from askai.services.logger import logger
from askai.services.prompt_store import render_prompt
from askai.tools import citations, duckduckgo_search, web_utils
from askai.tools.citations import RewriteOutput
from askai.tools.duckduckgo_search import SearchResult
from askai.tools.renderer import MarkdownRenderer
from askai.transport import OutboundMessage, Session


@dataclass
class PipelineResult:
    query: str
    keywords: str = ""
    output: RewriteOutput | None = None
    body: str = ""
    message_ids: list[str] = field(default_factory=list)
    no_results: bool = False
    elapsed_ms: int = 0


class ProgressNotifier:
    """Best-effort "(Thinking)"-style notices, each replacing the last.

    Send and delete failures are logged and ignored; they never change the
    outcome of the pipeline.
    """

    def __init__(self, session: Session, *, enabled: bool):
        self.session = session
        self.enabled = enabled
        self._current: list[str] = []

    async def update(self, key: str, **values: Any) -> None:
        if not self.enabled:
            return
        await self.clear()
        try:
            self._current = await self.session.send(
                OutboundMessage(text=render_prompt(key, **values))
            )
        except Exception as e:
            logger.warning(f"Progress notice {key} not sent: {e}")

    async def clear(self) -> None:
        ids, self._current = self._current, []
        for message_id in ids:
            try:
                await self.session.delete(message_id)
            except Exception as e:
                logger.warning(f"Progress notice {message_id} not retracted: {e}")


class AnswerPipeline:
    """Answers one query with a cited summary of web search results.

    Flow:
      1. Reformulate the query into search keywords via the LLM
      2. Fetch the DuckDuckGo HTML page and extract results
      3. Ask the LLM for a summary with inline links to the results
      4. Rewrite the inline links into numbered citations
      5. Render as image (renderer available, text mode off) or plain text
      6. Send, then remember the citations under the sent message id

    There is no local recovery: completion, search and render failures
    propagate to the caller.
    """

    def __init__(
        self,
        completion: CompletionClient,
        *,
        settings: Settings | None = None,
        renderer: MarkdownRenderer | None = None,
        citation_cache: CitationCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.completion = completion
        self.settings = settings or default_settings
        self.renderer = renderer
        self.citation_cache = citation_cache or CitationCache(None)
        self.http_client = http_client
        self.clock = clock

    @property
    def image_mode(self) -> bool:
        return not self.settings.text_mode and self.renderer is not None

    async def _reformulate(self, query: str) -> str:
        text = await self.completion.complete(
            self.settings.model,
            [{"role": "user", "content": render_prompt("pipeline.reformulate", query=query)}],
            caller="pipeline.reformulate",
        )
        keywords = text.strip()
        return keywords or query

    def _build_summary_prompt(self, query: str, results: list[SearchResult]) -> str:
        return render_prompt(
            "pipeline.summarize",
            persona=self.settings.prompt,
            results=duckduckgo_search.results_to_prompt(results),
            query=query,
        )

    async def _summarize(self, query: str, results: list[SearchResult]) -> str:
        return await self.completion.complete(
            self.settings.model,
            [{"role": "user", "content": self._build_summary_prompt(query, results)}],
            caller="pipeline.summarize",
        )

    def compose(self, keywords: str, output: RewriteOutput, elapsed_ms: int, *, image: bool) -> str:
        """Fill the response template with the rewritten answer."""
        if image:
            key, body = "pipeline.response_template", citations.to_markdown(output)
        else:
            key, body = "pipeline.response_template_text", citations.to_plain_text(output)
        return render_prompt(
            key,
            keywords=keywords,
            body=body,
            source=web_utils.extract_domain(self.settings.search_url) or "DuckDuckGo",
            elapsed_ms=elapsed_ms,
        )

    async def run(self, session: Session, query: str) -> PipelineResult:
        started = self.clock()
        result = PipelineResult(query=query)
        progress = ProgressNotifier(session, enabled=self.settings.verbose_output)

        await progress.update("progress.thinking")
        result.keywords = await self._reformulate(query)
        log_service.log_pipeline_step(session.message_id, "reformulate", "completed", {"keywords": result.keywords})

        await progress.update("progress.searching", keywords=result.keywords)
        response = await duckduckgo_search.search(
            result.keywords,
            settings=self.settings,
            client=self.http_client,
        )
        if response.no_results:
            await progress.clear()
            log_service.log_pipeline_step(session.message_id, "search", "no_results")
            result.no_results = True
            result.body = render_prompt("messages.no_results")
            result.message_ids = await session.send(
                OutboundMessage(text=result.body, quote_id=session.message_id)
            )
            return result
        log_service.log_pipeline_step(
            session.message_id, "search", "completed", {"results": len(response.results)}
        )

        await progress.update("progress.summarizing")
        answer = await self._summarize(query, response.results)
        result.output = citations.rewrite_citations(answer)
        log_service.log_pipeline_step(
            session.message_id, "rewrite", "completed", {"links": len(result.output.links)}
        )

        image = self.image_mode
        result.elapsed_ms = int((self.clock() - started) * 1000)
        result.body = self.compose(result.keywords, result.output, result.elapsed_ms, image=image)
        if image:
            await progress.update("progress.rendering")
            png = await self.renderer.render(result.body)
            message = OutboundMessage(
                image=png,
                mime_type=getattr(self.renderer, "mime_type", "image/png"),
                quote_id=session.message_id,
            )
        else:
            message = OutboundMessage(text=result.body, quote_id=session.message_id)

        await progress.clear()
        result.message_ids = await session.send(message)
        for message_id in result.message_ids:
            self.citation_cache.put(message_id, result.output.links)
        log_service.log_pipeline_step(
            session.message_id,
            "send",
            "completed",
            {"message_ids": result.message_ids, "image": image, "elapsed_ms": result.elapsed_ms},
        )
        return result
