from __future__ import annotations

from functools import lru_cache

from askai.agents.citation_lookup import CitationLookupResponder
from askai.agents.dispatcher import MessageDispatcher
from askai.agents.orchestrator import AnswerPipeline
from askai.config import Settings, settings
from askai.llm_client import get_client
from askai.services.cache_store import get_cache_store
from askai.services.citation_cache import CitationCache
from askai.tools.renderer import get_renderer


def build_citation_cache(config: Settings) -> CitationCache:
    return CitationCache(
        get_cache_store(config) if config.cache_enabled else None,
        enabled=config.cache_enabled,
        max_age=config.max_age_seconds,
    )


def build_dispatcher(config: Settings) -> MessageDispatcher:
    """Wire the pipeline, cache and responder from one settings object."""
    cache = build_citation_cache(config)
    pipeline = AnswerPipeline(
        get_client(config),
        settings=config,
        renderer=get_renderer(config),
        citation_cache=cache,
    )
    return MessageDispatcher(
        pipeline,
        CitationLookupResponder(cache),
        aliases=config.command_alias_list,
    )


@lru_cache(maxsize=1)
def get_dispatcher() -> MessageDispatcher:
    return build_dispatcher(settings)
