from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from askai.agents.citation_lookup import CitationLookupResponder
from askai.services.cache_store import MemoryCacheStore
from askai.services.citation_cache import CitationCache, CitationLookupError
from askai.services.prompt_store import render_prompt
from askai.transport import BufferedSession

LINKS = ["https://a.example", "https://b.example"]


@pytest.fixture
def cache() -> CitationCache:
    cache = CitationCache(MemoryCacheStore())
    cache.put("answer-1", LINKS)
    cache.put("answer-empty", [])
    return cache


def _reply(content: str, quote_id: str | None = "answer-1") -> BufferedSession:
    return BufferedSession(channel_id="chan", content=content, message_id="reply-1", quote_id=quote_id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("1", "https://a.example"),
        (" 2 ", "https://b.example"),
        ("1.5", render_prompt("messages.invalid_index")),
        ("hello", render_prompt("messages.invalid_index")),
        ("0", render_prompt("messages.out_of_range", count=2)),
        ("3", render_prompt("messages.out_of_range", count=2)),
    ],
)
async def test_reply_to_cached_answer(cache, content, expected):
    session = _reply(content)

    handled = await CitationLookupResponder(cache).handle(session)

    assert handled is True
    [sent] = session.sent
    assert sent.message.text == expected
    assert sent.message.quote_id == "reply-1"


@pytest.mark.asyncio
async def test_reply_to_answer_without_citations(cache):
    session = _reply("1", quote_id="answer-empty")

    assert await CitationLookupResponder(cache).handle(session) is True
    assert session.sent[0].message.text == render_prompt("messages.no_citations")


@pytest.mark.asyncio
async def test_out_of_range_message_names_valid_range(cache):
    session = _reply("7")

    await CitationLookupResponder(cache).handle(session)

    assert "[1, 2]" in session.sent[0].message.text


@pytest.mark.asyncio
@pytest.mark.parametrize("quote_id", [None, "unknown-message"])
async def test_defers_when_not_a_reply_to_cached_answer(cache, quote_id):
    session = _reply("1", quote_id=quote_id)

    assert await CitationLookupResponder(cache).handle(session) is False
    assert session.sent == []


@pytest.mark.asyncio
async def test_defers_when_caching_disabled():
    store = MemoryCacheStore()
    CitationCache(store).put("answer-1", LINKS)
    session = _reply("1")

    assert await CitationLookupResponder(CitationCache(store, enabled=False)).handle(session) is False
    assert session.sent == []


def test_unexpected_lookup_error_gets_generic_reply():
    cache = MagicMock()
    cache.resolve.side_effect = CitationLookupError("weird")

    text = CitationLookupResponder(cache).reply_for("answer-1", "1")

    assert text == render_prompt("messages.unexpected_error")
