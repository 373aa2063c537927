from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qs, quote, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup, Tag

from askai.config import Settings, settings as default_settings
from askai.services import logger as log_service
from askai.tools import web_utils

DEFAULT_SEARCH_URL = "https://html.duckduckgo.com/html?q="
REDIRECT_PREFIXES = ("//duckduckgo.com", "https://duckduckgo.com/l/")
AD_URL_PREFIX = "https://duckduckgo.com/y.js?ad_domain="


@dataclass(frozen=True)
class SearchResult:
    """One organic result block from the DuckDuckGo HTML page."""
    title: str
    description: str
    url: str


@dataclass
class SearchResponse:
    query: str
    results: list[SearchResult] = field(default_factory=list)

    @property
    def no_results(self) -> bool:
        return not self.results


def _normalize_href(href: str, base_url: str) -> str | None:
    """Unwrap DuckDuckGo redirect links and resolve to an absolute URL.

    Redirect wrappers look like ``//duckduckgo.com/l/?uddg=<encoded>&rut=...``;
    the real destination is the ``uddg`` parameter. ``parse_qs`` already
    percent-decodes it.
    """
    href = href.strip()
    if href.startswith(REDIRECT_PREFIXES):
        targets = parse_qs(urlsplit(href).query).get("uddg")
        if not targets:
            return None
        href = targets[0]

    url = urljoin(base_url, href)
    if not web_utils.is_valid_url(url):
        return None
    return url


def _parse_block(block: Tag, base_url: str) -> SearchResult | None:
    anchor = block.select_one(".result__a")
    snippet = block.select_one(".result__snippet")
    if anchor is None or snippet is None:
        return None

    href = anchor.get("href")
    if not isinstance(href, str) or not href.strip():
        return None

    url = _normalize_href(href, base_url)
    if url is None:
        return None

    return SearchResult(
        title=web_utils.clean_text(anchor.get_text()),
        description=web_utils.clean_text(snippet.get_text()),
        url=url,
    )


def extract_results(html: str, *, base_url: str = DEFAULT_SEARCH_URL) -> list[SearchResult]:
    """Parse a DuckDuckGo HTML results page into SearchResults.

    An empty list is the "no results" outcome: the page had no result blocks,
    the first block is the ``result--no-result`` placeholder, or every block
    was unusable or an ad.
    """
    soup = BeautifulSoup(html, "html.parser")
    blocks = soup.select(".result")
    if not blocks or "result--no-result" in (blocks[0].get("class") or []):
        return []

    results: list[SearchResult] = []
    for block in blocks:
        result = _parse_block(block, base_url)
        if result is None:
            continue
        if result.url.startswith(AD_URL_PREFIX):
            continue
        results.append(result)
    return results


async def search(
    query: str,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> SearchResponse:
    """Fetch the search endpoint for ``query`` and extract its results.

    Transport and HTTP status errors propagate as ``httpx.HTTPError``.
    """
    active = settings or default_settings
    url = f"{active.search_url}{quote(query, safe='')}"
    headers = {"User-Agent": active.search_user_agent}

    if client is None:
        async with httpx.AsyncClient(timeout=active.http_timeout_seconds) as owned:
            response = await owned.get(url, headers=headers, follow_redirects=True)
    else:
        response = await client.get(url, headers=headers, follow_redirects=True)
    response.raise_for_status()

    results = extract_results(response.text, base_url=active.search_url)
    log_service.log_event(
        event_type="search_completed",
        message=f"Extracted {len(results)} results",
        query=query,
    )
    return SearchResponse(query=query, results=results)


def results_to_prompt(results: list[SearchResult]) -> str:
    """Serialize results into the block list used by the summarization prompt."""
    return "\n---\n".join(
        f"Title: {r.title}\nDescription: {r.description}\nLink: {r.url}"
        for r in results
    )
