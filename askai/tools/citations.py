"""Turn inline markdown links in a generated answer into numbered citations.

The summarization prompt asks the model to link every sourced claim inline as
``[text](url)``. ``rewrite_citations`` replaces each of those links with a
citation marker and collects the distinct URLs in first-seen order, so that
a URL cited three times still owns a single index.

Known limitation: link matching is a conservative regex. Display text may not
contain brackets and URLs may not contain whitespace or parentheses; such
links are left untouched instead of being parsed as full markdown. Images
(``![alt](url)``) are not citations and pass through unchanged. Marker syntax
already present in the answer is reduced to its display text first, so only
rewritten links carry an index.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

CITATION_MAILTO = "mailto:blank@example.org"

LINK_PATTERN = re.compile(r"(?<!!)\[([^\[\]\n]*)\]\(([^\s()]+)\)")
MARKER_PATTERN = re.compile(
    r"\[([^\[\]\n]*)\\\[(\d+)\\\]\]\(" + re.escape(CITATION_MAILTO) + r"\)"
)


@dataclass
class RewriteOutput:
    text: str
    links: list[str] = field(default_factory=list)

    @property
    def reference_list(self) -> str:
        return format_reference_list(self.links)

    def indices(self) -> list[int]:
        """Citation indices in the order their markers appear in ``text``."""
        return [int(m.group(2)) for m in MARKER_PATTERN.finditer(self.text)]


def _marker(text: str, index: int) -> str:
    # Rendered as underlined "text[n]"; the mailto target keeps it from
    # looking like a navigable source inside the image.
    return f"[{text}\\[{index}\\]]({CITATION_MAILTO})"


def rewrite_citations(answer: str) -> RewriteOutput:
    """Replace inline links with indexed markers, deduplicating by URL."""
    links: list[str] = []
    index_of: dict[str, int] = {}

    def replace(match: re.Match[str]) -> str:
        text, url = match.group(1), match.group(2)
        index = index_of.get(url)
        if index is None:
            links.append(url)
            index = len(links)
            index_of[url] = index
        return _marker(text, index)

    answer = MARKER_PATTERN.sub(lambda m: m.group(1), answer)
    return RewriteOutput(text=LINK_PATTERN.sub(replace, answer), links=links)


def format_reference_list(links: list[str], *, escape: bool = False) -> str:
    """One ``[k]: url`` line per link.

    With ``escape`` the brackets are backslash-escaped so markdown renderers do
    not swallow the lines as link reference definitions.
    """
    template = "\\[{index}\\]: {url}" if escape else "[{index}]: {url}"
    return "\n".join(
        template.format(index=index, url=url) for index, url in enumerate(links, 1)
    )


def to_markdown(output: RewriteOutput) -> str:
    """Answer body for image rendering."""
    if not output.links:
        return output.text
    references = format_reference_list(output.links, escape=True).replace("\n", "  \n")
    return f"{output.text}\n\n{references}"


def _plain_marker(match: re.Match[str]) -> str:
    text = match.group(1).rstrip()
    index = match.group(2)
    return f"{text} [{index}]" if text else f"[{index}]"


def to_plain_text(output: RewriteOutput) -> str:
    """Answer body for plain-text transports: ``text [n]`` markers, raw list."""
    text = MARKER_PATTERN.sub(_plain_marker, output.text)
    if not output.links:
        return text
    return f"{text}\n\n{output.reference_list}"
