from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"
_catalog_cache: dict[str, Any] | None = None
_catalog_mtime_ns: int | None = None

REQUIRED_KEYS = (
    "pipeline.reformulate",
    "pipeline.summarize",
    "pipeline.response_template",
    "pipeline.response_template_text",
    "progress.thinking",
    "progress.searching",
    "progress.summarizing",
    "progress.rendering",
    "messages.no_results",
    "messages.empty_prompt",
    "messages.failure",
    "messages.invalid_index",
    "messages.no_citations",
    "messages.out_of_range",
    "messages.unexpected_error",
)


def _load_catalog() -> dict[str, Any]:
    global _catalog_cache, _catalog_mtime_ns
    mtime_ns = PROMPTS_PATH.stat().st_mtime_ns
    if _catalog_cache is not None and _catalog_mtime_ns == mtime_ns:
        return _catalog_cache

    payload = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Prompt catalog must be a JSON object.")
    _catalog_cache = payload
    _catalog_mtime_ns = mtime_ns
    return payload


def _resolve_prompt_entry(key: str) -> str:
    node: Any = _load_catalog()
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(f"Prompt key not found: {key}")
        node = node[part]
    if isinstance(node, list) and all(isinstance(line, str) for line in node):
        return "\n".join(node)
    if not isinstance(node, str):
        raise TypeError(f"Prompt key must map to a string: {key}")
    return node


def render_prompt(key: str, **values: Any) -> str:
    """Render a prompt or user-facing message from the catalog.

    Entries are ``string.Template`` strings; a list of strings is joined with
    newlines so long templates stay readable in the JSON file.
    """
    template = Template(_resolve_prompt_entry(key))
    try:
        return template.substitute(**values)
    except KeyError as exc:
        missing = str(exc.args[0])
        raise KeyError(f"Missing template value '{missing}' for prompt '{key}'") from exc


def clear_prompt_cache() -> None:
    global _catalog_cache, _catalog_mtime_ns
    _catalog_cache = None
    _catalog_mtime_ns = None


def check_catalog() -> None:
    """Raise KeyError naming every required entry the catalog lacks."""
    missing = []
    for key in REQUIRED_KEYS:
        try:
            _resolve_prompt_entry(key)
        except (KeyError, TypeError):
            missing.append(key)
    if missing:
        raise KeyError(f"Prompt catalog {PROMPTS_PATH} is missing: {', '.join(missing)}")
