from __future__ import annotations

import pytest

from askai.services import prompt_store
from askai.services.prompt_store import render_prompt


def test_render_prompt_substitutes_template_values():
    prompt = render_prompt("pipeline.reformulate", query="what is the capital of France")
    assert prompt.endswith("User input:\nwhat is the capital of France")
    assert "same language" in prompt


def test_render_prompt_joins_list_entries_with_newlines():
    text = render_prompt(
        "pipeline.response_template_text",
        keywords="capital of France",
        body="Paris [1]",
        source="html.duckduckgo.com",
        elapsed_ms=42,
    )
    assert text.splitlines()[0] == 'Search results for "capital of France"'
    assert text.splitlines()[-1] == "Powered by html.duckduckgo.com | Thinking time: 42ms"


def test_render_prompt_leaves_dollar_signs_in_values_alone():
    text = render_prompt("progress.searching", keywords="$price of $x")
    assert text == "(Searching: $price of $x)"


def test_render_prompt_raises_for_unknown_key():
    with pytest.raises(KeyError):
        render_prompt("missing.prompt.key")


def test_render_prompt_raises_for_missing_value():
    with pytest.raises(KeyError):
        render_prompt("messages.out_of_range")


@pytest.fixture
def fresh_catalog():
    prompt_store.clear_prompt_cache()
    yield
    prompt_store.clear_prompt_cache()


def test_bundled_catalog_has_every_required_key(fresh_catalog):
    prompt_store.check_catalog()
    for key in prompt_store.REQUIRED_KEYS:
        assert isinstance(prompt_store._resolve_prompt_entry(key), str)


def test_check_catalog_names_missing_keys(fresh_catalog, monkeypatch, tmp_path):
    catalog = tmp_path / "prompts.json"
    catalog.write_text(
        '{"messages": {"failure": "Something went wrong.", "no_results": ["not", 1]}}',
        encoding="utf-8",
    )
    monkeypatch.setattr(prompt_store, "PROMPTS_PATH", catalog)

    with pytest.raises(KeyError) as exc_info:
        prompt_store.check_catalog()

    message = str(exc_info.value)
    assert "messages.no_results" in message
    assert "messages.out_of_range" in message
    assert "progress.thinking" in message
    assert "messages.failure" not in message
