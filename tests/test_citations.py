from __future__ import annotations

import re

from askai.tools.citations import (
    CITATION_MAILTO,
    format_reference_list,
    rewrite_citations,
    to_markdown,
    to_plain_text,
)


def test_same_url_cited_three_times_gets_one_index():
    answer = (
        "[Paris](https://example.com/paris) is the capital. "
        "It sits on the [Seine](https://example.com/paris) and "
        "hosts [many museums](https://example.com/paris)."
    )

    output = rewrite_citations(answer)

    assert output.links == ["https://example.com/paris"]
    assert output.indices() == [1, 1, 1]
    assert output.reference_list == "[1]: https://example.com/paris"


def test_indices_follow_first_seen_order_and_stay_in_range():
    answer = (
        "[A](https://a.example) then [B](https://b.example), "
        "back to [A again](https://a.example) and finally [C](https://c.example)."
    )

    output = rewrite_citations(answer)

    assert output.links == ["https://a.example", "https://b.example", "https://c.example"]
    assert output.indices() == [1, 2, 1, 3]
    assert all(1 <= i <= len(output.links) for i in output.indices())

    lines = output.reference_list.splitlines()
    assert len(lines) == len(output.links)
    for k, line in enumerate(lines, 1):
        assert line == f"[{k}]: {output.links[k - 1]}"


def test_image_marker_keeps_display_text_and_embeds_index():
    output = rewrite_citations("[Paris](https://example.com/paris) is the capital of France.")

    assert output.text == f"[Paris\\[1\\]]({CITATION_MAILTO}) is the capital of France."


def test_answer_without_links_is_unchanged():
    output = rewrite_citations("Nothing to cite here.")

    assert output.text == "Nothing to cite here."
    assert output.links == []
    assert to_plain_text(output) == "Nothing to cite here."
    assert to_markdown(output) == "Nothing to cite here."


def test_links_with_nested_brackets_are_left_alone():
    answer = "See [a [nested] label](https://example.com) and [ok](https://ok.example)."

    output = rewrite_citations(answer)

    assert output.links == ["https://ok.example"]
    assert "[a [nested] label](https://example.com)" in output.text


def test_plain_text_has_no_mailto_and_every_marker_is_listed():
    output = rewrite_citations(
        "[Paris](https://example.com/paris) and [Lyon](https://example.com/lyon), "
        "again [Paris](https://example.com/paris)."
    )

    plain = to_plain_text(output)

    assert "mailto:" not in plain
    body, _, references = plain.partition("\n\n")
    assert body == "Paris [1] and Lyon [2], again Paris [1]."
    markers = {int(n) for n in re.findall(r"\[(\d+)\](?!:)", body)}
    for n in markers:
        assert f"[{n}]: {output.links[n - 1]}" in references.splitlines()


def test_markdown_body_escapes_reference_list():
    output = rewrite_citations("[Paris](https://example.com/paris) and [Lyon](https://example.com/lyon).")

    markdown = to_markdown(output)

    assert markdown.endswith(
        "\\[1\\]: https://example.com/paris  \n\\[2\\]: https://example.com/lyon"
    )


def test_format_reference_list_escape_option():
    links = ["https://a.example", "https://b.example"]

    assert format_reference_list(links) == "[1]: https://a.example\n[2]: https://b.example"
    assert format_reference_list(links, escape=True) == (
        "\\[1\\]: https://a.example\n\\[2\\]: https://b.example"
    )
    assert format_reference_list([]) == ""


def test_capital_of_france_example():
    output = rewrite_citations("[Paris](https://example.com/paris) is the capital of France.")

    plain = to_plain_text(output)

    assert plain.startswith("Paris [1] is the capital of France.")
    assert plain.splitlines()[-1] == "[1]: https://example.com/paris"


def test_marker_syntax_in_answer_is_not_counted_as_citation():
    output = rewrite_citations(f"Fake [x\\[5\\]]({CITATION_MAILTO}) marker")

    assert output.links == []
    assert output.indices() == []
    assert output.text == "Fake x marker"
    assert "[5]" not in to_plain_text(output)


def test_marker_syntax_mixed_with_real_link_stays_in_range():
    answer = f"[Paris](https://example.com/paris) and [y\\[7\\]]({CITATION_MAILTO})."

    output = rewrite_citations(answer)

    assert output.links == ["https://example.com/paris"]
    assert output.indices() == [1]
    assert all(1 <= n <= len(output.links) for n in output.indices())


def test_images_are_not_rewritten():
    answer = "![map](https://example.com/map.png) and [Paris](https://example.com/paris)."

    output = rewrite_citations(answer)

    assert output.links == ["https://example.com/paris"]
    assert output.text.startswith("![map](https://example.com/map.png) and ")
    assert output.indices() == [1]
