from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from prflow.domain.markup import RESET_ALL, Literal, render, render_plain, tokenize

STYLE_NAMES = ["red", "green", "yellow", "blue", "magenta", "cyan", "white", "reset", "b", "u"]

# Without "[" no span can form.
plain_text = st.text(alphabet=st.characters(blacklist_characters="["), max_size=80)
span_content = st.text(alphabet=st.characters(blacklist_characters="]"), max_size=20)


@settings(max_examples=200)
@given(text=plain_text)
def test_plain_text_is_unchanged(text: str) -> None:
    assert render(text) == text
    assert render_plain(text) == text


@settings(max_examples=200)
@given(text=st.text(max_size=80))
def test_render_is_deterministic(text: str) -> None:
    assert render(text) == render(text)


@settings(max_examples=100)
@given(
    styles=st.lists(st.sampled_from(STYLE_NAMES), min_size=1, max_size=3),
    content=span_content,
    before=plain_text,
    after=plain_text,
)
def test_span_content_is_followed_by_reset(styles: list[str], content: str, before: str, after: str) -> None:
    prefix = "".join(f"@{name}" for name in styles)
    source = f"{before} {prefix}[[{content}]] {after}"
    assert f"{content}{RESET_ALL} {after}" in render(source)
    assert render_plain(source) == f"{before} {content} {after}"


@settings(max_examples=100)
@given(text=st.text(max_size=60))
def test_literal_tokens_are_never_empty(text: str) -> None:
    tokens = tokenize(text)
    assert all(token.text for token in tokens if isinstance(token, Literal))
    assert len(render_plain(text)) <= len(text)
