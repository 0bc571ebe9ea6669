from __future__ import annotations

from markwright.context import TransformContext
from markwright.html_blocks import hash_html_blocks, html_block_key


def test_block_key_is_stable_and_printable() -> None:
    key = html_block_key("<div>x</div>")
    assert key == html_block_key("<div>x</div>")
    assert key != html_block_key("<div>y</div>")
    assert key.isascii()
    assert key.isalnum()


def test_nested_div_is_hashed_as_one_block() -> None:
    ctx = TransformContext()
    text = "<div>\n  <div>\n  inner\n  </div>\n</div>\n\nafter\n"
    out = hash_html_blocks(ctx, text)
    assert list(ctx.html_blocks.values()) == ["<div>\n  <div>\n  inner\n  </div>\n</div>"]
    key = next(iter(ctx.html_blocks))
    assert out == f"\n\n{key}\n\n\n\nafter\n"


def test_closing_tag_on_the_same_line() -> None:
    ctx = TransformContext()
    hash_html_blocks(ctx, "<p>one line</p>\n")
    assert list(ctx.html_blocks.values()) == ["<p>one line</p>"]


def test_inline_tags_are_not_hashed() -> None:
    ctx = TransformContext()
    text = "<span>x</span>\n"
    assert hash_html_blocks(ctx, text) == text
    assert ctx.html_blocks == {}


def test_indented_block_is_not_hashed() -> None:
    ctx = TransformContext()
    text = "    <div>\n    </div>\n"
    assert hash_html_blocks(ctx, text) == text


def test_hr_and_comment_blocks() -> None:
    ctx = TransformContext()
    hash_html_blocks(ctx, "<hr />\n\n<!-- hidden -->\n\n")
    assert sorted(ctx.html_blocks.values()) == ["<!-- hidden -->", "<hr />"]
