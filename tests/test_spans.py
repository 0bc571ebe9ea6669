from __future__ import annotations

from markwright.config import Options
from markwright.context import TransformContext
from markwright.escapes import unescape_special_chars
from markwright.spans import (
    do_anchors,
    do_auto_links,
    do_code_spans,
    do_hard_breaks,
    do_images,
    do_italics_and_bold,
    encode_email_address,
    encode_problem_url_chars,
    escape_special_chars_within_tag_attributes,
    run_span_gamut,
    tokenize_html,
)


def _span(text: str, **opts: object) -> str:
    ctx = TransformContext(options=Options().replace(**opts))
    return unescape_special_chars(run_span_gamut(ctx, text))


# ---------------------------------------------------------------------------
# Code spans
# ---------------------------------------------------------------------------


def test_code_span_with_multiple_backticks() -> None:
    out = unescape_special_chars(do_code_spans("``foo `bar` baz``"))
    assert out == "<code>foo `bar` baz</code>"


def test_code_span_trims_inner_spaces() -> None:
    assert unescape_special_chars(do_code_spans("`` ` ``")) == "<code>`</code>"


def test_escaped_backtick_does_not_open_a_span() -> None:
    assert do_code_spans("\\`not code`") == "\\`not code`"


def test_code_span_contents_are_not_emphasized() -> None:
    assert _span("`*a*` *b*") == "<code>*a*</code> <em>b</em>"


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def test_tokenize_html_finds_comments_and_tags() -> None:
    kinds = [t.kind for t in tokenize_html("a <!-- c --> b <i>x</i>", 6)]
    assert kinds == ["text", "tag", "text", "tag", "text", "tag"]


def test_attribute_values_are_protected_from_emphasis() -> None:
    out = escape_special_chars_within_tag_attributes('<a href="/a_b_c">x_y</a>', 6)
    assert '/a_b_c"' not in out
    assert "x_y" in out
    assert _span('<a href="/a_b_c">x</a>') == '<a href="/a_b_c">x</a>'


# ---------------------------------------------------------------------------
# Images and anchors
# ---------------------------------------------------------------------------


def test_reference_image() -> None:
    ctx = TransformContext()
    ctx.urls["logo"] = "/logo.png"
    ctx.titles["logo"] = "Logo"
    out = do_images(ctx, "![The *logo*][logo]")
    assert unescape_special_chars(out) == '<img src="/logo.png" alt="The *logo*" title="Logo" />'


def test_image_shortcut_reference_and_html_suffix() -> None:
    ctx = TransformContext(options=Options(empty_element_suffix=">"))
    ctx.urls["pic"] = "/p.png"
    assert do_images(ctx, "![Pic][]") == '<img src="/p.png" alt="Pic">'


def test_image_with_undefined_reference_is_untouched() -> None:
    ctx = TransformContext()
    assert do_images(ctx, "![a][nope]") == "![a][nope]"


def test_inline_image_angle_bracket_url_and_quotes_in_alt() -> None:
    ctx = TransformContext()
    out = do_images(ctx, '![say "x"](</a b.png>)')
    assert out == "![say \"x\"](</a b.png>)"
    out = do_images(ctx, '![say "x"](</ab.png>)')
    assert out == '<img src="/ab.png" alt="say &quot;x&quot;" />'


def test_images_take_precedence_over_anchors() -> None:
    assert _span("![a](/i.png)") == '<img src="/i.png" alt="a" />'


def test_inline_anchor_with_angle_bracket_url() -> None:
    ctx = TransformContext()
    assert do_anchors(ctx, "[x](</u>)") == '<a href="/u">x</a>'


def test_inline_anchor_with_parens_in_url() -> None:
    ctx = TransformContext()
    out = do_anchors(ctx, "[w](http://en.wikipedia.org/wiki/Foo_(bar))")
    assert unescape_special_chars(out) == '<a href="http://en.wikipedia.org/wiki/Foo_(bar)">w</a>'


def test_reference_anchor_on_next_line() -> None:
    ctx = TransformContext()
    ctx.urls["1"] = "/one"
    assert do_anchors(ctx, "[text]\n  [1]") == '<a href="/one">text</a>'


def test_shortcut_anchor_with_embedded_newline() -> None:
    ctx = TransformContext()
    ctx.urls["two words"] = "/tw"
    assert do_anchors(ctx, "[Two\nWords]") == '<a href="/tw">Two\nWords</a>'


def test_title_underscores_are_not_emphasized() -> None:
    out = _span('[a](/u "x_y_z")')
    assert out == '<a href="/u" title="x_y_z">a</a>'


def test_link_text_is_span_processed() -> None:
    assert _span("[*em*](/u)") == '<a href="/u"><em>em</em></a>'


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


def test_problem_url_chars_off_by_default() -> None:
    assert encode_problem_url_chars("http://x/a_(b)", Options()) == "http://x/a_(b)"


def test_problem_url_chars_encoded_when_enabled() -> None:
    opts = Options(encode_problem_url_characters=True)
    assert encode_problem_url_chars("http://x/a_(b)'*[]", opts) == "http://x/a%5F%28b%29%27%2A%5B%5D"


def test_problem_url_colons_keep_scheme_and_port() -> None:
    opts = Options(encode_problem_url_characters=True)
    assert encode_problem_url_chars("http://host:8080/a:b", opts) == "http://host:8080/a%3Ab"


# ---------------------------------------------------------------------------
# Autolinks
# ---------------------------------------------------------------------------


def test_encode_email_address_is_fully_hex_encoded() -> None:
    out = encode_email_address("a@b.c")
    assert out == (
        '<a href="&#x6D;&#x61;&#x69;&#x6C;&#x74;&#x6F;:&#x61;&#x40;&#x62;&#x2E;&#x63;">'
        "&#x61;&#x40;&#x62;&#x2E;&#x63;</a>"
    )


def test_mailto_prefix_is_accepted() -> None:
    ctx = TransformContext()
    out = do_auto_links(ctx, "<mailto:a@b.co>")
    assert out == encode_email_address("a@b.co")


def test_email_local_part_hidden_by_the_tag_pass_is_still_linked() -> None:
    assert _span("<foo_bar@example.com>") == encode_email_address("foo_bar@example.com")
    assert _span("<a*b@example.com>") == encode_email_address("a*b@example.com")


def test_bare_urls_are_case_insensitive_when_enabled() -> None:
    ctx = TransformContext(options=Options(auto_hyperlink=True))
    out = do_auto_links(ctx, "go HTTP://EXAMPLE.COM/X now")
    assert out == 'go <a href="HTTP://EXAMPLE.COM/X">HTTP://EXAMPLE.COM/X</a> now'


def test_bare_url_inside_anchor_is_not_relinked() -> None:
    out = _span("[site](http://example.com/)", auto_hyperlink=True)
    assert out == '<a href="http://example.com/">site</a>'


# ---------------------------------------------------------------------------
# Emphasis and breaks
# ---------------------------------------------------------------------------


def test_bold_and_italic() -> None:
    assert do_italics_and_bold("**b** and *i* and __u__ and _v_") == (
        "<strong>b</strong> and <em>i</em> and <strong>u</strong> and <em>v</em>"
    )


def test_bold_italic_nests() -> None:
    assert do_italics_and_bold("***x***") == "<strong><em>x</em></strong>"


def test_lenient_emphasis_inside_words() -> None:
    assert do_italics_and_bold("snake_case_word") == "snake<em>case</em>word"


def test_strict_emphasis_needs_word_boundaries() -> None:
    assert do_italics_and_bold("snake_case_word", strict=True) == "snake_case_word"
    assert do_italics_and_bold("a *b* c", strict=True) == "a <em>b</em> c"
    assert do_italics_and_bold("**bold**", strict=True) == "<strong>bold</strong>"


def test_emphasis_requires_non_space_at_the_edges() -> None:
    assert do_italics_and_bold("a * b * c") == "a * b * c"


def test_hard_breaks() -> None:
    assert do_hard_breaks("a  \nb\nc", Options()) == "a<br />\nb\nc"
    assert do_hard_breaks("a\nb", Options(auto_newlines=True, empty_element_suffix=">")) == "a<br>\nb"
