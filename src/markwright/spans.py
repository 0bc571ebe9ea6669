"""Span-level transformations.

Everything here runs on text that block processing has already isolated: a
paragraph, a header, or a tight list item. The order of `run_span_gamut` is
load-bearing; see the comments there.
"""

from __future__ import annotations

import functools
import re

from markwright import textutils
from markwright.config import Options
from markwright.context import TransformContext
from markwright.escapes import (
    PLACEHOLDER_PATTERN,
    encode_amps_and_angles,
    encode_backslash_escapes,
    encode_code,
    escape,
    escape_bold_italic,
    escape_table,
    unescape_special_chars,
)
from markwright.nesting import nested_brackets_pattern, nested_parens_pattern, nested_tags_pattern

# ---------------------------------------------------------------------------
# Code spans
# ---------------------------------------------------------------------------

_CODE_SPAN = re.compile(
    r"""
    (?<!\\)     # character before opening ` can't be a backslash
    (`+)        # 1 = opening run of `
    (.+?)       # 2 = the code
    (?<!`)
    \1
    (?!`)
    """,
    re.ASCII | re.DOTALL | re.VERBOSE,
)
_LEADING_WHITESPACE = re.compile(r"^[ \t]*")
_TRAILING_WHITESPACE = re.compile(r"[ \t]*$")


def do_code_spans(text: str) -> str:
    """Backtick quotes are used for `<code></code>` spans.

    Any number of backticks may delimit a span, so ``` ``foo `bar` baz`` ```
    yields ``<code>foo `bar` baz</code>``; spaces just inside the delimiters
    are dropped, which allows literal backticks at the edges.
    """

    def _code(m: re.Match[str]) -> str:
        s = textutils.replace(_LEADING_WHITESPACE, m.group(2), "")
        s = textutils.replace(_TRAILING_WHITESPACE, s, "")
        return f"<code>{encode_code(s)}</code>"

    return textutils.replace(_CODE_SPAN, text, _code)


# ---------------------------------------------------------------------------
# Tag attributes
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=8)
def _html_tokens_pattern(depth: int) -> re.Pattern[str]:
    # Derived from the _tokenize() subroutine in Brad Choate's MTRegex plugin.
    return re.compile(
        r"(?s:<!(?:--.*?--\s*)+>)|(?s:<\?.*?\?>)|" + nested_tags_pattern(depth),
        re.ASCII | re.MULTILINE | re.IGNORECASE,
    )


_CODE_TAG_INSIDE = re.compile(r"(?<=.)</?code>(?=.)")


def tokenize_html(text: str, depth: int) -> list[textutils.Token]:
    """Split `text` into tag tokens (possibly with nested tags in attributes) and text."""

    return textutils.tokenize(_html_tokens_pattern(depth), text)


def escape_special_chars_within_tag_attributes(text: str, depth: int) -> str:
    """Within tags, hide `\\`, `*`, `_` and code tags from the Markdown passes."""

    backtick = escape_table()["`"]
    parts: list[str] = []
    for token in tokenize_html(text, depth):
        value = token.value
        if token.kind == "tag":
            value = escape(value, "\\")
            value = textutils.replace_literal(_CODE_TAG_INSIDE, value, backtick)
            value = escape_bold_italic(value)
        parts.append(value)
    return "".join(parts)


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

_LINK_COLON = re.compile(r":(?!\d{2,})", re.ASCII)
_PROBLEM_URL_CHARS = {
    "'": "%27",
    "(": "%28",
    ")": "%29",
    "[": "%5B",
    "]": "%5D",
    "*": "%2A",
    "_": "%5F",
}


def encode_problem_url_chars(url: str, opts: Options) -> str:
    """Percent-encode ``' ( ) [ ] * _ :`` when the option asks for it.

    The scheme's own colon is kept; body colons followed by two or more
    digits (ports) are kept too.
    """

    if not opts.encode_problem_url_characters:
        return url
    for ch, rep in _PROBLEM_URL_CHARS.items():
        url = url.replace(ch, rep)
    if len(url) > 7 and ":" in url[7:]:
        url = url[:7] + textutils.replace(_LINK_COLON, url[7:], "%3A")
    return url


def _attr(name: str, value: str) -> str:
    return f' {name}="{value}"'


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_IMAGES_REF = re.compile(
    r"""
    (               # wrap whole match in 1
      !\[
        (.*?)       # alt text = 2
      \]
      [ ]?          # one optional space
      (?:\n[ ]*)?   # one optional newline followed by spaces
      \[
        (.*?)       # id = 3
      \]
    )
    """,
    re.ASCII | re.DOTALL | re.VERBOSE,
)
_ENCLOSING_LT_GT = re.compile(r"^<(.*)>$")


@functools.lru_cache(maxsize=8)
def _images_inline_pattern(depth: int) -> re.Pattern[str]:
    return re.compile(
        rf"""
        (                   # wrap whole match in 1
          !\[
            (.*?)           # alt text = 2
          \]
          \s?               # one optional whitespace character
          \(
            [ \t]*
            ({nested_parens_pattern(depth)})  # href = 3
            [ \t]*
            (               # 4
              (['"])        # quote char = 5
              (.*?)         # title = 6
              \5
              [ \t]*
            )?              # title is optional
          \)
        )
        """,
        re.ASCII | re.DOTALL | re.VERBOSE,
    )


def _image_tag(url: str, alt: str, title: str | None, opts: Options) -> str:
    out = ["<img", _attr("src", escape_bold_italic(url)), _attr("alt", alt)]
    if title:
        out.append(_attr("title", escape_bold_italic(title)))
    out.append(opts.empty_element_suffix)
    return "".join(out)


def do_images(ctx: TransformContext, text: str) -> str:
    """Turn ``![alt][id]`` and ``![alt](url "title")`` into `<img>` tags."""

    opts = ctx.options

    def _reference(m: re.Match[str]) -> str:
        alt = m.group(2)
        link_id = m.group(3).lower()
        if not link_id:
            # shortcut form ![this][]
            link_id = alt.lower()
        if link_id not in ctx.urls:
            return m.group(1)
        url = encode_problem_url_chars(ctx.urls[link_id], opts)
        alt = escape_bold_italic(alt.replace('"', "&quot;"))
        return _image_tag(url, alt, ctx.titles.get(link_id), opts)

    def _inline(m: re.Match[str]) -> str:
        alt = escape_bold_italic(m.group(2).replace('"', "&quot;"))
        title = m.group(6)
        if title is not None:
            title = title.replace('"', "&quot;")
        url = encode_problem_url_chars(m.group(3), opts)
        url = textutils.replace(_ENCLOSING_LT_GT, url, r"\1")
        return _image_tag(url, alt, title, opts)

    text = textutils.replace(_IMAGES_REF, text, _reference)
    return textutils.replace(_images_inline_pattern(opts.nested_bracket_depth), text, _inline)


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=8)
def _anchor_ref_pattern(depth: int) -> re.Pattern[str]:
    return re.compile(
        rf"""
        (                   # wrap whole match in 1
          \[
            ({nested_brackets_pattern(depth)})  # link text = 2
          \]
          [ ]?              # one optional space
          (?:\n[ ]*)?       # one optional newline followed by spaces
          \[
            (.*?)           # id = 3
          \]
        )
        """,
        re.ASCII | re.DOTALL | re.VERBOSE,
    )


@functools.lru_cache(maxsize=8)
def _anchor_inline_pattern(depth: int) -> re.Pattern[str]:
    return re.compile(
        rf"""
        (                   # wrap whole match in 1
          \[
            ({nested_brackets_pattern(depth)})  # link text = 2
          \]
          \(                # literal paren
            [ \t]*
            ({nested_parens_pattern(depth)})    # href = 3
            [ \t]*
            (               # 4
              (['"])        # quote char = 5
              (.*?)         # title = 6
              \5            # matching quote
              [ \t]*        # spaces/tabs between closing quote and )
            )?              # title is optional
          \)
        )
        """,
        re.ASCII | re.DOTALL | re.VERBOSE,
    )


_ANCHOR_REF_SHORTCUT = re.compile(
    r"""
    (               # wrap whole match in 1
      \[
        ([^\[\]]+)  # link text = 2; can't contain [ or ]
      \]
    )
    """,
    re.ASCII | re.DOTALL | re.VERBOSE,
)
_EMBEDDED_NEWLINES = re.compile(r"[ ]*\n[ ]*")


def _anchor_tag(url: str, title: str | None, link_text: str) -> str:
    out = ["<a", _attr("href", escape_bold_italic(url))]
    if title:
        out.append(_attr("title", escape_bold_italic(title)))
    out.append(f">{link_text}</a>")
    return "".join(out)


def do_anchors(ctx: TransformContext, text: str) -> str:
    """Turn ``[text][id]``, ``[text](url "title")`` and ``[text]`` into anchors."""

    opts = ctx.options

    def _reference(m: re.Match[str]) -> str:
        link_text = m.group(2)
        link_id = m.group(3).lower()
        if not link_id:
            # shortcut form [this][]
            link_id = link_text.lower()
        if link_id not in ctx.urls:
            return m.group(1)
        url = encode_problem_url_chars(ctx.urls[link_id], opts)
        return _anchor_tag(url, ctx.titles.get(link_id), link_text)

    def _inline(m: re.Match[str]) -> str:
        url = m.group(3)
        if url.startswith("<") and url.endswith(">"):
            url = url[1:-1]
        url = encode_problem_url_chars(url, opts)
        title = m.group(6)
        if title:
            title = title.replace('"', "&quot;")
        return _anchor_tag(url, title, m.group(2))

    def _shortcut(m: re.Match[str]) -> str:
        link_text = m.group(2)
        link_id = textutils.replace(_EMBEDDED_NEWLINES, link_text, " ").lower()
        if link_id not in ctx.urls:
            return m.group(1)
        url = encode_problem_url_chars(ctx.urls[link_id], opts)
        return _anchor_tag(url, ctx.titles.get(link_id), link_text)

    depth = opts.nested_bracket_depth
    text = textutils.replace(_anchor_ref_pattern(depth), text, _reference)
    text = textutils.replace(_anchor_inline_pattern(depth), text, _inline)
    # Shortcuts last, so [text][1] and [text](/url) are already handled.
    return textutils.replace(_ANCHOR_REF_SHORTCUT, text, _shortcut)


# ---------------------------------------------------------------------------
# Autolinks
# ---------------------------------------------------------------------------

_AUTO_LINK_BARE = re.compile(
    r"(^|\s)(https?|ftp)"
    r"(://[-A-Z0-9+&@#/%?=~_|\[\]\(\)!:,\.;]*[-A-Z0-9+&@#/%=~_|\[\]])"
    r"($|\W)",
    re.ASCII | re.IGNORECASE,
)
_LINK_ESCAPE = re.compile(r"<(?:https?|ftp)://[^>]+>", re.ASCII | re.IGNORECASE)
_HYPERLINK = re.compile(r"<((?:https?|ftp):[^'\">\s]+)>", re.ASCII | re.IGNORECASE)
_LINK_EMAIL = re.compile(
    rf"""
    <
    (?:mailto:)?
    (
      (?:[-.\w]|{PLACEHOLDER_PATTERN})+   # `_` and `*` arrive hidden from the tag pass
      @
      [-a-z0-9]+(?:\.[-a-z0-9]+)*\.[a-z]+
    )
    >
    """,
    re.ASCII | re.IGNORECASE | re.VERBOSE,
)
_NOT_COLON = re.compile(r"[^:]")
_VISIBLE_MAILTO = re.compile(r'">.+?:')


def encode_email_address(addr: str) -> str:
    """Return a `mailto:` anchor with the address written as character references.

    Every character but `:` becomes a hexadecimal reference, which defeats
    naive address harvesting. The visible text omits the `mailto:` prefix.
    """

    addr = "mailto:" + addr
    # ':' is left alone so the visible prefix can be found below.
    addr = textutils.replace(_NOT_COLON, addr, lambda m: f"&#x{ord(m.group()):X};")
    link = f'<a href="{addr}">{addr}</a>'
    return textutils.replace(_VISIBLE_MAILTO, link, '">')


def do_auto_links(ctx: TransformContext, text: str) -> str:
    """Link ``<http://example.com>`` and, optionally, ``<address@example.com>``."""

    opts = ctx.options
    if opts.auto_hyperlink:
        # Every other URL is already an <a href=""> at this point, except
        # the <http://www.foo.com> form; bare ones get the brackets too.
        text = textutils.replace(_AUTO_LINK_BARE, text, r"\1<\2\3>\4")

    text = textutils.replace(_LINK_ESCAPE, text, lambda m: encode_problem_url_chars(m.group(), opts))

    def _hyperlink(m: re.Match[str]) -> str:
        url = escape_bold_italic(m.group(1))
        return f'<a href="{url}">{url}</a>'

    text = textutils.replace(_HYPERLINK, text, _hyperlink)

    if opts.link_emails:
        text = textutils.replace(
            _LINK_EMAIL, text, lambda m: encode_email_address(unescape_special_chars(m.group(1)))
        )
    return text


# ---------------------------------------------------------------------------
# Emphasis and line breaks
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=2)
def _emphasis_patterns(strict: bool) -> tuple[tuple[re.Pattern[str], str], tuple[re.Pattern[str], str]]:
    if strict:
        bold = (r"([\W_]|^)(\*\*|__)(?=\S)([^\r]*?\S[\*_]*)\2([\W_]|$)", r"\1<strong>\3</strong>\4")
        italic = (r"([\W_]|^)(\*|_)(?=\S)([^\r\*_]*?\S)\2([\W_]|$)", r"\1<em>\3</em>\4")
    else:
        bold = (r"(\*\*|__)(?=\S)(.+?[*_]*)(?<=\S)\1", r"<strong>\2</strong>")
        italic = (r"(\*|_)(?=\S)(.+?)(?<=\S)\1", r"<em>\2</em>")
    return (
        (re.compile(bold[0], re.ASCII | re.DOTALL), bold[1]),
        (re.compile(italic[0], re.ASCII | re.DOTALL), italic[1]),
    )


def do_italics_and_bold(text: str, strict: bool = False) -> str:
    (strong, strong_repl), (em, em_repl) = _emphasis_patterns(strict)
    # <strong> must go first so ***x*** nests.
    text = textutils.replace(strong, text, strong_repl)
    return textutils.replace(em, text, em_repl)


_HARD_BREAK = re.compile(r" {2,}\n")
_ANY_NEWLINE = re.compile(r"\n")


def do_hard_breaks(text: str, opts: Options) -> str:
    pattern = _ANY_NEWLINE if opts.auto_newlines else _HARD_BREAK
    return textutils.replace_literal(pattern, text, f"<br{opts.empty_element_suffix}\n")


def run_span_gamut(ctx: TransformContext, text: str) -> str:
    """Transformations that occur within block-level tags."""

    opts = ctx.options
    text = do_code_spans(text)

    text = escape_special_chars_within_tag_attributes(text, opts.nested_bracket_depth)
    text = encode_backslash_escapes(text)

    # Images first: ![foo][f] looks like an anchor.
    text = do_images(ctx, text)
    text = do_anchors(ctx, text)

    # After anchors, since [this](<url>) also uses < and >.
    text = do_auto_links(ctx, text)

    text = encode_amps_and_angles(text)
    text = do_italics_and_bold(text, strict=opts.strict_bold_italic)
    return do_hard_breaks(text, opts)
