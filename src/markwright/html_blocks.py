"""Hashing of block-level raw HTML.

Only block-level tags (headers, lists, tables, ...) are protected; paragraphs
wrapped in inline tags such as anchors or spans still get `<p>` tags. Each
protected block is swapped for an opaque key that `blocks.form_paragraphs`
later recognizes and restores verbatim.
"""

from __future__ import annotations

import functools
import hashlib
import re

from markwright import textutils
from markwright.context import TransformContext

_BLOCK_TAGS_NESTED = (
    "p|div|h[1-6]|blockquote|pre|table|dl|ol|ul|script|noscript|form|fieldset|iframe|math|ins|del"
)
_BLOCK_TAGS_LIBERAL = (
    "p|div|h[1-6]|blockquote|pre|table|dl|ol|ul|script|noscript|form|fieldset|iframe|math"
)

# Outermost tag at the left margin; the matching close tag must also start a
# line, so nested inner blocks have to be indented.
_BLOCKS_NESTED = re.compile(
    rf"""
    (                       # whole block = 1
      ^<({_BLOCK_TAGS_NESTED})  # start tag = 2
      \b
      (?>.*\n)*?            # any number of lines, minimally matching
      </\2>                 # the matching end tag
      [ \t]*
      (?=\n+|\Z)
    )
    """,
    re.ASCII | re.MULTILINE | re.VERBOSE,
)

# Same idea, but the close tag may follow other text on its line.
_BLOCKS_LIBERAL = re.compile(
    rf"""
    (
      ^<({_BLOCK_TAGS_LIBERAL})
      \b
      (?>.*\n)*?
      .*</\2>
      [ \t]*
      (?=\n+|\Z)
    )
    """,
    re.ASCII | re.MULTILINE | re.VERBOSE,
)


@functools.lru_cache(maxsize=8)
def _hr_pattern(tab_width: int) -> re.Pattern[str]:
    return re.compile(
        r"(?:(?<=\n\n)|\A\n?)"  # after a blank line or at the start of the doc
        rf"([ ]{{0,{tab_width - 1}}}"
        r"<(hr)\b([^<>])*?/?>"
        r"[ \t]*"
        r"(?=\n{2,}|\Z))",
        re.ASCII,
    )


@functools.lru_cache(maxsize=8)
def _comment_pattern(tab_width: int) -> re.Pattern[str]:
    return re.compile(
        r"(?:(?<=\n\n)|\A\n?)"
        rf"([ ]{{0,{tab_width - 1}}}"
        r"(?s:<!(--.*?--\s*)+>)"
        r"[ \t]*"
        r"(?=\n{2,}|\Z))",
        re.ASCII,
    )


def html_block_key(block: str) -> str:
    """Stable key for a raw HTML block, made only of ASCII letters and digits."""

    digest = hashlib.sha256(block.encode("utf-8")).hexdigest()[:32]
    return f"mwhtmlblock{digest}"


def hash_html_blocks(ctx: TransformContext, text: str) -> str:
    """Replace block-level HTML with keys stored in `ctx.html_blocks`."""

    def _store(m: re.Match[str]) -> str:
        block = m.group(1)
        key = html_block_key(block)
        ctx.html_blocks[key] = block
        return f"\n\n{key}\n\n"

    tab_width = ctx.options.tab_width
    # Nested blocks first: the liberal pattern would stop at the first
    # inner close tag.
    text = textutils.replace(_BLOCKS_NESTED, text, _store)
    text = textutils.replace(_BLOCKS_LIBERAL, text, _store)
    text = textutils.replace(_hr_pattern(tab_width), text, _store)
    return textutils.replace(_comment_pattern(tab_width), text, _store)
