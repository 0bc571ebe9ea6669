"""Block-level transformations: headers, rules, code blocks, quotes, paragraphs."""

from __future__ import annotations

import functools
import re

from markwright import lists, textutils
from markwright.context import TransformContext
from markwright.escapes import encode_code
from markwright.html_blocks import hash_html_blocks
from markwright.preprocess import detab, outdent
from markwright.spans import run_span_gamut

# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

# Setext-style headers:
#
#   Header 1
#   ========
#
#   Header 2
#   --------
_SETEXT_H1 = re.compile(r"^(.+?)[ \t]*\n=+[ \t]*\n+", re.ASCII | re.MULTILINE)
_SETEXT_H2 = re.compile(r"^(.+?)[ \t]*\n-+[ \t]*\n+", re.ASCII | re.MULTILINE)

# atx-style headers, `# Header 1` to `###### Header 6`, closing hashes optional.
_ATX_HEADER = re.compile(
    r"""
    ^(\#{1,6})  # 1 = string of #'s
    [ \t]*
    (.+?)       # 2 = header text
    [ \t]*
    \#*         # optional closing #'s (not counted)
    \n+
    """,
    re.ASCII | re.MULTILINE | re.VERBOSE,
)


def do_headers(ctx: TransformContext, text: str) -> str:
    text = textutils.replace(
        _SETEXT_H1, text, lambda m: f"<h1>{run_span_gamut(ctx, m.group(1))}</h1>\n\n"
    )
    text = textutils.replace(
        _SETEXT_H2, text, lambda m: f"<h2>{run_span_gamut(ctx, m.group(1))}</h2>\n\n"
    )

    def _atx(m: re.Match[str]) -> str:
        level = len(m.group(1))
        return f"<h{level}>{run_span_gamut(ctx, m.group(2))}</h{level}>\n\n"

    return textutils.replace(_ATX_HEADER, text, _atx)


# ---------------------------------------------------------------------------
# Horizontal rules
# ---------------------------------------------------------------------------

_HORIZONTAL_RULES = tuple(
    re.compile(rf"^[ ]{{0,2}}([ ]?{ch}[ ]?){{3,}}[ \t]*$", re.ASCII | re.MULTILINE)
    for ch in (r"\*", "-", "_")
)


def do_horizontal_rules(ctx: TransformContext, text: str) -> str:
    hr = f"<hr{ctx.options.empty_element_suffix}\n"
    for pattern in _HORIZONTAL_RULES:
        text = textutils.replace_literal(pattern, text, hr)
    return text


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=8)
def _code_block_pattern(tab_width: int) -> re.Pattern[str]:
    return re.compile(
        rf"""
        (?:\n\n|\A)
        (                           # 1 = the code block: one or more lines
          (?:
            (?:[ ]{{{tab_width}}}|\t)   # each starting with a tab-width of spaces
            .*\n+
          )+
        )
        ((?=^[ ]{{0,{tab_width}}}\S)|\Z)  # next line starts flush, or end of doc
        """,
        re.ASCII | re.MULTILINE | re.VERBOSE,
    )


_LEADING_NEWLINES = re.compile(r"^\n+")
_TRAILING_NEWLINES = re.compile(r"\n+\Z")


def do_code_blocks(ctx: TransformContext, text: str) -> str:
    tab_width = ctx.options.tab_width

    def _code_block(m: re.Match[str]) -> str:
        block = encode_code(outdent(m.group(1), tab_width))
        block = detab(block, tab_width)
        block = textutils.replace(_LEADING_NEWLINES, block, "")
        block = textutils.replace(_TRAILING_NEWLINES, block, "")
        return f"\n\n<pre><code>{block}\n</code></pre>\n\n"

    return textutils.replace(_code_block_pattern(tab_width), text, _code_block)


# ---------------------------------------------------------------------------
# Block quotes
# ---------------------------------------------------------------------------

_BLOCK_QUOTE = re.compile(
    r"""
    (                     # wrap whole match in 1
      (
        ^[ \t]*>[ \t]?    # '>' at the start of a line
        .+\n              # rest of the first line
        (.+\n)*           # subsequent consecutive lines
        \n*               # blanks
      )+
    )
    """,
    re.ASCII | re.MULTILINE | re.VERBOSE,
)
_LEADING_QUOTE = re.compile(r"^[ \t]*>[ \t]?", re.ASCII | re.MULTILINE)
_WHITESPACE_ONLY_LINE = re.compile(r"^[ \t]+$", re.ASCII | re.MULTILINE)
_LINE_START = re.compile(textutils.LINE_START)
_SPACE_PRE = re.compile(r"(\s*<pre>.+?</pre>)", re.ASCII | re.DOTALL)
_PRE_INDENT = re.compile(r"^  ", re.ASCII | re.MULTILINE)


def do_block_quotes(ctx: TransformContext, text: str) -> str:
    def _block_quote(m: re.Match[str]) -> str:
        bq = textutils.replace(_LEADING_QUOTE, m.group(1), "")
        bq = textutils.replace(_WHITESPACE_ONLY_LINE, bq, "")
        bq = run_block_gamut(ctx, bq)
        bq = textutils.replace(_LINE_START, bq, "  ")
        # The indent must not leak into <pre> content.
        bq = textutils.replace(
            _SPACE_PRE, bq, lambda pre: textutils.replace(_PRE_INDENT, pre.group(1), "")
        )
        return f"<blockquote>\n{bq}\n</blockquote>\n\n"

    return textutils.replace(_BLOCK_QUOTE, text, _block_quote)


# ---------------------------------------------------------------------------
# Paragraphs
# ---------------------------------------------------------------------------

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
_LEADING_SPACE = re.compile(r"^([ \t]*)")


def form_paragraphs(ctx: TransformContext, text: str) -> str:
    """Wrap `<p>` tags around everything that is not a hashed HTML block."""

    text = textutils.replace(_LEADING_NEWLINES, text, "")
    text = textutils.replace(_TRAILING_NEWLINES, text, "")

    grafs = _PARAGRAPH_BREAK.split(text)
    for i, graf in enumerate(grafs):
        block = ctx.html_blocks.get(graf)
        if block is not None:
            grafs[i] = block
            continue
        graf = run_span_gamut(ctx, graf)
        grafs[i] = textutils.replace(_LEADING_SPACE, graf, "<p>") + "</p>"

    return "\n\n".join(grafs)


def run_block_gamut(ctx: TransformContext, text: str) -> str:
    """Transformations that form block-level tags like paragraphs, headers, list items."""

    text = do_headers(ctx, text)
    text = do_horizontal_rules(ctx, text)
    text = lists.do_lists(ctx, text)
    text = do_code_blocks(ctx, text)
    text = do_block_quotes(ctx, text)

    # Raw HTML was hashed once already; this protects the block tags just
    # generated so they don't get wrapped in <p>.
    text = hash_html_blocks(ctx, text)

    return form_paragraphs(ctx, text)
