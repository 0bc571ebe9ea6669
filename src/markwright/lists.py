"""Ordered and unordered lists.

`ctx.list_level` tracks whether we are inside a list. Outside a list,

    I recommend upgrading to version
    8. Oops, now this line is treated
    as a sub-list.

stays a single paragraph even though a line starts with digit-period-space.
Inside a list (or sub-list) the same line starts a sub-list. Markdown's
syntax cannot be parsed perfectly here without mind-reading; the counter is
the compromise.
"""

from __future__ import annotations

import functools
import re

from markwright import textutils
from markwright.context import TransformContext
from markwright.preprocess import outdent
from markwright.spans import run_span_gamut

MARKER_UL = r"[*+-]"
MARKER_OL = r"\d+[.]"
MARKER_ANY = rf"(?:{MARKER_OL}|{MARKER_UL})"

_MARKER_UL = re.compile(MARKER_UL)
_TWO_PLUS_NEWLINES = re.compile(r"\n{2,}")
_TRAILING_BLANK_LINES = re.compile(r"\n{2,}\Z", re.ASCII | re.MULTILINE)
_TRAILING_NEWLINES = re.compile(r"\n+$", re.ASCII | re.MULTILINE)


def _whole_list(tab_width: int) -> str:
    return rf"""
    (                                   # 1 = whole list
      (                                 # 2
        [ ]{{0,{tab_width - 1}}}
        ({MARKER_ANY})                  # 3 = first list item marker
        [ \t]+
      )
      (?s:.+?)
      (                                 # 4
        \Z
        |
        \n{{2,}}
        (?=\S)
        (?![ \t]*{MARKER_ANY}[ \t]+)    # not followed by another list item
      )
    )
    """


@functools.lru_cache(maxsize=8)
def _list_patterns(tab_width: int) -> tuple[re.Pattern[str], re.Pattern[str]]:
    whole = _whole_list(tab_width)
    flags = re.ASCII | re.MULTILINE | re.VERBOSE
    nested = re.compile("^" + whole, flags)
    top_level = re.compile(r"(?:(?<=\n\n)|\A\n?)" + whole, flags)
    return nested, top_level


_LIST_ITEM = re.compile(
    rf"""
    (\n)?                           # 1 = leading line
    (^[ \t]*)                       # 2 = leading whitespace
    ({MARKER_ANY})[ \t]+            # 3 = list marker
    (
      (?s:.+?)                      # 4 = list item text
      (\n{{1,2}})
    )
    (?=\n*(\Z|\2({MARKER_ANY})[ \t]+))
    """,
    re.ASCII | re.MULTILINE | re.VERBOSE,
)


def do_lists(ctx: TransformContext, text: str) -> str:
    """Turn every ul/ol list in `text` into HTML.

    Top-level lists must follow a blank line or start the document; inside
    a list, a sub-list may start on any line.
    """

    nested, top_level = _list_patterns(ctx.options.tab_width)

    def _list(m: re.Match[str]) -> str:
        list_text = m.group(1)
        list_type = "ul" if textutils.matches(_MARKER_UL, m.group(3)) else "ol"
        # Double returns become triple returns, so the last item can get a
        # paragraph when it needs one.
        list_text = textutils.replace(_TWO_PLUS_NEWLINES, list_text, "\n\n\n")
        items = process_list_items(ctx, list_text)
        return f"<{list_type}>\n{items}</{list_type}>\n"

    pattern = nested if ctx.list_level > 0 else top_level
    return textutils.replace(pattern, text, _list)


def process_list_items(ctx: TransformContext, list_text: str) -> str:
    """Split one list into `<li>` items, recursing into each item's content."""

    # Lazy import: block and list processing recurse into each other.
    from markwright.blocks import run_block_gamut

    tab_width = ctx.options.tab_width

    def _item(m: re.Match[str]) -> str:
        item = m.group(4)
        if m.group(1) or textutils.find(_TWO_PLUS_NEWLINES, item):
            item = run_block_gamut(ctx, outdent(item, tab_width))
        else:
            # Recursion for sub-lists.
            item = do_lists(ctx, outdent(item, tab_width))
            item = textutils.replace(_TRAILING_NEWLINES, item, "")
            item = run_span_gamut(ctx, item)
        return f"<li>{item}</li>\n"

    ctx.list_level += 1
    try:
        list_text = textutils.replace(_TRAILING_BLANK_LINES, list_text, "\n")
        return textutils.replace(_LIST_ITEM, list_text, _item)
    finally:
        ctx.list_level -= 1
