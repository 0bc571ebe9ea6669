"""Link reference definitions: ``[id]: url "optional title"``."""

from __future__ import annotations

import functools
import re

from markwright import textutils
from markwright.context import TransformContext
from markwright.escapes import encode_amps_and_angles


@functools.lru_cache(maxsize=8)
def _link_definition_pattern(tab_width: int) -> re.Pattern[str]:
    return re.compile(
        rf"""
        ^[ ]{{0,{tab_width - 1}}}\[(.+)\]:   # id = 1
        [ \t]*\n?[ \t]*                     # maybe *one* newline
        <?(\S+?)>?                          # url = 2
        [ \t]*\n?[ \t]*                     # maybe one newline
        (?:
          (?<=\s)                           # lookbehind for whitespace
          ["'(]
          (.+?)                             # title = 3
          ["')]
          [ \t]*
        )?                                  # title is optional
        (?:\n+|\Z)
        """,
        re.ASCII | re.MULTILINE | re.VERBOSE,
    )


def strip_link_definitions(ctx: TransformContext, text: str) -> str:
    """Remove link definitions from `text`, recording them in `ctx`."""

    def _record(m: re.Match[str]) -> str:
        link_id = m.group(1).lower()
        ctx.urls[link_id] = encode_amps_and_angles(m.group(2))
        title = m.group(3)
        if title:
            ctx.titles[link_id] = title.replace('"', "&quot;")
        return ""

    return textutils.replace(_link_definition_pattern(ctx.options.tab_width), text, _record)
