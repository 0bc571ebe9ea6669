"""Bounded-depth balanced `[brackets]` and `(parens)` sub-patterns.

Regular expressions cannot count, so nesting is unrolled a fixed number of
levels (Friedl, "Mastering Regular Expressions", 2nd ed., pp. 328-331):
`[this]`, `[this[also]]`, `[this[also[too]]]` ... up to `depth`. Text nested
deeper than that simply does not match, and the enclosing link or image is
left as literal text.
"""

from __future__ import annotations

import functools

DEFAULT_DEPTH = 6


def _unroll(open_part: str, close_part: str, depth: int) -> str:
    return open_part * depth + close_part * depth


@functools.lru_cache(maxsize=8)
def nested_brackets_pattern(depth: int = DEFAULT_DEPTH) -> str:
    """Sub-pattern matching text with balanced square brackets."""

    return _unroll(r"(?>[^\[\]]+|\[", r"\])*", depth)


@functools.lru_cache(maxsize=8)
def nested_parens_pattern(depth: int = DEFAULT_DEPTH) -> str:
    """Sub-pattern matching non-space text with balanced parentheses."""

    return _unroll(r"(?>[^()\s]+|\(", r"\))*", depth)


@functools.lru_cache(maxsize=8)
def nested_tags_pattern(depth: int = DEFAULT_DEPTH) -> str:
    """Sub-pattern matching one tag, allowing `<...>` nested inside attributes."""

    return _unroll(r"(?:<[a-z\/!$](?:[^<>]|", r")*>)", depth)
