"""Pattern helpers shared by every pipeline stage.

This is the small search/replace/tokenize layer the transform is written
against. It is a thin veneer over :mod:`re`; patterns may be passed either
compiled or as source strings (compiled on first use and cached). Source
strings are compiled with ASCII-only character classes, like every pattern
in the pipeline.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Literal

Replacement = str | Callable[[re.Match[str]], str]
PatternLike = str | re.Pattern[str]

# `^` with MULTILINE semantics that do not match after a trailing newline at
# the very end of the input.
LINE_START = r"(?:\A|(?<=\n)(?!\Z))"


@dataclass(frozen=True, slots=True)
class Token:
    kind: Literal["text", "tag"]
    value: str


@functools.lru_cache(maxsize=256)
def _compile(source: str, flags: int) -> re.Pattern[str]:
    return re.compile(source, flags | re.ASCII)


def compile_pattern(pattern: PatternLike, flags: int = 0) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return _compile(pattern, flags)


def find(pattern: PatternLike, text: str, flags: int = 0) -> bool:
    """Return True if `pattern` matches anywhere in `text`."""

    return compile_pattern(pattern, flags).search(text) is not None


def matches(pattern: PatternLike, text: str, flags: int = 0) -> bool:
    """Return True if `pattern` matches the whole of `text`."""

    return compile_pattern(pattern, flags).fullmatch(text) is not None


def finditer(pattern: PatternLike, text: str, flags: int = 0) -> Iterator[re.Match[str]]:
    return compile_pattern(pattern, flags).finditer(text)


def replace(pattern: PatternLike, text: str, repl: Replacement, flags: int = 0) -> str:
    """Replace every non-overlapping match.

    A string `repl` is a template (``\\1``/``\\g<name>`` back-references);
    a callable receives the match and returns the literal replacement.
    """

    return compile_pattern(pattern, flags).sub(repl, text)


def replace_literal(pattern: PatternLike, text: str, value: str, flags: int = 0) -> str:
    """Replace every match with `value`, taken verbatim (no back-references)."""

    return compile_pattern(pattern, flags).sub(lambda _m: value, text)


def tokenize(pattern: PatternLike, text: str, flags: int = 0) -> list[Token]:
    """Split `text` into alternating "tag" (matched) and "text" (unmatched) runs.

    Empty text runs between adjacent matches are omitted; input with no
    match at all yields a single text token (even when `text` is empty).
    """

    tokens: list[Token] = []
    pos = 0
    for m in compile_pattern(pattern, flags).finditer(text):
        if pos < m.start():
            tokens.append(Token("text", text[pos : m.start()]))
        tokens.append(Token("tag", m.group()))
        pos = m.end()
    if not tokens:
        return [Token("text", text)]
    if pos < len(text):
        tokens.append(Token("text", text[pos:]))
    return tokens
