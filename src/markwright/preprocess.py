"""Input normalization run before any block-level pass."""

from __future__ import annotations

import functools
import re

from markwright import textutils

_BLANK_LINE = re.compile(r"^[ \t]+$", re.ASCII | re.MULTILINE)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def detab(text: str, tab_width: int = 4) -> str:
    """Expand tabs to spaces, advancing each to the next tab stop on its line."""

    if "\t" not in text:
        return text
    return text.expandtabs(tab_width)


def strip_blank_lines(text: str) -> str:
    """Reduce lines made only of spaces/tabs to empty lines.

    Later patterns can then match consecutive blank lines with ``\\n+``.
    """

    return textutils.replace(_BLANK_LINE, text, "")


@functools.lru_cache(maxsize=8)
def _outdent_pattern(tab_width: int) -> re.Pattern[str]:
    return re.compile(rf"^(?:\t|[ ]{{1,{tab_width}}})", re.ASCII | re.MULTILINE)


def outdent(block: str, tab_width: int = 4) -> str:
    """Remove one level of line-leading tabs or spaces."""

    return textutils.replace(_outdent_pattern(tab_width), block, "")


def preprocess(text: str, tab_width: int = 4) -> str:
    """Normalize line endings, pad with two newlines, detab, blank out space-only lines."""

    text = normalize_newlines(text)
    text += "\n\n"
    text = detab(text, tab_width)
    return strip_blank_lines(text)
