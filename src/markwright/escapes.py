"""Reversible escaping of Markdown-significant characters.

Characters that must survive later passes literally (inside code, inside tag
attributes, or backslash-escaped by the author) are swapped for placeholder
tokens. `unescape_special_chars` swaps them back exactly once, as the final
step of the transform.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from types import MappingProxyType

from markwright import textutils

ESCAPE_CHARACTERS = "\\`*_{}[]()>#+-.!"

# ASCII SUB never shows up in typed text.
_PLACEHOLDER_MARK = "\x1a"

# Matches any one placeholder.
PLACEHOLDER_PATTERN = r"\x1aE\d+E"


def placeholder_for(ch: str) -> str:
    return f"{_PLACEHOLDER_MARK}E{ord(ch)}E"


@functools.lru_cache(maxsize=1)
def escape_table() -> Mapping[str, str]:
    return MappingProxyType({ch: placeholder_for(ch) for ch in ESCAPE_CHARACTERS})


@functools.lru_cache(maxsize=1)
def backslash_escape_table() -> Mapping[str, str]:
    # Insertion order puts "\\\\" first; it must be replaced before the others.
    return MappingProxyType({"\\" + ch: placeholder_for(ch) for ch in ESCAPE_CHARACTERS})


def escape(text: str, ch: str) -> str:
    rep = escape_table().get(ch)
    return text if rep is None else text.replace(ch, rep)


def escape_bold_italic(text: str) -> str:
    """Hide `*` and `_` so emphasis cannot match inside attribute values."""

    text = escape(text, "*")
    return escape(text, "_")


def encode_code(code: str) -> str:
    """Encode text that is to be shown literally inside `<code>`.

    All ampersands and angle brackets become entities (entities are not
    entities inside code), then Markdown-magic characters are hidden.
    """

    code = code.replace("&", "&amp;")
    code = code.replace("<", "&lt;")
    code = code.replace(">", "&gt;")
    for ch in "*_{}[]\\":
        code = escape(code, ch)
    return code


def encode_backslash_escapes(text: str) -> str:
    for seq, rep in backslash_escape_table().items():
        text = text.replace(seq, rep)
    return text


def unescape_special_chars(text: str) -> str:
    """Swap every placeholder back to its literal character."""

    if _PLACEHOLDER_MARK not in text:
        return text
    for ch, rep in escape_table().items():
        text = text.replace(rep, ch)
    return text


_AMPS = re.compile(r"&(?!#?[xX]?(?:[0-9a-fA-F]+|\w+);)", re.ASCII)
_ANGLES = re.compile(r"<(?![A-Za-z/?\$!])")


def encode_amps_and_angles(text: str) -> str:
    """Encode `&` and `<` that are not already part of an entity or a tag.

    Idempotent: existing entities such as ``&amp;`` are left alone.
    """

    text = textutils.replace(_AMPS, text, "&amp;")
    return textutils.replace(_ANGLES, text, "&lt;")
