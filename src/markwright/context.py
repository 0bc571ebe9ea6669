"""Per-call transform state."""

from __future__ import annotations

from dataclasses import dataclass, field

from markwright.config import DEFAULT_OPTIONS, Options


@dataclass(slots=True)
class TransformContext:
    """Tables filled while one document is transformed.

    A fresh context is created for every `transform` call and threaded through
    every stage, so a single `Markdown` instance can be shared across threads.
    """

    options: Options = DEFAULT_OPTIONS
    # lowercase link id -> URL
    urls: dict[str, str] = field(default_factory=dict)
    # lowercase link id -> title (only ids that supplied one)
    titles: dict[str, str] = field(default_factory=dict)
    # hash key -> raw HTML block text
    html_blocks: dict[str, str] = field(default_factory=dict)
    # > 0 while inside list item processing
    list_level: int = 0
