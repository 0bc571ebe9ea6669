"""The transform driver."""

from __future__ import annotations

import logging

from markwright.blocks import run_block_gamut
from markwright.config import DEFAULT_OPTIONS, Options, validate_options
from markwright.context import TransformContext
from markwright.escapes import unescape_special_chars
from markwright.html_blocks import hash_html_blocks
from markwright.preprocess import preprocess
from markwright.references import strip_link_definitions

logger = logging.getLogger("markwright.markdown")


class Markdown:
    """Markdown to (X)HTML converter.

    Instances hold only immutable `Options`; every `transform` call gets its
    own `TransformContext`, so one instance may be shared between threads.
    """

    def __init__(self, options: Options | None = None) -> None:
        options = options or DEFAULT_OPTIONS
        validate_options(options)
        self.options = options

    def transform(self, text: str) -> str:
        """Convert Markdown `text` to HTML.

        The order of the stages is essential. Link and image substitution
        must happen before special characters are unescaped, so that any
        `*` or `_` inside generated `<a>` and `<img>` tags stay encoded.
        """

        ctx = TransformContext(options=self.options)

        out = preprocess(text, self.options.tab_width)
        # Block-level raw HTML becomes hash keys.
        out = hash_html_blocks(ctx, out)
        out = strip_link_definitions(ctx, out)
        out = run_block_gamut(ctx, out)
        out = unescape_special_chars(out)

        logger.debug(
            "transformed %d chars -> %d chars (%d link refs, %d html blocks)",
            len(text),
            len(out),
            len(ctx.urls),
            len(ctx.html_blocks),
        )
        return out + "\n"

    def __call__(self, text: str) -> str:
        return self.transform(text)


def transform(text: str, options: Options | None = None) -> str:
    """Convert Markdown `text` to HTML with `options` (defaults if omitted)."""

    return Markdown(options).transform(text)
