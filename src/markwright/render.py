"""File-level helpers shared by the CLI, watch mode and the MCP server."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from markwright.errors import MarkwrightInputError
from markwright.markdown import Markdown

logger = logging.getLogger("markwright.render")

MARKDOWN_SUFFIXES = frozenset({".md", ".markdown", ".mdown", ".text"})


@dataclass(frozen=True, slots=True)
class RenderResult:
    source: Path
    output: Path | None
    ok: bool
    error: str | None = None


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise MarkwrightInputError(f"No such file: {path}") from e
    except UnicodeDecodeError as e:
        raise MarkwrightInputError(f"Input is not valid UTF-8: {path}") from e
    except OSError as e:
        raise MarkwrightInputError(f"Failed reading {path}: {e}") from e


def output_path_for(src: Path, *, output_dir: Path | None, roots: Sequence[Path] = ()) -> Path:
    """Where the HTML for `src` goes.

    Without `output_dir` the `.html` file sits next to the source. With it,
    the path relative to the first containing root is mirrored underneath.
    """

    if output_dir is None:
        return src.with_suffix(".html")
    rel: Path = Path(src.name)
    for root in roots:
        if src.is_relative_to(root):
            rel = src.relative_to(root)
            break
    return (output_dir / rel).with_suffix(".html")


def render_file(md: Markdown, src: Path, dest: Path) -> RenderResult:
    """Render `src` into `dest`; input and write errors are reported, not raised."""

    try:
        html = md.transform(read_document(src))
    except MarkwrightInputError as e:
        return RenderResult(source=src, output=None, ok=False, error=str(e))

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(html, encoding="utf-8")
    except OSError as e:
        return RenderResult(source=src, output=None, ok=False, error=f"Failed writing {dest}: {e}")

    logger.debug("rendered %s -> %s", src, dest)
    return RenderResult(source=src, output=dest, ok=True)


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES
