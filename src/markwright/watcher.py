"""Watch mode: re-render Markdown files when they change."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from markwright.markdown import Markdown
from markwright.render import is_markdown_file, output_path_for, render_file

logger = logging.getLogger("markwright.watcher")


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch render cycle."""

    rendered: tuple[Path, ...]
    failed: dict[str, str] = field(default_factory=dict)
    duration_s: float = 0.0
    changed_paths: frozenset[Path] = frozenset()


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install markwright[watch]"
        ) from None


def filter_markdown_files(changed_paths: frozenset[Path], *, roots: Sequence[Path]) -> frozenset[Path]:
    """Keep Markdown sources that live under one of the watched roots."""
    kept: set[Path] = set()
    for p in changed_paths:
        if not is_markdown_file(p):
            continue
        if any(p.is_relative_to(r) for r in roots):
            kept.add(p)
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    roots: Sequence[Path],
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_markdown_files(paths, roots=roots)
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        on_event(f"[watch] rendered {len(result.rendered)} file(s) ({result.duration_s:.2f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": not result.failed,
        "rendered": [str(p) for p in result.rendered],
        "failed": dict(sorted(result.failed.items())),
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
    }


def build_cycle_runner(
    md: Markdown,
    *,
    roots: Sequence[Path],
    output_dir: Path | None,
) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that renders every changed file that still exists."""

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        rendered: list[Path] = []
        failed: dict[str, str] = {}
        for src in sorted(event.changed_paths):
            if not src.exists():
                logger.debug("skipping deleted %s", src)
                continue
            result = render_file(md, src, output_path_for(src, output_dir=output_dir, roots=roots))
            if result.ok and result.output is not None:
                rendered.append(result.output)
            else:
                failed[str(src)] = result.error or "unknown error"
        return WatchCycleResult(
            rendered=tuple(rendered),
            failed=failed,
            duration_s=time.monotonic() - t0,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(watch_paths: Sequence[Path]) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=200)
