"""Tests for markwright.watcher module."""

from __future__ import annotations

import asyncio
import sys
import types
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from markwright import Markdown
from markwright.watcher import (
    WatchCycleResult,
    WatchEvent,
    build_cycle_runner,
    filter_markdown_files,
    format_watch_cycle_json,
    run_watch_loop,
)

# ---------------------------------------------------------------------------
# Optional dependency check
# ---------------------------------------------------------------------------


def test_check_watchfiles_available_raises_when_missing(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "watchfiles", None)

    from markwright.watcher import check_watchfiles_available

    with pytest.raises(ImportError, match="pip install markwright\\[watch\\]"):
        check_watchfiles_available()


def test_check_watchfiles_available_succeeds_when_installed(monkeypatch) -> None:
    fake = types.ModuleType("watchfiles")
    monkeypatch.setitem(sys.modules, "watchfiles", fake)

    from markwright.watcher import check_watchfiles_available

    check_watchfiles_available()  # no exception


# ---------------------------------------------------------------------------
# File filtering
# ---------------------------------------------------------------------------


def test_filter_mixed_paths() -> None:
    changed = frozenset(
        {
            Path("/docs/guide/intro.md"),  # valid
            Path("/docs/notes.markdown"),  # valid
            Path("/docs/intro.html"),  # output, not a source
            Path("/docs/conf.py"),  # not markdown
            Path("/other/readme.md"),  # outside roots
        }
    )
    result = filter_markdown_files(changed, roots=[Path("/docs")])
    assert result == frozenset({Path("/docs/guide/intro.md"), Path("/docs/notes.markdown")})


def test_filter_no_roots_keeps_nothing() -> None:
    assert filter_markdown_files(frozenset({Path("/docs/a.md")}), roots=[]) == frozenset()


# ---------------------------------------------------------------------------
# Watch loop orchestration
# ---------------------------------------------------------------------------


async def _fake_changes(
    batches: list[set[tuple[Any, str]]],
) -> AsyncIterator[set[tuple[Any, str]]]:
    for batch in batches:
        yield batch


def _ok_result(event: WatchEvent) -> WatchCycleResult:
    return WatchCycleResult(
        rendered=tuple(p.with_suffix(".html") for p in event.changed_paths),
        duration_s=0.25,
        changed_paths=event.changed_paths,
    )


def _run(batches: list[set[tuple[Any, str]]], run_cycle, **callbacks) -> None:
    async def run() -> None:
        await run_watch_loop(
            changes_iter=_fake_changes(batches),
            run_cycle=run_cycle,
            on_event=callbacks.get("on_event", lambda msg: None),
            on_cycle_result=callbacks.get("on_cycle_result", lambda r: None),
            on_error=callbacks.get("on_error", lambda e: None),
            roots=[Path("/docs")],
        )

    asyncio.run(run())


def test_watch_loop_calls_run_cycle_on_change() -> None:
    cycles: list[WatchEvent] = []

    def fake_run_cycle(event: WatchEvent) -> WatchCycleResult:
        cycles.append(event)
        return _ok_result(event)

    _run([{(1, "/docs/a.md")}, {(2, "/docs/b.txt")}], fake_run_cycle)

    assert len(cycles) == 1
    assert cycles[0].changed_paths == frozenset({Path("/docs/a.md")})


def test_watch_loop_emits_messages_and_results() -> None:
    messages: list[str] = []
    results: list[WatchCycleResult] = []

    _run(
        [{(1, "/docs/a.md")}],
        _ok_result,
        on_event=messages.append,
        on_cycle_result=results.append,
    )

    assert any("change detected" in m and "a.md" in m for m in messages)
    assert any("rendered 1 file(s)" in m for m in messages)
    assert len(results) == 1


def test_watch_loop_handles_exception_in_run_cycle() -> None:
    errors: list[BaseException] = []
    call_count = 0

    def exploding_run_cycle(event: WatchEvent) -> WatchCycleResult:
        nonlocal call_count
        call_count += 1
        if call_count == 1:
            raise RuntimeError("boom")
        return _ok_result(event)

    _run([{(1, "/docs/a.md")}, {(1, "/docs/b.md")}], exploding_run_cycle, on_error=errors.append)

    assert len(errors) == 1
    assert call_count == 2


# ---------------------------------------------------------------------------
# JSON output formatting
# ---------------------------------------------------------------------------


def test_format_json_success() -> None:
    result = WatchCycleResult(
        rendered=(Path("/docs/a.html"),),
        duration_s=0.8,
        changed_paths=frozenset({Path("/docs/a.md")}),
    )
    data = format_watch_cycle_json(result)
    assert data == {
        "command": "watch",
        "ok": True,
        "rendered": ["/docs/a.html"],
        "failed": {},
        "duration_s": 0.8,
        "changed_paths": ["/docs/a.md"],
    }


def test_format_json_failure() -> None:
    result = WatchCycleResult(
        rendered=(),
        failed={"/docs/a.md": "Input is not valid UTF-8: /docs/a.md"},
        changed_paths=frozenset({Path("/docs/a.md")}),
    )
    data = format_watch_cycle_json(result)
    assert data["ok"] is False
    assert data["failed"] == {"/docs/a.md": "Input is not valid UTF-8: /docs/a.md"}


# ---------------------------------------------------------------------------
# Cycle runner
# ---------------------------------------------------------------------------


def test_cycle_runner_renders_into_output_dir(tmp_path: Path) -> None:
    docs = tmp_path / "docs"
    (docs / "guide").mkdir(parents=True)
    src = docs / "guide" / "a.md"
    src.write_text("*hi*\n", encoding="utf-8")
    out = tmp_path / "site"

    runner = build_cycle_runner(Markdown(), roots=[docs], output_dir=out)
    result = runner(WatchEvent(changed_paths=frozenset({src}), timestamp=0.0))

    assert result.rendered == (out / "guide" / "a.html",)
    assert result.failed == {}
    assert (out / "guide" / "a.html").read_text(encoding="utf-8") == "<p><em>hi</em></p>\n"


def test_cycle_runner_skips_deleted_files_and_reports_failures(tmp_path: Path) -> None:
    gone = tmp_path / "gone.md"
    bad = tmp_path / "bad.md"
    bad.write_bytes(b"\xff\xfe")

    runner = build_cycle_runner(Markdown(), roots=[tmp_path], output_dir=None)
    result = runner(WatchEvent(changed_paths=frozenset({gone, bad}), timestamp=0.0))

    assert result.rendered == ()
    assert list(result.failed) == [str(bad)]
    assert not (tmp_path / "gone.html").exists()
