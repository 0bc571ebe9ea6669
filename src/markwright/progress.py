from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from shutil import get_terminal_size


@dataclass(slots=True)
class ProgressBar:
    """Single-line progress for multi-file renders, redrawn with `\\r`."""

    label: str
    total: int
    enabled: bool = True
    stream: object = sys.stderr
    width: int = 24
    min_interval_s: float = 0.08
    _rendered: int = field(default=0, init=False, repr=False)
    _failed: int = field(default=0, init=False, repr=False)
    _started: float = field(default=0.0, init=False, repr=False)
    _last_draw: float = field(default=0.0, init=False, repr=False)
    _finished: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._started = time.monotonic()
        self._draw(None)

    @property
    def done(self) -> int:
        return self._rendered + self._failed

    def advance(self, path: Path | str, *, ok: bool) -> None:
        if self._finished:
            return
        if ok:
            self._rendered += 1
        else:
            self._failed += 1
        self._draw(Path(path).name)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._draw(None, force=True)
        self._write("\n")

    def _write(self, s: str) -> None:
        if not self.enabled:
            return
        try:
            self.stream.write(s)  # type: ignore[attr-defined]
            self.stream.flush()  # type: ignore[attr-defined]
        except Exception:
            # Progress is best-effort; never fail the CLI because of drawing.
            self.enabled = False

    def _draw(self, current: str | None, *, force: bool = False) -> None:
        if not self.enabled:
            return

        now = time.monotonic()
        if (not force) and (now - self._last_draw) < float(self.min_interval_s):
            return
        self._last_draw = now

        total = max(0, int(self.total))
        done = min(self.done, total) if total else self.done
        frac = (done / total) if total else 1.0
        fill = min(max(0, int(round(self.width * frac))), self.width)
        bar = "=" * fill + "." * (self.width - fill)

        msg = (
            f"{self.label} [{bar}] {done}/{total} "
            f"rendered={self._rendered} failed={self._failed} {now - self._started:.1f}s"
        )
        if current:
            msg += f"  {current}"
        cols = get_terminal_size(fallback=(80, 20)).columns
        self._write("\r" + msg[: max(0, cols - 1)])
