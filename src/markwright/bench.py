"""Timing harness for repeated transforms."""

from __future__ import annotations

import time
from dataclasses import dataclass

from markwright.markdown import Markdown


@dataclass(frozen=True, slots=True)
class BenchResult:
    name: str
    input_length: int
    iterations: int
    seconds: float

    @property
    def ms_per_iteration(self) -> float:
        if self.iterations <= 0:
            return 0.0
        return self.seconds * 1000.0 / self.iterations


def run_benchmark(md: Markdown, text: str, *, iterations: int, name: str = "<input>") -> BenchResult:
    if iterations < 1:
        raise ValueError("iterations must be >= 1")
    start = time.perf_counter()
    for _ in range(iterations):
        md.transform(text)
    elapsed = time.perf_counter() - start
    return BenchResult(name=name, input_length=len(text), iterations=iterations, seconds=elapsed)


def format_bench_result(result: BenchResult) -> str:
    lines = [f"{result.name}: input string length: {result.input_length}"]
    if result.iterations == 1:
        lines.append(f"1 iteration in {result.seconds:,.3f} seconds")
    else:
        lines.append(
            f"{result.iterations} iterations in {result.seconds:,.3f} seconds "
            f"({result.ms_per_iteration:,.3f} ms per iteration)"
        )
    return "\n".join(lines)


def bench_result_json(result: BenchResult) -> dict[str, object]:
    return {
        "name": result.name,
        "input_length": result.input_length,
        "iterations": result.iterations,
        "seconds": round(result.seconds, 6),
        "ms_per_iteration": round(result.ms_per_iteration, 6),
    }
