"""Whole-document conversions checked against `fixtures/<name>.text` / `.html` pairs."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from markwright import Markdown

FIXTURES = Path(__file__).parent / "fixtures"
CASES = sorted(p.stem for p in FIXTURES.glob("*.text"))

_WHITESPACE = re.compile(r"\s+")


def _load(name: str) -> tuple[str, str]:
    source = (FIXTURES / f"{name}.text").read_text(encoding="utf-8")
    expected = (FIXTURES / f"{name}.html").read_text(encoding="utf-8")
    return source, expected


def test_every_fixture_has_expected_output() -> None:
    assert CASES
    for name in CASES:
        assert (FIXTURES / f"{name}.html").is_file(), name


@pytest.mark.parametrize("name", CASES)
def test_fixture_exact(name: str) -> None:
    source, expected = _load(name)
    assert Markdown().transform(source) == expected


@pytest.mark.parametrize("name", CASES)
def test_fixture_ignoring_whitespace(name: str) -> None:
    source, expected = _load(name)
    actual = Markdown().transform(source.replace("\n", "\r\n"))
    assert _WHITESPACE.sub("", actual) == _WHITESPACE.sub("", expected)
