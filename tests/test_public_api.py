from __future__ import annotations

import markwright


def test_transform_and_markdown_are_exported() -> None:
    assert callable(markwright.transform)
    assert callable(markwright.Markdown().transform)
    assert markwright.transform("*x*") == "<p><em>x</em></p>\n"


def test_exceptions_are_exported() -> None:
    from markwright import (  # noqa: PLC0415
        MarkwrightConfigError,
        MarkwrightError,
        MarkwrightInputError,
    )

    for exc in (MarkwrightError, MarkwrightConfigError, MarkwrightInputError):
        assert issubclass(exc, Exception)


def test_encode_amps_and_angles_is_exported() -> None:
    assert markwright.encode_amps_and_angles("a & b") == "a &amp; b"


def test_version_is_a_string() -> None:
    assert isinstance(markwright.__version__, str)
    assert set(markwright.__all__) >= {"Markdown", "Options", "transform", "__version__"}
