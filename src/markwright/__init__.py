from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from markwright.config import Options
from markwright.errors import MarkwrightConfigError, MarkwrightError, MarkwrightInputError
from markwright.escapes import encode_amps_and_angles
from markwright.markdown import Markdown, transform


def _package_version() -> str:
    try:
        return version("markwright")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "Markdown",
    "MarkwrightConfigError",
    "MarkwrightError",
    "MarkwrightInputError",
    "Options",
    "__version__",
    "encode_amps_and_angles",
    "transform",
]
