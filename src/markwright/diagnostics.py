"""Error formatting and actionable hints for CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from markwright.errors import MarkwrightConfigError, MarkwrightInputError


def format_render_failures(failed: dict[str, str]) -> str:
    """Format per-file render failures into a human-readable stderr summary."""
    if not failed:
        return ""
    lines = [f"Render failed for {len(failed)} file(s):\n"]
    for path in sorted(failed):
        lines.append(f"  {path}:")
        lines.append(f"    - {failed[path]}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""
    msg = str(exc)

    if isinstance(exc, MarkwrightConfigError):
        if "version" in msg:
            return "add `version = 1` at the top of markwright.toml"
        if "Unknown [markdown] option" in msg:
            return "see `markwright render --help` for the supported option names"
        return None

    if isinstance(exc, MarkwrightInputError):
        if "UTF-8" in msg:
            return "re-save the file as UTF-8"
        return "check the path, or pass `-` to read standard input"

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message + optional hint for stderr output."""
    msg = (str(exc) or repr(exc)).strip()
    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result
