"""MCP server for markwright: exposes render/render_file/encode as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import io
import json
from contextlib import redirect_stdout
from pathlib import Path

import markwright.cli
from markwright.config import HTML_SUFFIX, load_options, validate_options
from markwright.errors import MarkwrightError
from markwright.escapes import encode_amps_and_angles
from markwright.markdown import Markdown

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def _run_cli_json(argv: list[str]) -> str:
    """Run a CLI command with --json and return the JSON document it printed.

    Error paths that only write to stderr get a synthesized error envelope so
    callers always receive valid JSON.
    """
    cmd_name = argv[0] if argv else "unknown"
    buf = io.StringIO()
    with redirect_stdout(buf):
        rc = markwright.cli.main(argv)
    output = buf.getvalue().strip()
    if not output:
        return json.dumps(
            {"command": cmd_name, "ok": False, "error": f"command exited with status {rc}"}
        )
    try:
        json.loads(output)
    except ValueError:
        return json.dumps({"command": cmd_name, "ok": False, "error": output[:500]})
    return output


def tool_render(
    text: str,
    *,
    root: str | None = None,
    html: bool = False,
    strict_bold_italic: bool = False,
    auto_newlines: bool = False,
    auto_hyperlink: bool = False,
) -> str:
    """Convert a Markdown string and return `{"ok": ..., "html": ...}` JSON."""
    try:
        opts = load_options(root=Path(root).resolve() if root else None)
        opts = opts.replace(
            empty_element_suffix=HTML_SUFFIX if html else None,
            strict_bold_italic=strict_bold_italic or None,
            auto_newlines=auto_newlines or None,
            auto_hyperlink=auto_hyperlink or None,
        )
        validate_options(opts)
        out = Markdown(opts).transform(text)
    except MarkwrightError as e:
        return json.dumps({"command": "render", "ok": False, "error": str(e)})
    return json.dumps({"command": "render", "ok": True, "html": out})


def tool_render_file(
    path: str,
    *,
    root: str | None = None,
    output: str | None = None,
    html: bool = False,
) -> str:
    """Render one file through the CLI and return its JSON result.

    Standard input is the MCP transport, so `-` is refused.
    """
    if path == "-":
        return json.dumps(
            {"command": "render", "ok": False, "error": "path must name a file, not \"-\""}
        )
    argv = ["render", "--json"]
    if root:
        argv += ["--root", root]
    if output:
        argv += ["--output", output]
    if html:
        argv.append("--html")
    # After "--" so a path starting with "-" is not read as a flag.
    argv += ["--", path]
    return _run_cli_json(argv)


def tool_encode_amps_and_angles(text: str) -> str:
    """Entity-encode bare `&` and `<` the way the converter does."""
    return encode_amps_and_angles(text)


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server():
    """Create and return a FastMCP server with markwright tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    mcp = FastMCP("markwright", instructions="Markdown to XHTML converter")

    @mcp.tool()
    def markwright_render(
        text: str,
        root: str | None = None,
        html: bool = False,
        strict_bold_italic: bool = False,
        auto_newlines: bool = False,
        auto_hyperlink: bool = False,
    ) -> str:
        """Convert Markdown text to HTML.

        Returns JSON with an `html` field, or `ok: false` and an `error`.
        """
        return tool_render(
            text,
            root=root,
            html=html,
            strict_bold_italic=strict_bold_italic,
            auto_newlines=auto_newlines,
            auto_hyperlink=auto_hyperlink,
        )

    @mcp.tool()
    def markwright_render_file(
        path: str,
        root: str | None = None,
        output: str | None = None,
        html: bool = False,
    ) -> str:
        """Convert a Markdown file.

        Without `output` the HTML is returned inline; with it the file is written.
        """
        return tool_render_file(path, root=root, output=output, html=html)

    @mcp.tool()
    def markwright_encode_amps_and_angles(text: str) -> str:
        """Encode bare ampersands and angle brackets as HTML entities."""
        return tool_encode_amps_and_angles(text)

    return mcp


def run_server(*, root: str | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, changes the working directory to that path so
    that all tools resolve relative to the given project root.
    """
    import os

    if root:
        os.chdir(Path(root).resolve())
    mcp = create_mcp_server()
    mcp.run()
