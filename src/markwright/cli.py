from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from markwright import __version__
from markwright.config import HTML_SUFFIX, Options, load_options, validate_options
from markwright.diagnostics import format_error_with_hint, format_render_failures
from markwright.errors import MarkwrightConfigError, MarkwrightInputError
from markwright.markdown import Markdown
from markwright.progress import ProgressBar

logger = logging.getLogger("markwright.cli")

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_INPUT = 3


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for markwright.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to markwright.toml (defaults to <root>/markwright.toml).",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit machine-readable JSON on stdout.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    # Option overrides; None means "keep the configured value".
    p.add_argument(
        "--html",
        dest="html_output",
        action="store_const",
        const=True,
        default=None,
        help='Emit HTML empty elements (">") instead of XHTML (" />").',
    )
    p.add_argument("--strict-bold-italic", action="store_const", const=True, default=None)
    p.add_argument("--auto-newlines", action="store_const", const=True, default=None)
    p.add_argument("--auto-hyperlink", action="store_const", const=True, default=None)
    p.add_argument(
        "--no-link-emails",
        dest="link_emails",
        action="store_const",
        const=False,
        default=None,
    )
    p.add_argument(
        "--encode-problem-urls",
        dest="encode_problem_url_characters",
        action="store_const",
        const=True,
        default=None,
    )
    p.add_argument("--tab-width", type=int, default=None)
    p.add_argument("--nested-depth", dest="nested_bracket_depth", type=int, default=None)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="markwright")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_p = subparsers.add_parser("render", help="Convert Markdown files to HTML.")
    _add_common_flags(render_p)
    render_p.add_argument("files", nargs="*", help="Input files; none or `-` reads stdin.")
    render_p.add_argument("-o", "--output", type=str, default=None, help="Output file.")
    render_p.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Write <name>.html files here instead of next to the inputs.",
    )
    render_p.add_argument("--no-progress", action="store_true", help="Disable progress bars.")

    watch_p = subparsers.add_parser("watch", help="Re-render Markdown files when they change.")
    _add_common_flags(watch_p)
    watch_p.add_argument("paths", nargs="*", default=[], help="Directories to watch.")
    watch_p.add_argument("--output-dir", type=str, default=None)

    bench_p = subparsers.add_parser("bench", help="Time repeated transforms of input files.")
    _add_common_flags(bench_p)
    bench_p.add_argument("files", nargs="+")
    bench_p.add_argument("--iterations", type=int, default=100)

    mcp_p = subparsers.add_parser("mcp", help="Model Context Protocol server.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Serve markwright tools over stdio.")
    serve_p.add_argument("--root", type=str, default=None)

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    _eprint(format_error_with_hint(e))


def _emit_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))


def _configure_logging(args: argparse.Namespace) -> None:
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)


def resolve_options(args: argparse.Namespace) -> Options:
    """Configured options with command-line overrides applied."""

    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    opts = load_options(root=root, config_path=config_path)
    opts = opts.replace(
        empty_element_suffix=HTML_SUFFIX if args.html_output else None,
        strict_bold_italic=args.strict_bold_italic,
        auto_newlines=args.auto_newlines,
        auto_hyperlink=args.auto_hyperlink,
        link_emails=args.link_emails,
        encode_problem_url_characters=args.encode_problem_url_characters,
        tab_width=args.tab_width,
        nested_bracket_depth=args.nested_bracket_depth,
    )
    validate_options(opts)
    return opts


def _read_source(name: str) -> str:
    from markwright.render import read_document

    if name == "-":
        return sys.stdin.read()
    return read_document(Path(name))


def cmd_render(args: argparse.Namespace) -> int:
    from markwright.render import output_path_for, render_file

    json_mode = _is_json_mode(args)
    try:
        md = Markdown(resolve_options(args))
        files = list(args.files or ["-"])

        single = len(files) == 1 and args.output_dir is None
        if single:
            html = md.transform(_read_source(files[0]))
            if args.output:
                out = Path(args.output)
                try:
                    out.write_text(html, encoding="utf-8")
                except OSError as e:
                    raise MarkwrightInputError(f"Failed writing {out}: {e}") from e
            if json_mode:
                payload: dict[str, object] = {"command": "render", "ok": True, "source": files[0]}
                if args.output:
                    payload["output"] = args.output
                else:
                    payload["html"] = html
                _emit_json(payload)
            elif not args.output:
                sys.stdout.write(html)
            return EXIT_OK

        if args.output:
            raise MarkwrightConfigError("--output takes a single input; use --output-dir instead.")
        if "-" in files:
            raise MarkwrightConfigError("stdin (`-`) cannot be combined with other inputs.")

        output_dir = Path(args.output_dir) if args.output_dir else None
        progress = None
        if (not json_mode) and (not args.no_progress) and sys.stderr.isatty():
            progress = ProgressBar(label="render", total=len(files), enabled=True, stream=sys.stderr)

        rendered: list[str] = []
        failed: dict[str, str] = {}
        for name in files:
            src = Path(name)
            dest = output_path_for(src, output_dir=output_dir, roots=[src.parent])
            result = render_file(md, src, dest)
            if result.ok:
                rendered.append(str(result.output))
            else:
                failed[name] = result.error or "unknown error"
            if progress is not None:
                progress.advance(src, ok=result.ok)
        if progress is not None:
            progress.finish()

        if json_mode:
            _emit_json({"command": "render", "ok": not failed, "rendered": rendered, "failed": failed})
        elif failed:
            _eprint(format_render_failures(failed).rstrip())
        return EXIT_INPUT if failed else EXIT_OK
    except MarkwrightConfigError as e:
        _print_error(e)
        return EXIT_CONFIG
    except MarkwrightInputError as e:
        _print_error(e)
        return EXIT_INPUT


def cmd_watch(args: argparse.Namespace) -> int:
    from markwright import watcher

    json_mode = _is_json_mode(args)
    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        _print_error(e)
        return EXIT_CONFIG

    try:
        md = Markdown(resolve_options(args))
    except MarkwrightConfigError as e:
        _print_error(e)
        return EXIT_CONFIG

    roots = [Path(p).resolve() for p in (args.paths or ["."])]
    missing = [str(r) for r in roots if not r.is_dir()]
    if missing:
        _print_error(MarkwrightConfigError(f"Not a directory: {', '.join(missing)}"))
        return EXIT_CONFIG
    output_dir = Path(args.output_dir).resolve() if args.output_dir else None

    def on_event(msg: str) -> None:
        if not json_mode:
            _eprint(msg)

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if json_mode:
            print(json.dumps(watcher.format_watch_cycle_json(result)), flush=True)
        elif result.failed:
            _eprint(format_render_failures(result.failed).rstrip())

    def on_error(exc: BaseException) -> None:
        _eprint(f"[watch] error: {type(exc).__name__}: {exc}")

    if not json_mode:
        _eprint(f"[watch] watching {', '.join(str(r) for r in roots)} (Ctrl-C to stop)")

    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(roots),
                run_cycle=watcher.build_cycle_runner(md, roots=roots, output_dir=output_dir),
                on_event=on_event,
                on_cycle_result=on_cycle_result,
                on_error=on_error,
                roots=roots,
            )
        )
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def cmd_bench(args: argparse.Namespace) -> int:
    from markwright.bench import bench_result_json, format_bench_result, run_benchmark
    from markwright.render import read_document

    try:
        md = Markdown(resolve_options(args))
        if args.iterations < 1:
            raise MarkwrightConfigError("--iterations must be >= 1.")
        results = []
        for name in args.files:
            text = read_document(Path(name))
            results.append(run_benchmark(md, text, iterations=args.iterations, name=name))
    except MarkwrightConfigError as e:
        _print_error(e)
        return EXIT_CONFIG
    except MarkwrightInputError as e:
        _print_error(e)
        return EXIT_INPUT

    if _is_json_mode(args):
        _emit_json({"command": "bench", "ok": True, "results": [bench_result_json(r) for r in results]})
    else:
        for r in results:
            print(format_bench_result(r))
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    try:
        from markwright.mcp_server import run_server

        run_server(root=args.root)
    except ImportError:
        _eprint("error: fastmcp is required for `markwright mcp`. Install it with: pip install markwright[mcp]")
        return EXIT_CONFIG
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG

    _configure_logging(args)
    logger.debug("command: %s", args.command)

    if args.command == "render":
        return cmd_render(args)
    if args.command == "watch":
        return cmd_watch(args)
    if args.command == "bench":
        return cmd_bench(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
