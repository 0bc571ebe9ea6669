"""Transform options and `markwright.toml` loading.

`Options` is the immutable set of knobs the pipeline reads. The loader only
reads TOML and performs light validation; it never touches the transform.
"""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from markwright.errors import MarkwrightConfigError

CONFIG_FILENAME = "markwright.toml"

XHTML_SUFFIX = " />"
HTML_SUFFIX = ">"


@dataclass(frozen=True)
class Options:
    # Tabs are expanded to the next multiple of this many columns.
    tab_width: int = 4
    # Maximum nested [bracket] / (paren) depth recognized in links and images.
    nested_bracket_depth: int = 6
    # " />" for XHTML output, ">" for HTML.
    empty_element_suffix: str = XHTML_SUFFIX
    # Obfuscate and link <address@example.com> forms.
    link_emails: bool = True
    # Bold and italic require non-word characters on either side.
    strict_bold_italic: bool = False
    # Every newline becomes <br />, not just those after two spaces.
    auto_newlines: bool = False
    # Bare http/https/ftp URLs are linked.
    auto_hyperlink: bool = False
    # Percent-encode ' ( ) [ ] * _ : in generated URLs.
    encode_problem_url_characters: bool = False

    def replace(self, **changes: Any) -> Options:
        """Return a copy with `changes` applied; None values are ignored."""

        return dataclasses.replace(self, **{k: v for k, v in changes.items() if v is not None})


DEFAULT_OPTIONS = Options()


def find_project_root(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `markwright.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MarkwrightConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise MarkwrightConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MarkwrightConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise MarkwrightConfigError(f"Expected {name} to be a string.")
    return value


_BOOL_KEYS = (
    "link_emails",
    "strict_bold_italic",
    "auto_newlines",
    "auto_hyperlink",
    "encode_problem_url_characters",
)
_INT_KEYS = ("tab_width", "nested_bracket_depth")


def options_from_mapping(tbl: dict[str, Any], *, base: Options = DEFAULT_OPTIONS) -> Options:
    """Validate a `[markdown]` table and overlay it on `base`."""

    known = {f.name for f in dataclasses.fields(Options)}
    unknown = sorted(set(tbl) - known)
    if unknown:
        raise MarkwrightConfigError(f"Unknown [markdown] option(s): {', '.join(unknown)}")

    changes: dict[str, Any] = {}
    for key in _BOOL_KEYS:
        if key in tbl:
            changes[key] = _as_bool(tbl[key], name=f"markdown.{key}")
    for key in _INT_KEYS:
        if key in tbl:
            changes[key] = _as_int(tbl[key], name=f"markdown.{key}")
    if "empty_element_suffix" in tbl:
        changes["empty_element_suffix"] = _as_str(
            tbl["empty_element_suffix"], name="markdown.empty_element_suffix"
        )

    opts = base.replace(**changes)
    validate_options(opts)
    return opts


def validate_options(opts: Options) -> None:
    if opts.tab_width < 1:
        raise MarkwrightConfigError("Invalid config: markdown.tab_width must be >= 1.")
    if opts.nested_bracket_depth < 1:
        raise MarkwrightConfigError("Invalid config: markdown.nested_bracket_depth must be >= 1.")
    if opts.empty_element_suffix not in (XHTML_SUFFIX, HTML_SUFFIX):
        raise MarkwrightConfigError(
            'Invalid config: markdown.empty_element_suffix must be " />" or ">".'
        )


def load_options(*, root: Path | None = None, config_path: Path | None = None) -> Options:
    """Load and validate `markwright.toml`.

    With an explicit `config_path` the file must exist. Otherwise the file is
    looked up under `root` (or by walking upward from the current directory)
    and defaults are returned when none is found.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
            if root is None:
                return DEFAULT_OPTIONS
        config_path = root / CONFIG_FILENAME
        if not config_path.is_file():
            return DEFAULT_OPTIONS

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise MarkwrightConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise MarkwrightConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MarkwrightConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise MarkwrightConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise MarkwrightConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise MarkwrightConfigError(f"Unsupported config version: {version_i} (expected 1).")

    return options_from_mapping(_as_table(data.get("markdown"), name="markdown"))
