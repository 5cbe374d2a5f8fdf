"""Persisted options for proctempview.

Options live in a small TOML file, ~/.config/proctemp/config.toml by default.
Loading never fails: a missing or broken file gives the defaults. Saving
raises ConfigWriteError so the caller can report it and carry on.
"""

from __future__ import annotations

import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PATH = Path.home() / ".config" / "proctemp" / "config.toml"


class ConfigWriteError(Exception):
    """Options could not be written to disk."""


@dataclass
class Options:
    use_fahrenheit: bool = False


def load_options(path: Path | None = None) -> Options:
    """Load options from *path* (or the default location).

    Returns:
        The stored Options, or defaults when the file is absent or corrupt.
    """
    path = path if path is not None else DEFAULT_PATH
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, NotADirectoryError):
        return Options()
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        print(f"proctemp: warning: ignoring unreadable config {path}: {e}", file=sys.stderr)
        return Options()

    fahrenheit = data.get("use_fahrenheit", False)
    if not isinstance(fahrenheit, bool):
        print(
            f"proctemp: warning: use_fahrenheit must be true or false in {path}",
            file=sys.stderr,
        )
        return Options()
    return Options(use_fahrenheit=fahrenheit)


def dump_options(options: Options) -> str:
    """Return *options* as a TOML document."""
    lines = [
        "# proctemp configuration",
        "",
        f"use_fahrenheit = {'true' if options.use_fahrenheit else 'false'}",
    ]
    return "\n".join(lines) + "\n"


def save_options(options: Options, path: Path | None = None) -> None:
    """Write *options* to *path* (or the default location), creating parent dirs."""
    path = path if path is not None else DEFAULT_PATH
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_options(options), encoding="utf-8")
    except OSError as e:
        raise ConfigWriteError(f"could not save options to {path}: {e}") from e
