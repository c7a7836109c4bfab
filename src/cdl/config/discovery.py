"""Locate and read ``cdl.toml``.

Resolution order for the config file:

1. ``--config PATH`` on the command line
2. the ``CDL_CONFIG`` environment variable
3. the nearest ``cdl.toml`` walking up from the working directory

An explicit path (1 or 2) that does not exist is an error; a missing
walk-up file just means code defaults apply.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "cdl.toml"
CONFIG_ENV_VAR = "CDL_CONFIG"


class ConfigFileError(click.ClickException):
    """The selected config file is missing or not valid TOML."""


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) to the nearest cdl.toml."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(explicit: str | None = None, cwd: Path | None = None) -> Path | None:
    """Pick the config file per the resolution order above.

    Raises:
        ConfigFileError: *explicit* or ``CDL_CONFIG`` names a missing file.
    """
    sources = (("--config", explicit), (CONFIG_ENV_VAR, os.environ.get(CONFIG_ENV_VAR)))
    for source, value in sources:
        if not value:
            continue
        path = Path(value)
        if not path.is_file():
            raise ConfigFileError(f"Config file from {source} not found: {path}")
        return path
    return find_config(cwd)


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigFileError: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"Invalid TOML in {path}: {exc}") from exc
