"""Template and instance file loading.

Decoding is format-driven by file suffix:

- ``.json``: stdlib json
- ``.yaml`` / ``.yml``: ruamel.yaml safe loader
- ``.toml``: stdlib tomllib

Template files can only carry data, so enum types are written as data
too: a list of strings becomes an :class:`~cdl.domain.enums.EnumType`,
and a table of token -> display text becomes ``EnumType.with_text``.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from cdl.domain.enums import EnumType

JSON_SUFFIXES = frozenset({".json"})
YAML_SUFFIXES = frozenset({".yaml", ".yml"})
TOML_SUFFIXES = frozenset({".toml"})
SUPPORTED_SUFFIXES = JSON_SUFFIXES | YAML_SUFFIXES | TOML_SUFFIXES


def decode_file(path: Path) -> Any:
    """Decode *path* into a generic tree according to its suffix.

    Raises:
        ValueError: Unsupported suffix or malformed JSON/TOML.
        OSError: The file cannot be read.
        ruamel.yaml.error.YAMLError: Malformed YAML.
    """
    suffix = path.suffix.lower()
    raw = path.read_text(encoding="utf-8")
    if suffix in JSON_SUFFIXES:
        return json.loads(raw)
    if suffix in YAML_SUFFIXES:
        return YAML(typ="safe").load(raw)
    if suffix in TOML_SUFFIXES:
        return tomllib.loads(raw)
    raise ValueError(f"Unsupported file type '{path.suffix}' for {path}")


def _template_value(value: Any) -> Any:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return EnumType(*value)
    if isinstance(value, dict) and value and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        return EnumType.with_text(value)
    return value


def load_template(path: Path) -> dict[str, Any]:
    """Load a template file into a mapping ready for compilation."""
    data = decode_file(path)
    if not isinstance(data, dict):
        raise ValueError(f"Template {path} must be a mapping, got {type(data).__name__}")
    return {key: _template_value(value) for key, value in data.items()}


def load_instance(path: Path) -> Any:
    """Load an instance document to be validated."""
    return decode_file(path)
