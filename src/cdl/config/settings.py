"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``CDL_*`` prefix, ``__`` for nested sections
  3. TOML file: see :mod:`cdl.config.discovery`
  4. Code defaults: baked into the section models

Section models forbid unknown keys, so a misspelled option in
``cdl.toml`` fails loudly instead of silently falling back to a default.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cdl.config.discovery import read_config, resolve_config_path
from cdl.config.models import CompileConfig, OutputConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Feed the parsed ``cdl.toml`` into the settings merge."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = read_config(toml_path) if toml_path else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# The TOML path is chosen before construction and read by the source hook.
_tls = threading.local()


class CdlSettings(BaseSettings):
    """Unified settings for the cdl CLI.

    Attributes:
        config_path: The TOML file that was loaded, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CDL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    compile: CompileConfig = Field(default_factory=CompileConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        cwd: Path | None = None,
        **cli_flags: Any,
    ) -> CdlSettings:
        """Construct settings from a CLI invocation.

        Raises:
            click.ClickException: The config file is missing or invalid, or
                a setting fails validation.
        """
        toml_path = resolve_config_path(config_path, cwd)
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            where = f" in {toml_path}" if toml_path else ""
            raise click.ClickException(f"Invalid configuration{where}: {exc}") from exc
        finally:
            _tls.toml_path = None
