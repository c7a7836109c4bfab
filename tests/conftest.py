"""Shared pytest fixtures for cdl tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from any real cdl.toml or CDL_* environment."""
    monkeypatch.delenv("CDL_CONFIG", raising=False)
    for name in ("CDL_QUIET", "CDL_VERBOSE", "CDL_JSON_OUTPUT", "CDL_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write *data* as JSON to ``tmp_path / name`` and return the path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def server_template() -> dict[str, Any]:
    """A small template: a named server with listen addresses and a mode enum."""
    return {
        "/": "{}name listen+ mode?",
        "name": "str",
        "listen": "ipport",
        "mode": ["fast", "safe"],
    }
