"""Command: validate an instance file against a template file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from cdl.commands._base import CdlCommand, DocumentPath

if TYPE_CHECKING:
    from cdl.commands._context import AppContext


@click.command(
    cls=CdlCommand,
    examples="""\
  cdl check schema.toml config.yaml
  cdl --json check schema.yaml config.json
  cdl -v check schema.toml config.toml""",
)
@click.argument("template", type=DocumentPath())
@click.argument("instance", type=DocumentPath())
@click.pass_obj
def check(app: AppContext, template: Path, instance: Path) -> None:
    """Validate INSTANCE against TEMPLATE."""
    app.emit(app.check_service().check(template, instance))
