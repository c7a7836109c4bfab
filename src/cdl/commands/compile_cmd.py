"""Command: compile a template file and list its rules."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from cdl.commands._base import CdlCommand, DocumentPath

if TYPE_CHECKING:
    from cdl.commands._context import AppContext


@click.command(
    "compile",
    cls=CdlCommand,
    examples="""\
  cdl compile schema.toml
  cdl --json compile schema.yaml""",
)
@click.argument("template", type=DocumentPath())
@click.pass_obj
def compile_cmd(app: AppContext, template: Path) -> None:
    """Compile TEMPLATE and report its rules."""
    app.emit(app.check_service().compile(template))
