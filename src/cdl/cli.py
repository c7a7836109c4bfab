"""Root CLI group for cdl with global flags and command registration."""

from __future__ import annotations

import click

from cdl import __version__
from cdl.commands import register_commands
from cdl.commands._base import CdlGroup
from cdl.commands._context import AppContext
from cdl.config.settings import CdlSettings


@click.group(
    cls=CdlGroup,
    invoke_without_command=True,
    examples="""\
  cdl compile schema.toml
  cdl check schema.toml config.yaml
  cdl -c ci/cdl.toml --json check schema.yaml config.json""",
)
@click.version_option(version=__version__, prog_name="cdl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """Validate decoded configuration trees against a template."""
    settings = CdlSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
