"""Subcommand modules for cdl.

Provides register_commands() which uses deferred imports to keep
``cdl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from cdl.commands.check import check
    from cdl.commands.compile_cmd import compile_cmd

    cli.add_command(check)
    cli.add_command(compile_cmd)
