"""Click building blocks shared by cdl commands.

:class:`DocumentPath` is the argument type for template and instance
files: besides existence it checks the suffix names a format the loader
can decode, so an unsupported file is a usage error (exit code 2).

:class:`CdlCommand` and :class:`CdlGroup` carry usage examples, printed
by an eager ``--examples`` flag and appended to ``--help``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from cdl.services.loader import SUPPORTED_SUFFIXES


class DocumentPath(click.Path):
    """An existing JSON, YAML or TOML file."""

    name = "document"

    def __init__(self) -> None:
        super().__init__(exists=True, dir_okay=False, path_type=Path)

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        path = super().convert(value, param, ctx)
        suffix = Path(path).suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            expected = ", ".join(sorted(SUPPORTED_SUFFIXES))
            self.fail(f"unsupported format {suffix or '(none)'!r}; expected {expected}", param, ctx)
        return path


class ExamplesOption(click.Option):
    """Eager ``--examples`` flag that prints the command's examples and exits."""

    def __init__(self, examples: str) -> None:
        super().__init__(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=self._show,
            help="Show usage examples.",
        )
        self.examples = examples

    def _show(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class _ExamplesMixin:
    examples: str | None
    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(ExamplesOption(examples))

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_epilog(ctx, formatter)  # type: ignore[misc]
        if not self.examples:
            return
        formatter.write_paragraph()
        with formatter.section("Examples"):
            for line in self.examples.splitlines():
                formatter.write(f"{'':>{formatter.current_indent}}{line.strip()}\n")


class CdlCommand(_ExamplesMixin, click.Command):
    """Command with optional usage examples."""


class CdlGroup(_ExamplesMixin, click.Group):
    """Group with optional usage examples; subcommands default to CdlCommand."""

    command_class = CdlCommand
