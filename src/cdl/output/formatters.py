"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich output) or machines
(--json). The formatter layer adapts ServiceResult to the requested
output mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cdl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from cdl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output-mode switches resolved from CLI flags and config."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    show_breadcrumb: bool = True
    width: int = 100


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON mode wins over quiet mode; quiet wins over the Rich renderer.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(
        result,
        verbose=settings.verbose,
        show_breadcrumb=settings.show_breadcrumb,
        width=settings.width,
    )
