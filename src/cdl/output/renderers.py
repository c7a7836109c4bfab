"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from cdl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from cdl.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console"], None]


def render_result(
    result: ServiceResult, *, verbose: bool = False, show_breadcrumb: bool = True, width: int = 100
) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console(width=width)

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console)
    else:
        _render_error(result, console, verbose=verbose, show_breadcrumb=show_breadcrumb)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(result: ServiceResult, *, ok: bool = True) -> Text:
    line = Text("OK" if ok else "ERROR", style="cdl.ok" if ok else "cdl.error")
    line.append(f"  {result.op}", style="cdl.op")
    return line


def _field(console: Console, key: str, value: Any) -> None:
    line = Text(f"  {key}: ", style="cdl.key")
    line.append(str(value), style="cdl.path" if key in ("template", "instance") else None)
    console.print(line)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(
    result: ServiceResult, console: Console, *, verbose: bool, show_breadcrumb: bool
) -> None:
    err = result.error
    line = _status_line(result, ok=False)
    line.append(": ")
    line.append(err.message if err else "Unknown error")
    console.print(line)

    if err is None:
        return
    breadcrumb = err.detail.get("breadcrumb")
    if show_breadcrumb and breadcrumb:
        trail = Text("  at: ", style="cdl.key")
        trail.append(" > ".join(breadcrumb), style="cdl.context")
        console.print(trail)
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Operation renderers ───────────────────────────────────────────────


def _render_compile(result: ServiceResult, console: Console) -> None:
    console.print(_status_line(result))
    _field(console, "template", result.data.get("template", ""))
    _field(console, "count", result.data.get("count", 0))

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("rule", style="cdl.rule")
    table.add_column("kind", style="cdl.kind")
    for name, kind in result.data.get("rules", {}).items():
        table.add_row(name, kind)
    console.print(table)


def _render_check(result: ServiceResult, console: Console) -> None:
    console.print(_status_line(result))
    for key in ("template", "instance"):
        if key in result.data:
            _field(console, key, result.data[key])


def _render_generic(result: ServiceResult, console: Console) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    console.print(_status_line(result))
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    "compile": _render_compile,
    "check": _render_check,
}
