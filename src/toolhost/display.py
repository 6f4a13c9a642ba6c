# display.py
# All terminal output for the toolhost dev console.
#
# This module owns presentation entirely. harness.py never formats strings;
# the dev console hands HarnessSnapshots to render() and calls the named
# helpers here. Swap this file to change the entire UI.
#
# Colour language:
#   cyan    : harness chrome / routing
#   yellow  : substitute host, pending execution
#   green   : success
#   red     : errors
#   magenta : field names and controls

import json

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from toolhost.models import (
    ControlKind,
    FormField,
    HarnessSnapshot,
    HarnessStatus,
    HostKind,
    RunResult,
    ToolContract,
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


_CONTROL_HINTS = {
    ControlKind.CHOICE: "choice",
    ControlKind.TOGGLE: "on/off",
    ControlKind.NUMBER: "number",
    ControlKind.STRUCTURED: 'JSON, e.g. ["a"] or {"k": "v"}',
    ControlKind.TEXT: "text",
}


def control_hint(field: FormField) -> str:
    if field.control is ControlKind.CHOICE:
        return " | ".join(str(c) for c in field.choices)
    return _CONTROL_HINTS[field.control]


# ---------------------------------------------------------------------------
# Chrome
# ---------------------------------------------------------------------------


def banner(host_kind: HostKind, out: Console | None = None) -> None:
    out = out or console
    host = (
        "[green]native host[/green]"
        if host_kind is HostKind.NATIVE
        else "[yellow]substitute host (no native host detected)[/yellow]"
    )
    out.print()
    out.print(
        Panel.fit(
            "[bold cyan]toolhost DevTools[/bold cyan]\n"
            "[dim]List registered tools, run them by hand, watch the results.[/dim]\n\n"
            f"[dim]Backing :[/dim] {host}",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def _header(snapshot: HarnessSnapshot) -> Text:
    title = Text("DevTools ", style="bold cyan")
    title.append(f"[{len(snapshot.tools)}]", style="bold white")
    if snapshot.is_minimized:
        title.append("  (minimized, 'm' to expand)", style="dim")
    return title


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


def _empty_state() -> Panel:
    return Panel(
        "[white]No tools registered[/white]\n"
        "[dim]define_tool(...).register()[/dim]",
        border_style="dim",
        padding=(0, 2),
    )


def _tool_list(tools: list[ToolContract]) -> Table:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("#", justify="center", width=4)
    table.add_column("Tool", style="bold white")
    table.add_column("Description", style="white")

    for index, tool in enumerate(tools, start=1):
        table.add_row(str(index), tool.name, _mono(tool.description, 80))
    return table


def _form(fields: list[FormField], toggles: dict[str, bool]) -> Table:
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold magenta", padding=(0, 1))
    table.add_column("Field", style="bold white")
    table.add_column("Control", style="magenta")
    table.add_column("Hint", style="dim white")

    for field in fields:
        name = f"{field.name} [red]*[/red]" if field.required else field.name
        hint = field.description or ""
        if field.control is ControlKind.TOGGLE:
            hint = f"{'on' if toggles.get(field.name) else 'off'}  {hint}".strip()
        elif field.default is not None:
            hint = f"default {json.dumps(field.default, default=str)}  {hint}".strip()
        table.add_row(name, control_hint(field), hint)
    return table


def result_panel(result: RunResult) -> Panel:
    if result.response.is_error:
        title = _label("✗ Error", "red")
        border = "red"
    else:
        title = _label("✓ Success", "green")
        border = "green"
    return Panel(
        Text(result.response.text()),
        title=title,
        subtitle=f"[dim]{result.elapsed_ms}ms[/dim]",
        border_style=border,
        padding=(0, 2),
    )


def _detail(snapshot: HarnessSnapshot, tool: ToolContract) -> Panel:
    body = Table.grid(padding=(0, 0))
    body.add_row(Text(tool.description, style="white"))
    if snapshot.form:
        body.add_row(_form(snapshot.form, snapshot.toggles))
    else:
        body.add_row(Text("No input fields.", style="dim"))
    if snapshot.is_executing:
        body.add_row(Text("Executing…", style="bold yellow"))
    elif snapshot.last_result is not None:
        body.add_row(result_panel(snapshot.last_result))

    return Panel(
        body,
        title=_label(tool.name, "cyan"),
        subtitle="[dim]e execute · t toggle · b back · m minimize · q quit[/dim]",
        border_style="cyan",
        padding=(0, 1),
    )


def render(snapshot: HarnessSnapshot, out: Console | None = None) -> None:
    out = out or console
    out.print()
    out.print(Rule(_header(snapshot), style="cyan"))
    if snapshot.is_minimized:
        return

    tool = snapshot.selected_tool
    if snapshot.status is HarnessStatus.IDLE:
        out.print(_empty_state())
    elif tool is None:
        out.print(_tool_list(snapshot.tools))
        out.print("[dim]  number or name to open · m minimize · q quit[/dim]")
    else:
        out.print(_detail(snapshot, tool))


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def notice(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[dim cyan]  {message}[/dim cyan]")


def warning(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[bold yellow]  {message}[/bold yellow]")
