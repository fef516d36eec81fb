# display.py
# All terminal output for the task agent.
#
# This module owns presentation entirely. harness.py and server.py never
# format strings for the console; they call named functions here.
#
# Colour language:
#   cyan    : request routing / loop bookkeeping
#   blue    : model calls and decisions
#   magenta : tool arguments and execution
#   yellow  : budget warnings
#   green   : success / final answer
#   red     : failures and halts

import json
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

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


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def banner(model: str, project_count: int, tool_names: tuple[str, ...]) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Linear Task Agent[/bold cyan]\n"
            "[dim]decide → describe → execute[/dim]\n\n"
            f"[dim]Model    :[/dim] [white]{model}[/white]\n"
            f"[dim]Projects :[/dim] [white]{project_count}[/white]\n"
            f"[dim]Tools    :[/dim] [white]{', '.join(tool_names)}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def server_listening(host: str, port: int) -> None:
    console.print(_label("SERVER", "cyan"), f"[cyan] Server is running on http://{host}:{port}[/cyan]")


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


def request_received(message: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(message)}[/white]",
            title=_label("USER", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def assistant_message(content: str) -> None:
    console.print(f"  [dim][ASSISTANT][/dim] [white]{escape(_mono(content, 200))}[/white]")


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------


def iteration_start(iteration: int, remaining: int) -> None:
    console.print()
    console.print(Rule(f"[cyan]Iteration {iteration} (Limit: {remaining})[/cyan]", style="cyan"))


def deciding() -> None:
    console.print(_label("DECIDE", "blue"), "[blue] → Asking the model for the next tool…[/blue]")


def decision(action: str, thinking: str) -> None:
    console.print(f"  [blue]Thinking[/blue] [dim white]{escape(_mono(thinking, 200))}[/dim white]")
    console.print(f"  [blue]Action[/blue]   [bold white]{action}[/bold white]")


def terminal_action(action: str) -> None:
    console.print(
        _label("DONE", "green"),
        f"[green] Action is[/green] [bold white]{action!r}[/bold white][green], exiting loop.[/green]",
    )


def describing(action: str) -> None:
    console.print(
        _label("DESCRIBE", "blue"),
        f"[blue] → Describing arguments for[/blue] [bold white]{action}[/bold white]",
    )


def arguments(args: dict[str, Any]) -> None:
    console.print(f"  [magenta]Args[/magenta]     [dim]{escape(_mono(json.dumps(args, default=str), 200))}[/dim]")


def executing(action: str) -> None:
    console.print(_label("EXECUTE", "magenta"), f"[magenta] → {action}[/magenta]")


def action_result(results: list[dict[str, Any]]) -> None:
    console.print()
    if not results:
        console.print("  [dim]No results.[/dim]")
        return

    columns = list(results[0].keys())
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="magenta",
        show_header=True,
        header_style="bold magenta",
        padding=(0, 1),
    )
    for column in columns:
        table.add_column(column, style="white", overflow="fold")
    for row in results:
        table.add_row(*(escape(_mono(str(row.get(column, "")), 40)) for column in columns))
    console.print(table)


def loop_error(iteration: int, message: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(message)}[/bold red]",
            title=_label(f"ERROR IN ITERATION {iteration} ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def budget_exhausted(limit: int) -> None:
    console.print()
    console.print(
        _label("BUDGET", "yellow"),
        f"[yellow] Iteration limit of {limit} reached without contacting the user.[/yellow]",
    )


def loop_finished(status: str, executed: int) -> None:
    console.print()
    console.print(Rule(f"[cyan]Loop finished: {status}, {executed} action(s) executed[/cyan]", style="cyan"))


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------


def synthesis_start() -> None:
    console.print(_label("SYNTHESIS", "blue"), "[blue] → Generating final response…[/blue]")


def using_error_response() -> None:
    console.print(_label("SYNTHESIS", "red"), "[red] Using pre-determined error response.[/red]")


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{escape(result)}[/white]",
            title=_label("FINAL ANSWER", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


# ---------------------------------------------------------------------------
# HTTP boundary
# ---------------------------------------------------------------------------


def bad_request(reason: str) -> None:
    console.print(_label("400", "red"), f"[red] {escape(reason)}[/red]")


def server_error(message: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(message)}[/bold white]",
            title=_label("SERVER ERROR", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
