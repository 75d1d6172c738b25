"""Terminal front end: dispatch tracker commands without a chat platform."""

from __future__ import annotations

import asyncio
import getpass
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from jirabot.client import JiraClient
from jirabot.config import (
    CHANNEL_PROJECT_SETTING,
    JiraConfig,
    load_config,
    validate_config,
)
from jirabot.handlers import JiraCommands, build_router
from jirabot.logging import configure_logging
from jirabot.models import CommandContext
from jirabot.router import RouteTable

app = typer.Typer(help="Drive a JIRA tracker with chat-style commands.")
console = Console()
err_console = Console(stderr=True)


def _load(config_path: Optional[Path]) -> JiraConfig:
    try:
        return load_config(config_path)
    except ValueError as e:
        err_console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(code=2)


@app.command()
def run(
    command: str = typer.Argument(..., help='Command text, e.g. "show ABC-1"'),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="Name used to attribute comments"
    ),
    channel_project: Optional[str] = typer.Option(
        None,
        "--channel-project",
        "-p",
        help="Project key(s) bound to the simulated channel, comma separated",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config.yml"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw Result"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
    log_json: bool = typer.Option(
        False, "--log-json", help="Write logs to stderr as JSON lines"
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also append JSON logs (DEBUG and up) to this file"
    ),
) -> None:
    """Dispatch one command and print its result."""
    configure_logging(
        level=log_level,
        json_output=log_json,
        log_file=str(log_file) if log_file else None,
    )
    config = _load(config_path)
    router = build_router(
        JiraClient(config),
        max_results=config.max_results,
        strict=config.strict_routes,
    )

    settings = {CHANNEL_PROJECT_SETTING: channel_project} if channel_project else {}
    context = CommandContext(user=user or getpass.getuser(), settings=settings)
    result = asyncio.run(router.dispatch(command, context))

    if as_json:
        console.print_json(json.dumps(result.as_dict(), default=str))
    elif result.is_error:
        err_console.print(f"[red]{result.error}[/red]")
    else:
        for line in result.lines():
            console.print(line, markup=False, highlight=False)

    if result.is_error:
        raise typer.Exit(code=1)


@app.command()
def routes(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config.yml"
    ),
) -> None:
    """Show the route table in priority order and check it for overlaps."""
    config = _load(config_path)
    commands = JiraCommands(JiraClient(config), max_results=config.max_results)
    table = RouteTable(commands.routes())

    out = Table(title="Routes (first match wins)")
    out.add_column("#", justify="right")
    out.add_column("Name", style="cyan")
    out.add_column("Pattern")
    out.add_column("Usage", style="dim")
    for index, r in enumerate(table.routes, start=1):
        out.add_row(str(index), r.name, r.pattern.pattern, r.usage)
    console.print(out)

    problems = table.check_overlaps()
    if not problems:
        console.print("[green]No overlapping routes.[/green]")
        return
    for problem in problems:
        color = "yellow" if problem.kind == "ambiguous" else "red"
        console.print(f"[{color}]{problem}[/{color}]")
    if any(p.kind != "ambiguous" for p in problems):
        raise typer.Exit(code=1)


@app.command("check-config")
def check_config(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config.yml"
    ),
) -> None:
    """Validate configuration."""
    config = _load(config_path)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]✗[/red] {error}")
        raise typer.Exit(code=1)
    keys = ", ".join(config.project_keys) or "none"
    console.print(f"[green]✓[/green] {config.base_url} (projects: {keys})")


if __name__ == "__main__":
    app()
