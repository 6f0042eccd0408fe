"""trydir CLI — main entry point.

stdout carries exactly one line on success (the cd directive) so a shell
function can eval it; everything else goes to stderr.
"""

from __future__ import annotations

import asyncio
import json as json_mod
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__, get_try_home
from .config import TryConfig, get_default_config_content
from .db.store import open_store
from .errors import ConfigError, InvalidQuery, TryError, UserCancelled
from .models.types import FolderRecord, SelectionState


class TryApp(typer.Typer):
    """Typer app with intent-first routing: `try some name` -> `try open some name`."""

    _DIRECT_COMMANDS = {
        "open",
        "init",
        "list",
    }

    def __call__(self, *args, **kwargs):
        argv = sys.argv[1:]
        if argv and argv[0] not in self._DIRECT_COMMANDS and not argv[0].startswith("-"):
            original_argv = sys.argv[:]
            sys.argv = [sys.argv[0], "open", *argv]
            try:
                return super().__call__(*args, **kwargs)
            finally:
                sys.argv = original_argv
        return super().__call__(*args, **kwargs)


app = TryApp(
    name="try",
    help="Jump to a dated scratch directory, reusing one that matches",
    add_completion=False,
    invoke_without_command=True,
)
console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


# --- Helpers ---


def _run_async(coro):
    """Run an async function from sync CLI context."""
    return asyncio.run(coro)


def _get_store(config: TryConfig):
    """Open the folder history for this invocation (async context manager)."""
    return open_store(config)


def _load_config() -> TryConfig:
    try:
        return TryConfig.load()
    except ConfigError as exc:
        _fail(exc)


def _configure_logging(config: TryConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        _fail(ConfigError(f"Unknown log_level {config.log_level!r}"))
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


def _print_folder_info(record: FolderRecord) -> None:
    err_console.print(
        f"[bright_black]✓ {escape(record.name)} "
        f"({record.date_created}, opened {record.times_opened} times)[/bright_black]"
    )


# --- Top-level commands ---


@app.callback()
def main(ctx: typer.Context) -> None:
    """try — scratch directories by fuzzy name."""
    if ctx.invoked_subcommand is None:
        err_console.print(f"[bold]trydir[/bold] v{__version__}")
        err_console.print("Usage: [cyan]try <name>[/cyan]")
        err_console.print("       [cyan]try init[/cyan]   (show shell integration)")
        raise typer.Exit(code=1)


async def _load(config: TryConfig) -> list[FolderRecord]:
    from .launcher import load_history

    async with _get_store(config) as store:
        return await load_history(store)


async def _apply(decision, query: str, base_dir: Path, config: TryConfig):
    from .launcher import apply

    async with _get_store(config) as store:
        return await apply(decision, query, store, base_dir, date_format=config.date_format)


def _open(query: str, config: TryConfig):
    """Read the history, prompt with no event loop running, then persist.

    The prompt must stay outside asyncio.run, which replaces the SIGINT handler.
    """
    from .launcher import decide
    from .selection.strategies import choose_strategy

    base_dir = config.resolved_base_dir
    records = _run_async(_load(config))
    strategy = choose_strategy(config.interactive, err_console)
    decision = decide(query, records, strategy, max_choices=config.max_choices)
    return _run_async(_apply(decision, query, base_dir, config))


@app.command("open")
def open_folder(
    query: list[str] = typer.Argument(..., help="Folder name or fuzzy query"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Reuse the best matching folder or create a new dated one; print a cd line."""
    from .shell import cd_directive

    config = _load_config()
    _configure_logging(config, verbose)

    text = " ".join(query)
    if not text.strip():
        _fail(InvalidQuery("Query is empty"))

    try:
        result = _open(text, config)
    except (UserCancelled, KeyboardInterrupt):
        err_console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=1) from None
    except TryError as exc:
        _fail(exc)

    if result.decision.state is SelectionState.SINGLE_MATCH:
        _print_folder_info(result.record)
    elif result.created:
        err_console.print(f"[green]Created[/green] {escape(result.path)}")

    typer.echo(cd_directive(result.path))


@app.command()
def init(
    shell: str = typer.Option("bash", "--shell", "-s", help="bash, zsh or fish"),
    write_config: bool = typer.Option(
        False, "--write-config", help="Also write a default ~/.try/config.yaml"
    ),
) -> None:
    """Print the shell integration snippet."""
    from .shell import shell_integration

    try:
        snippet = shell_integration(shell)
    except ConfigError as exc:
        _fail(exc)

    if write_config:
        config_path = get_try_home() / "config.yaml"
        if not config_path.exists():
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(get_default_config_content(), encoding="utf-8")
            err_console.print(f"[green]Created config:[/green] {config_path}")
        else:
            err_console.print(f"[dim]Config already exists:[/dim] {config_path}")

    typer.echo(snippet, nl=False)


async def _ranked(query: str, config: TryConfig):
    from .ranking.policy import rank

    async with _get_store(config) as store:
        records = await store.list_all()
    return rank(query, records)


@app.command("list")
def list_folders(
    query: list[str] | None = typer.Argument(None, help="Optional fuzzy filter"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Show the folder history in ranked order (read-only)."""
    config = _load_config()
    _configure_logging(config, verbose)

    text = " ".join(query or [])
    try:
        ranked = _run_async(_ranked(text, config))
    except TryError as exc:
        _fail(exc)

    if json_output:
        payload = [
            {**c.record.model_dump(mode="json"), "score": c.score} for c in ranked
        ]
        typer.echo(json_mod.dumps(payload, indent=2))
        return

    if not ranked:
        console.print("[dim]No matching folders.[/dim]" if text else "[dim]No folders yet.[/dim]")
        return

    table = Table(title=f"Folders matching '{escape(text)}'" if text else "Folders")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Created")
    table.add_column("Opened", justify="right")
    table.add_column("Last opened")
    table.add_column("Score", justify="right")
    table.add_column("Path", style="dim")
    for i, c in enumerate(ranked, start=1):
        r = c.record
        table.add_row(
            str(i),
            escape(r.name),
            r.date_created,
            str(r.times_opened),
            r.last_opened.astimezone().strftime("%Y-%m-%d %H:%M"),
            str(c.score),
            escape(r.path),
        )
    console.print(table)
