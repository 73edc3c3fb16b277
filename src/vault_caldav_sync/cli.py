"""
Command-line interface for Vault CalDAV Sync.
"""

import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vault_caldav_sync.caldav_client import CalDAVClient
from vault_caldav_sync.config import Settings
from vault_caldav_sync.config import load_settings
from vault_caldav_sync.config import save_settings
from vault_caldav_sync.models import DEFAULT_CONFIG
from vault_caldav_sync.models import CalendarSyncError
from vault_caldav_sync.models import SyncConfig
from vault_caldav_sync.models import SyncStats
from vault_caldav_sync.notify import ConsoleNotifier
from vault_caldav_sync.sync import CalendarSynchronizer
from vault_caldav_sync.vault import EventVault

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Sync event notes in a Markdown vault with a CalDAV calendar.",
)
config_app = typer.Typer(no_args_is_help=True, help="Show or edit settings.")
app.add_typer(config_app, name="config")

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _build_config(dry_run: bool = False) -> SyncConfig:
    settings = load_settings(state.config_path)
    return settings.to_sync_config(dry_run=dry_run, verbose=state.verbose)


def _preflight_or_exit(cfg: SyncConfig) -> None:
    from vault_caldav_sync.preflight import run_preflight_checks

    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)


def _run_guarded(coro):
    """Run a coroutine, mapping failures to exit codes."""
    try:
        return asyncio.run(coro)
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e


async def _sync_one(cfg: SyncConfig, path: Path | None) -> bool:
    async with CalDAVClient(cfg) as client:
        engine = CalendarSynchronizer(cfg, client, notifier=ConsoleNotifier(console))
        return await engine.sync_file(path)


async def _sync_all(cfg: SyncConfig) -> SyncStats:
    async with CalDAVClient(cfg) as client:
        engine = CalendarSynchronizer(cfg, client, notifier=ConsoleNotifier(console))
        return await engine.run()


async def _fetch_remote(cfg: SyncConfig):
    async with CalDAVClient(cfg) as client:
        return await client.fetch_collection()


def _print_results(stats: SyncStats) -> None:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Pushed", str(stats.pushed))
    results.add_row("Failed", str(stats.failed))
    results.add_row("Imported", str(stats.imported) if stats.fetched else "—")
    results.add_row("Skipped", str(stats.skipped))
    error_val = Text(str(stats.errors))
    if stats.errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))


_DRY_RUN = Annotated[bool, typer.Option("--dry-run", "-n", help="Preview changes without applying")]


# ---------------------------------------------------------------------------
# Subcommands: sync / sync-all
# ---------------------------------------------------------------------------


@app.command()
def sync(
    note: Annotated[
        Path | None,
        typer.Argument(help="Event note to push to the calendar"),
    ] = None,
    dry_run: _DRY_RUN = False,
) -> None:
    """Push a single event note to the calendar."""
    cfg = _build_config(dry_run=dry_run)
    _preflight_or_exit(cfg)

    if not _run_guarded(_sync_one(cfg, note)):
        raise typer.Exit(1)


@app.command("sync-all")
def sync_all(dry_run: _DRY_RUN = False) -> None:
    """Push every event note, then import remote events missing from the vault."""
    cfg = _build_config(dry_run=dry_run)
    _preflight_or_exit(cfg)

    info = Text()
    info.append("  Events:    ", style="bold")
    info.append(f"{cfg.events_root}\n")
    info.append("  Calendar:  ", style="bold")
    info.append(cfg.calendar_url)
    if cfg.dry_run:
        info.append("\n  Mode:      ")
        info.append("DRY RUN", style="bold magenta")
    console.print(Panel(info, title="[bold]Vault CalDAV Sync[/bold]"))

    stats = _run_guarded(_sync_all(cfg))
    _print_results(stats)

    if stats.errors or stats.failed or not stats.fetched:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Subcommand: remote
# ---------------------------------------------------------------------------


@app.command()
def remote() -> None:
    """List the events stored in the remote calendar."""
    cfg = _build_config()
    _preflight_or_exit(cfg)

    events = _run_guarded(_fetch_remote(cfg))
    if events is None:
        console.print("[bold red]Error:[/] Could not fetch the calendar.")
        raise typer.Exit(1)

    vault = EventVault(cfg.events_root)
    local_uids = {uid for uid in map(vault.read_guid, vault.list_records()) if uid}

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Summary", style="bold")
    table.add_column("Local")
    table.add_column("UID", style="dim", overflow="fold")
    for event in events:
        known = event.uid in local_uids
        table.add_row(
            str(event.start),
            str(event.end) if event.end is not None else "",
            event.summary,
            Text("✓" if known else "new", style="green" if known else "yellow"),
            event.uid,
        )
    console.print(table)
    console.print(f"\n[bold]{len(events)} remote event(s)[/bold]")


# ---------------------------------------------------------------------------
# Subcommand: status
# ---------------------------------------------------------------------------


@app.command()
def status() -> None:
    """Show configuration and vault summary."""
    config_exists = state.config_path.exists()
    cfg = _build_config()
    root_exists = cfg.events_root.is_dir()

    info = Text()
    info.append("  Config:   ", style="bold")
    info.append(str(state.config_path) + " ")
    info.append("✓" if config_exists else "(not found)", style="green" if config_exists else "red")
    info.append("\n  Events:   ", style="bold")
    info.append(str(cfg.events_root) + " ")
    info.append("✓" if root_exists else "(not found)", style="green" if root_exists else "red")
    info.append("\n  Calendar: ", style="bold")
    info.append(cfg.calendar_url or "(not set)")

    if root_exists:
        vault = EventVault(cfg.events_root)
        notes = vault.list_records()
        events = [e for e in map(vault.read_event, notes) if e is not None]
        synced = sum(1 for e in events if e.guid)
        info.append("\n\n  Notes:    ", style="bold")
        info.append(str(len(notes)))
        info.append("\n  Events:   ", style="bold")
        info.append(str(len(events)))
        info.append("\n  Synced:   ", style="bold")
        info.append(str(synced))

    console.print(Panel(info, title="[bold]Vault CalDAV Sync Status[/bold]"))


# ---------------------------------------------------------------------------
# Subcommands: config show / config set
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Print the current settings (password masked)."""
    settings = load_settings(state.config_path)
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    for key in Settings.keys():
        value = getattr(settings, key)
        if key == "app_password" and value:
            value = "********"
        table.add_row(key, value or Text("(not set)", style="dim"))
    console.print(Panel(table, title=f"[bold]{state.config_path}[/bold]", expand=False))


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help=f"One of: {', '.join(Settings.keys())}")],
    value: Annotated[str, typer.Argument(help="New value")],
) -> None:
    """Change one setting and save the config file."""
    settings = load_settings(state.config_path)
    try:
        settings.set(key, value)
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    save_settings(state.config_path, settings)
    console.print(f"[green]Saved[/] {key} to {state.config_path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
