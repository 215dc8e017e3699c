"""Typer commands exposed to the user."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from .config import (
    APP_NAME,
    REFRESH_SCRIPTS_TRIGGER_KEY,
    SETTINGS_DEFAULTS,
    configure_logging,
    default_settings_path,
)
from .errors import SettingsError
from .models import ResultMeta
from .notifications import NotificationManager
from .provider import ScriptProvider
from .settings import SettingsStore

console = Console()
app = typer.Typer(help="Search the scripts directory and run the script you pick.")
config_app = typer.Typer(help="Show and change settings.")
app.add_typer(config_app, name="config")


def _open_settings(path: Optional[Path]) -> SettingsStore:
    settings_path = path.expanduser() if path else default_settings_path()
    try:
        return SettingsStore(settings_path)
    except SettingsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _create_provider(
    ctx: typer.Context, *, watch: bool = False, background: bool = False
) -> ScriptProvider:
    return ScriptProvider(
        ctx.obj["settings"],
        notifications=NotificationManager(console),
        watch=watch,
        background=background,
    )


def _search(provider: ScriptProvider, terms: List[str], limit: int) -> List[ResultMeta]:
    async def _query() -> List[ResultMeta]:
        ids = await provider.get_initial_result_set(terms)
        ids = provider.filter_results(ids, limit)
        return await provider.get_result_metas(ids)

    return asyncio.run(_query())


def _results_table(metas: List[ResultMeta], title: str) -> Table:
    table = Table(title=title, header_style="bold blue")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Icon", style="dim")
    for position, meta in enumerate(metas, start=1):
        table.add_row(str(position), meta.name, meta.description, meta.icon)
    return table


@app.callback()
def main(
    ctx: typer.Context,
    settings_file: Optional[Path] = typer.Option(
        None,
        "--settings",
        help="Path to the settings file (defaults to the user config directory).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    configure_logging(verbose)
    ctx.obj = {"settings": _open_settings(settings_file)}


@app.command("list")
def list_scripts(ctx: typer.Context) -> None:
    """List every script in the catalog."""

    provider = _create_provider(ctx)
    try:
        entries = provider.catalog.entries
        if not entries:
            console.print(f"[yellow]No scripts found in {provider.catalog.location}.[/yellow]")
            return

        table = Table(title=f"Scripts in {provider.catalog.location}", header_style="bold blue")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Path")
        table.add_column("Notify")
        table.add_column("Icon", style="dim")
        for index, entry in enumerate(entries):
            table.add_row(str(index), entry.name, entry.relative_path, entry.notify, entry.icon)
        console.print(table)
    finally:
        provider.disable()


@app.command("search")
def search_scripts(
    ctx: typer.Context,
    terms: List[str] = typer.Argument(..., help="Search terms"),
    limit: int = typer.Option(10, "--limit", min=1, help="Maximum number of results"),
) -> None:
    """Search scripts by name, description or directory."""

    provider = _create_provider(ctx)
    try:
        metas = _search(provider, terms, limit)
        if not metas:
            console.print(f"[yellow]No scripts match '{' '.join(terms)}'.[/yellow]")
            return
        console.print(_results_table(metas, f"Results for '{' '.join(terms)}'"))
    finally:
        provider.disable()


@app.command("run")
def run_script(
    ctx: typer.Context,
    terms: List[str] = typer.Argument(..., help="Search terms"),
    pick: int = typer.Option(1, "--pick", min=1, help="Which result to run (1 = best)"),
) -> None:
    """Run a script found by the search terms."""

    provider = _create_provider(ctx)
    try:
        metas = _search(provider, terms, pick)
        if len(metas) < pick:
            console.print(f"[red]No result #{pick} for '{' '.join(terms)}'.[/red]")
            raise typer.Exit(code=1)
        meta = metas[pick - 1]
        console.print(f"[blue]Running '{meta.name}'...[/blue]")
        provider.activate_result(meta.id, terms)
    finally:
        provider.disable()


@app.command("refresh")
def refresh_scripts(ctx: typer.Context) -> None:
    """Ask running sessions to reload scripts from disk."""

    settings: SettingsStore = ctx.obj["settings"]
    settings.set_int(
        REFRESH_SCRIPTS_TRIGGER_KEY, settings.get_int(REFRESH_SCRIPTS_TRIGGER_KEY) + 1
    )
    provider = _create_provider(ctx)
    try:
        provider.refresh_scripts(True)
        console.print(f"[green]{len(provider.catalog.entries)} scripts loaded.[/green]")
    finally:
        provider.disable()


@app.command("watch")
def watch(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", min=1, help="Maximum number of results"),
) -> None:
    """Interactive search session with live reloading."""

    settings: SettingsStore = ctx.obj["settings"]
    provider = _create_provider(ctx, watch=True, background=True)
    provider.enable()
    console.print(
        f"[green]{APP_NAME} is watching {provider.catalog.location} "
        f"({len(provider.catalog.entries)} scripts). Empty query exits.[/green]"
    )
    try:
        while True:
            settings.reload()
            query = Prompt.ask("[bold]Search[/bold]", default="", show_default=False).strip()
            if not query:
                break
            terms = query.split()
            metas = _search(provider, terms, limit)
            if not metas:
                console.print("[yellow]No matches.[/yellow]")
                continue
            console.print(_results_table(metas, f"Results for '{query}'"))
            choice = Prompt.ask("Run #", default="", show_default=False).strip()
            if not choice:
                continue
            if not choice.isdigit() or not 1 <= int(choice) <= len(metas):
                console.print(f"[red]'{choice}' is not a result number.[/red]")
                continue
            provider.activate_result(metas[int(choice) - 1].id, terms)
    except (KeyboardInterrupt, EOFError):
        console.print()
    finally:
        provider.disable()
        console.print("[bold yellow]Session closed.[/bold yellow]")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show all settings."""

    settings: SettingsStore = ctx.obj["settings"]
    table = Table(title=str(settings.storage_path), header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value")
    table.add_column("Default", style="dim")
    for key in settings.keys():
        table.add_row(key, str(settings.get_value(key)), str(SETTINGS_DEFAULTS[key]))
    console.print(table)


@config_app.command("get")
def config_get(ctx: typer.Context, key: str = typer.Argument(..., help="Setting key")) -> None:
    """Print one setting."""

    settings: SettingsStore = ctx.obj["settings"]
    try:
        typer.echo(settings.get_value(key))
    except SettingsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Setting key"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one setting."""

    settings: SettingsStore = ctx.obj["settings"]
    try:
        if isinstance(SETTINGS_DEFAULTS.get(key), int):
            if not value.lstrip("-").isdigit():
                raise SettingsError(f"Setting '{key}' expects an integer")
            settings.set_int(key, int(value))
        else:
            settings.set_string(key, value)
    except SettingsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]{key} = {settings.get_value(key)}[/green]")


@config_app.command("reset")
def config_reset(ctx: typer.Context, key: str = typer.Argument(..., help="Setting key")) -> None:
    """Restore the default value of one setting."""

    settings: SettingsStore = ctx.obj["settings"]
    try:
        settings.reset(key)
    except SettingsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]{key} = {settings.get_value(key)}[/green]")


__all__ = ["app"]
