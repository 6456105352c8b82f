"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from vyltrex_cli import __version__
from vyltrex_cli.core.install_manager import InstallManager
from vyltrex_cli.exceptions import VyltrexCliError
from vyltrex_cli.models.config import LauncherConfig
from vyltrex_cli.models.package import InstallationRecord
from vyltrex_cli.storage.catalog import Catalog
from vyltrex_cli.storage.config_manager import ConfigManager
from vyltrex_cli.storage.content_store import InstallationStore

from .formatters import (
    format_error_with_suggestions,
    print_catalog_table,
    print_config,
    print_summary_panel,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("vyltrex_cli")

app = typer.Typer(
    name="vyltrex",
    help=(
        "Download, install and launch games from a package catalog. Use 'vyltrex"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "vyltrex"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config() -> LauncherConfig:
    return ConfigManager(CONFIG_FILE).load_config()


def _build_manager(config: LauncherConfig) -> InstallManager:
    """Wires the catalog and the installation store into an InstallManager."""
    catalog = Catalog.from_file(config.catalog_file)
    store = InstallationStore(config.state_file)
    return InstallManager(config, catalog, store)


def _fail(error: Exception) -> typer.Exit:
    console.print(format_error_with_suggestions(error))
    return typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Vyltrex Launcher CLI"""
    if version:
        console.print(f"[bold]vyltrex[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("vyltrex_cli").setLevel(log_level)

    if show_config:
        try:
            config = _load_config()
        except VyltrexCliError as e:
            raise _fail(e) from e
        print_config(CONFIG_FILE, config)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    catalog: Path | None = typer.Option(  # noqa: B008
        None, "--catalog", "-c", help="Path to the catalog JSON file."
    ),
    install_root: Path | None = typer.Option(  # noqa: B008
        None, "--install-root", help="Directory where games are installed."
    ),
    data_dir: Path | None = typer.Option(  # noqa: B008
        None, "--data-dir", help="Directory for metadata and default install root."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the given locations."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        key: value.expanduser().resolve()
        for key, value in {
            "catalog_path": catalog,
            "install_root": install_root,
            "data_dir": data_dir,
        }.items()
        if value is not None
    }
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except VyltrexCliError as e:
        raise _fail(e) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Browse the catalog with: [cyan]vyltrex list[/cyan]")


@app.command(name="list")
def list_command(
    installed_only: bool = typer.Option(
        False, "--installed", "-i", help="Show only installed packages."
    ),
):
    """List catalog packages and whether they are installed."""
    try:
        manager = _build_manager(_load_config())
        entries = manager.list_catalog()
    except VyltrexCliError as e:
        raise _fail(e) from e

    if installed_only:
        entries = [entry for entry in entries if entry.installed]
    print_catalog_table(entries)


@app.command()
def install(
    package_ids: list[str] = typer.Argument(  # noqa: B008
        ..., help="One or more package ids from the catalog."
    ),
):
    """Download, verify and install one or more packages concurrently."""
    unique_ids = list(dict.fromkeys(package_ids))
    try:
        manager = _build_manager(_load_config())
        descriptors = [manager.catalog.get(package_id) for package_id in unique_ids]
    except VyltrexCliError as e:
        raise _fail(e) from e

    async def _install_async() -> tuple[list[InstallationRecord], dict[str, str]]:
        records: list[InstallationRecord] = []
        failures: dict[str, str] = {}
        async with ProgressManager(console) as progress_manager, manager:
            for descriptor in descriptors:
                progress_manager.add_package(descriptor.id, descriptor.display_name)
            results = await asyncio.gather(
                *(
                    manager.install(descriptor.id, progress_manager.handle_event)
                    for descriptor in descriptors
                ),
                return_exceptions=True,
            )
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, BaseException):
                failures[descriptor.id] = str(result) or type(result).__name__
                log.debug(f"Install of '{descriptor.id}' failed.", exc_info=result)
            else:
                records.append(result)
        return records, failures

    console.print(f"[bold cyan]Installing {len(descriptors)} package(s)...[/bold cyan]")
    start_time = time.monotonic()
    records, failures = asyncio.run(_install_async())
    print_summary_panel(records, failures, time.monotonic() - start_time)
    if failures:
        raise typer.Exit(code=1)


@app.command()
def uninstall(
    package_id: str = typer.Argument(..., help="The package id to remove."),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Bypass the confirmation prompt.",
    ),
):
    """Remove an installed package and its files."""
    if not force and not typer.confirm(
        f"Remove '{package_id}' and delete its installed files?"
    ):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    try:
        config = _load_config()
        store = InstallationStore(config.state_file)
        # Uninstall must work even for packages dropped from the catalog
        try:
            catalog = Catalog.from_file(config.catalog_file)
        except VyltrexCliError:
            catalog = Catalog([])
        manager = InstallManager(config, catalog, store)
        asyncio.run(manager.uninstall(package_id))
    except VyltrexCliError as e:
        raise _fail(e) from e
    console.print(f"[green]✓ '{escape(package_id)}' is not installed anymore.[/green]")


@app.command()
def launch(
    package_id: str = typer.Argument(..., help="The package id to start."),
):
    """Start an installed package."""
    try:
        config = _load_config()
        store = InstallationStore(config.state_file)
        manager = InstallManager(config, Catalog([]), store)
        manager.launch(package_id)
    except VyltrexCliError as e:
        raise _fail(e) from e


@app.command()
def diagnose():
    """Diagnose common configuration and filesystem issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False

    if CONFIG_FILE.is_file():
        console.print(f"[green]✓[/] Config file exists at: [dim]{CONFIG_FILE}[/dim]")
    else:
        console.print(
            "[yellow]○ No config file, using defaults.[/] "
            "Run [cyan]vyltrex init[/cyan] to create one."
        )
    try:
        config = _load_config()
        console.print("[green]✓[/] Configuration is valid.")
    except VyltrexCliError as e:
        console.print(f"[red]✗ Configuration validation failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    try:
        catalog = Catalog.from_file(config.catalog_file)
        console.print(f"[green]✓[/] Catalog loaded with {len(catalog)} package(s).")
    except VyltrexCliError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        issues_found = True

    if config.state_file.is_file():
        records = InstallationStore(config.state_file).load()
        console.print(
            f"[green]✓[/] Installation state tracks {len(records)} package(s)."
        )
    else:
        console.print("[dim]○ No installation state yet (nothing installed).[/dim]")

    for label, directory in (
        ("Install root", config.games_dir),
        ("Metadata dir", config.meta_dir),
    ):
        existing = directory
        while not existing.exists() and existing != existing.parent:
            existing = existing.parent
        if os.access(existing, os.W_OK):
            console.print(f"[green]✓[/] {label} is writable: [dim]{directory}[/dim]")
        else:
            console.print(f"[red]✗ {label} is not writable: {directory}[/red]")
            issues_found = True

    console.print()
    if not issues_found:
        console.print(
            "[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n"
        )
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
