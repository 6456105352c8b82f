"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vyltrex_cli.models.config import LauncherConfig
from vyltrex_cli.models.package import CatalogEntry, InstallationRecord
from vyltrex_cli.utils.formatting import format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "NetworkError": [
            "• Check your internet connection.",
            "• The download URL in the catalog may be outdated or moved.",
            "• Try the install again; partial downloads are never reused.",
        ],
        "DigestMismatchError": [
            "• The download was corrupted in transit, or the file changed upstream.",
            "• Retry the install; if it keeps failing, the catalog digest is stale.",
        ],
        "FormatError": [
            "• The downloaded file is not a valid ZIP archive.",
            "• The download URL may point to a web page instead of the archive.",
        ],
        "EntryPointNotFoundError": [
            "• The archive does not contain the executable named in the catalog.",
            "• Inspect the extracted folder listed above, then fix the catalog 'exe'.",
        ],
        "NotFoundError": [
            "• Files may have been deleted outside the launcher.",
            "• Reinstall the package with `vyltrex install <ID>`.",
        ],
        "NotInstalledError": [
            "• Install the package first with `vyltrex install <ID>`.",
            "• Run `vyltrex list --installed` to see what is installed.",
        ],
        "PackageNotFoundError": [
            "• Run `vyltrex list` to see the available package ids.",
        ],
        "CatalogError": [
            "• Check the catalog path with `vyltrex --show-config`.",
            "• The catalog must be a JSON list of package objects.",
        ],
        "ConfigurationError": [
            "• Run `vyltrex init --force` to write a fresh configuration.",
        ],
        "StorageError": [
            "• Make sure the data directory is writable and the disk is not full.",
        ],
        "InstallInProgressError": [
            "• Wait for the running install of this package to finish.",
        ],
        "LaunchError": [
            "• Make sure the file is executable on this platform.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: LauncherConfig):
    """Displays the effective configuration."""
    console = Console()
    rows = {
        "config file": config_path,
        "data_dir": config.data_dir,
        "install_root": config.games_dir,
        "catalog_path": config.catalog_file,
        "state_file": config.state_file,
        "max_redirects": config.max_redirects,
        "chunk_size": config.chunk_size,
        "digest_algorithm": config.digest_algorithm,
        "user_agent": config.user_agent,
    }
    content = "\n".join(f"{key} = {escape(str(value))}" for key, value in rows.items())
    console.print(
        Panel(
            content,
            title="Configuration",
            border_style="cyan",
        )
    )


def print_catalog_table(entries: list[CatalogEntry]):
    """Displays the catalog with each package's install status."""
    console = Console()
    if not entries:
        console.print("[dim]No packages to show.[/dim]")
        return

    table = Table(box=box.ROUNDED)
    table.add_column("ID", style="bold magenta", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Status", justify="center")
    table.add_column("Verified", justify="center", style="dim")

    for entry in entries:
        descriptor = entry.descriptor
        status = (
            "[green]✓ Installed[/green]" if entry.installed else "[dim]Not installed[/dim]"
        )
        table.add_row(
            escape(descriptor.id),
            escape(descriptor.display_name),
            escape(descriptor.category or "Uncategorized"),
            status,
            "sha" if descriptor.requires_verification else "-",
        )

    installed_count = sum(1 for entry in entries if entry.installed)
    console.print(table)
    console.print(
        f"[dim]{len(entries)} package(s), {installed_count} installed.[/dim]"
    )


def print_summary_panel(
    records: list[InstallationRecord], failures: dict[str, str], duration_s: float
):
    """Displays the outcome of an install session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")

    for record in records:
        stats_table.add_row(
            f"✓ {escape(record.package_id)}:",
            f"[dim]{escape(str(record.executable_path))}[/dim]",
        )
    for package_id, message in failures.items():
        stats_table.add_row(
            f"[red]✗ {escape(package_id)}:[/red]", f"[red]{escape(message)}[/red]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if failures:
        title = "[bold]Install Finished With Errors[/bold]"
        border_color = "red" if not records else "yellow"
    else:
        title = "[bold]Install Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
