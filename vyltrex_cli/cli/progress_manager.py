"""
Manages a Rich progress display for concurrent installs, fed by the progress
events the install manager emits.
"""

import asyncio
import logging

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from vyltrex_cli.models.progress import ProgressEvent, Stage

log = logging.getLogger("vyltrex_cli")

STAGE_STYLES = {
    Stage.DOWNLOADING: "cyan",
    Stage.VERIFYING: "yellow",
    Stage.EXTRACTING: "magenta",
    Stage.DONE: "green",
    Stage.FAILED: "red",
}


class ProgressManager:
    """
    Renders one progress bar per package. Events may arrive duplicated or out
    of order within a stage; a bar never moves backwards inside a stage, and
    anything arriving after a package's first `Done` or `Failed` is ignored.
    """

    def __init__(self, console: Console):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._tasks: dict[str, TaskID] = {}
        self._stages: dict[str, Stage] = {}
        self._names: dict[str, str] = {}
        self._percent: dict[str, float] = {}
        self._finished: set[str] = set()

    def add_package(self, package_id: str, display_name: str | None = None) -> None:
        """Registers a package so its bar shows before the first event arrives."""
        if package_id in self._tasks:
            return
        self._names[package_id] = display_name or package_id
        self._tasks[package_id] = self.progress.add_task(
            self._describe(package_id, None), total=100
        )

    def handle_event(self, event: ProgressEvent) -> None:
        """Progress sink passed to `InstallManager.install`."""
        if event.package_id in self._finished:
            return
        if event.package_id not in self._tasks:
            self.add_package(event.package_id)
        task_id = self._tasks[event.package_id]

        if self._stages.get(event.package_id) != event.stage:
            self._stages[event.package_id] = event.stage
            completed = event.percent
        else:
            completed = max(self._percent.get(event.package_id, 0.0), event.percent)

        if event.stage == Stage.DONE:
            completed = 100
        elif event.stage == Stage.FAILED:
            if event.message:
                log.error(
                    f"[red]✗ {escape(self._names[event.package_id])}:[/red] "
                    f"{escape(event.message)}"
                )

        self._percent[event.package_id] = completed
        self.progress.update(
            task_id,
            completed=completed,
            description=self._describe(event.package_id, event.stage),
        )
        if event.stage.is_terminal:
            self._finished.add(event.package_id)
            self.progress.stop_task(task_id)

    def _describe(self, package_id: str, stage: Stage | None) -> str:
        name = self._names.get(package_id, package_id)
        if len(name) > 30:
            name = name[:28] + "…"
        name = escape(name)
        if stage is None:
            return f"{name} [dim]Starting[/dim]"
        style = STAGE_STYLES.get(stage, "white")
        return f"{name} [{style}]{stage.value}[/{style}]"

    async def __aenter__(self):
        self.progress.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await asyncio.sleep(0.1)
        self.progress.stop()
