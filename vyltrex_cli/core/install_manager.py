"""
The main orchestrator for installing, uninstalling and launching packages.
"""

import asyncio
import logging
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path

from rich.markup import escape

from vyltrex_cli.core.launcher import launch_detached
from vyltrex_cli.exceptions import (
    DigestMismatchError,
    InstallInProgressError,
    LaunchError,
    NotFoundError,
    NotInstalledError,
)
from vyltrex_cli.models.config import LauncherConfig
from vyltrex_cli.models.package import (
    CatalogEntry,
    InstallationRecord,
    PackageDescriptor,
)
from vyltrex_cli.models.progress import ProgressEvent, ProgressSink, Stage
from vyltrex_cli.pipeline import (
    ArchiveExtractor,
    DigestVerifier,
    EntryPointLocator,
    Fetcher,
)
from vyltrex_cli.storage.catalog import Catalog
from vyltrex_cli.storage.content_store import InstallationStore
from vyltrex_cli.utils.formatting import format_duration
from vyltrex_cli.utils.path import is_within, reset_dir

log = logging.getLogger(__name__)


class _ProgressNotifier:
    """Wraps an optional sink so a misbehaving observer cannot break an install."""

    def __init__(self, package_id: str, sink: ProgressSink | None):
        self.package_id = package_id
        self.sink = sink

    def emit(self, percent: float, stage: Stage, message: str | None = None) -> None:
        if self.sink is None:
            return
        try:
            self.sink(ProgressEvent(self.package_id, percent, stage, message))
        except Exception as e:
            log.warning(f"Progress observer failed for '{self.package_id}': {e}")


class InstallManager:
    """
    Sequences download, verification, extraction and entry-point discovery
    into one install operation, and handles uninstall and launch.

    All state is explicit: the catalog and the installation store are passed
    in, and progress goes to the sink given to each `install` call.
    """

    def __init__(
        self,
        config: LauncherConfig,
        catalog: Catalog,
        store: InstallationStore,
        fetcher: Fetcher | None = None,
        verifier: DigestVerifier | None = None,
        extractor: ArchiveExtractor | None = None,
        locator: EntryPointLocator | None = None,
    ):
        self.config = config
        self.catalog = catalog
        self.store = store
        self.fetcher = fetcher or Fetcher(
            max_redirects=config.max_redirects,
            chunk_size=config.chunk_size,
            user_agent=config.user_agent,
        )
        self.verifier = verifier or DigestVerifier(
            config.digest_algorithm, chunk_size=config.chunk_size
        )
        self.extractor = extractor or ArchiveExtractor()
        self.locator = locator or EntryPointLocator()
        # Keyed by install directory, which also owns the temp archive path
        self._in_flight: set[Path] = set()
        self.store.ensure_document()

    async def close(self) -> None:
        """Releases network resources held by the fetcher."""
        await self.fetcher.close()

    async def __aenter__(self) -> "InstallManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def list_catalog(self) -> list[CatalogEntry]:
        """Returns every catalog package, in catalog order, with its install status."""
        installed = self.store.load()
        return [
            CatalogEntry(descriptor=descriptor, installed=descriptor.id in installed)
            for descriptor in self.catalog
        ]

    async def install(
        self, package_id: str, progress_sink: ProgressSink | None = None
    ) -> InstallationRecord:
        """
        Installs a catalog package from scratch.

        Any previous install directory is wiped first. On success the record
        is committed and a final `(100, Done)` event is emitted; on failure a
        single `Failed` event carrying the message is emitted and the error
        propagates. No record is committed and no temporary archive survives a
        failed install. An extracted directory whose entry point could not be
        found is left in place for inspection.

        Raises:
            PackageNotFoundError: Unknown package id.
            InstallInProgressError: The package is already being installed.
            NetworkError, DigestMismatchError, FormatError, NotFoundError,
            StorageError: From the corresponding install step.
        """
        descriptor = self.catalog.get(package_id)
        install_dir = self.config.install_dir_for(package_id)
        if install_dir in self._in_flight:
            raise InstallInProgressError(
                f"Package '{package_id}' is already being installed."
            )
        self._in_flight.add(install_dir)

        notifier = _ProgressNotifier(package_id, progress_sink)
        start_time = time.monotonic()
        try:
            record = await self._run_install(descriptor, notifier)
        except (Exception, asyncio.CancelledError) as e:
            notifier.emit(0, Stage.FAILED, message=str(e) or type(e).__name__)
            log.debug(f"Install of '{package_id}' aborted: {e}")
            raise
        finally:
            self._in_flight.discard(install_dir)

        log.info(
            f"[green]✓ Installed[/] {escape(descriptor.display_name)} "
            f"[dim]in {format_duration(time.monotonic() - start_time)}[/dim]"
        )
        return record

    async def _run_install(
        self, descriptor: PackageDescriptor, notifier: _ProgressNotifier
    ) -> InstallationRecord:
        install_dir = self.config.install_dir_for(descriptor.id)
        temp_archive = self.config.temp_archive_for(descriptor.id)
        loop = asyncio.get_running_loop()

        log.debug(f"Preparing clean install directory '{install_dir}'.")
        await asyncio.to_thread(reset_dir, install_dir)

        try:
            notifier.emit(0, Stage.DOWNLOADING)
            await self.fetcher.download(
                descriptor.download_url,
                temp_archive,
                lambda percent: notifier.emit(percent, Stage.DOWNLOADING),
            )

            notifier.emit(0, Stage.VERIFYING)
            if descriptor.requires_verification:
                matches = await asyncio.to_thread(
                    self.verifier.verify, temp_archive, descriptor.expected_digest
                )
                if not matches:
                    raise DigestMismatchError(
                        f"{self.verifier.algorithm} mismatch for '{descriptor.id}'. "
                        "The download is corrupted or the file changed upstream."
                    )
            notifier.emit(100, Stage.VERIFYING)
        except (Exception, asyncio.CancelledError):
            # Nothing has been extracted yet, so the install dir holds no residue worth keeping
            _remove_file(temp_archive)
            shutil.rmtree(install_dir, ignore_errors=True)
            raise

        try:
            notifier.emit(0, Stage.EXTRACTING)
            await asyncio.to_thread(
                self.extractor.extract,
                temp_archive,
                install_dir,
                lambda percent: loop.call_soon_threadsafe(
                    notifier.emit, percent, Stage.EXTRACTING
                ),
            )
        finally:
            _remove_file(temp_archive)

        located = await asyncio.to_thread(
            self.locator.locate, install_dir, descriptor.entry_point_name
        )

        record = InstallationRecord(
            package_id=descriptor.id,
            install_dir=install_dir,
            resolved_base_dir=located.base_dir,
            entry_point_file=located.path.name,
            installed_at=datetime.now(timezone.utc),
        )
        await asyncio.to_thread(self.store.set, descriptor.id, record)
        notifier.emit(100, Stage.DONE)
        return record

    async def uninstall(self, package_id: str) -> None:
        """
        Removes a package's files and its installation record.

        The directory removal is best-effort and tolerates a missing directory.
        The record is removed regardless. Uninstalling a package that is not
        installed succeeds without doing anything.

        Raises:
            InstallInProgressError: The package is currently being installed.
        """
        if self.config.install_dir_for(package_id) in self._in_flight:
            raise InstallInProgressError(
                f"Package '{package_id}' is being installed and cannot be removed now."
            )

        record = await asyncio.to_thread(self.store.get, package_id)
        install_dir = (
            record.install_dir
            if record is not None
            else self.config.install_dir_for(package_id)
        )
        await asyncio.to_thread(self._remove_install_dir, install_dir)

        if await asyncio.to_thread(self.store.remove, package_id):
            log.info(f"[green]✓ Uninstalled[/] {escape(package_id)}")
        else:
            log.debug(f"Package '{package_id}' had no installation record.")

    def _remove_install_dir(self, install_dir: Path) -> None:
        games_dir = self.config.games_dir
        if not is_within(install_dir, games_dir) or (
            install_dir.resolve() == games_dir.resolve()
        ):
            log.warning(
                f"[yellow]Refusing to delete '{install_dir}': it is outside the "
                f"install root '{games_dir}'.[/yellow]"
            )
            return
        if not install_dir.exists():
            log.debug(f"Install directory '{install_dir}' is already gone.")
            return
        try:
            shutil.rmtree(install_dir)
        except OSError as e:
            log.warning(
                f"[yellow]Could not fully remove '{install_dir}': {e}[/yellow]"
            )

    def launch(self, package_id: str, entry_point_hint: str | None = None) -> int:
        """
        Starts an installed package's entry point and returns the process id.

        The recorded entry point always wins over `entry_point_hint`, because
        it is where the file was actually found at install time.

        Raises:
            NotInstalledError: The package has no installation record.
            NotFoundError: The recorded executable no longer exists.
            LaunchError: The operating system could not start it.
        """
        record = self.store.get(package_id)
        if record is None:
            raise NotInstalledError(f"Package '{package_id}' is not installed.")

        entry_point = record.entry_point_file or entry_point_hint
        base_dir = record.resolved_base_dir
        executable = base_dir / entry_point
        if not executable.is_file():
            raise NotFoundError(
                f"Executable not found: '{entry_point}' (installed base: {base_dir})."
            )

        try:
            pid = launch_detached(executable, base_dir)
        except OSError as e:
            raise LaunchError(f"Could not start '{executable}': {e}") from e
        log.info(f"[green]▶ Launched[/] {escape(package_id)} [dim](pid {pid})[/dim]")
        return pid


def _remove_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning(f"[yellow]Could not remove temporary file '{path}': {e}[/yellow]")
