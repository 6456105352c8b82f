"""
Persists the mapping of package id to installation record as a single JSON
document that is only ever replaced whole.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError

from vyltrex_cli.exceptions import StorageError
from vyltrex_cli.models.package import InstallationRecord

log = logging.getLogger(__name__)


class InstallationStore:
    """
    A JSON-backed store of installation records.

    Reads fail open: a missing, unreadable or corrupt document loads as an
    empty mapping, which only loses install tracking. Writes go to a temporary
    file in the same directory and are swapped in with `os.replace`, so a crash
    never leaves a truncated document behind.
    """

    def __init__(self, state_file: Path):
        self.state_file = state_file
        self._lock = threading.Lock()

    def load(self) -> dict[str, InstallationRecord]:
        """Reads all installation records. Never raises for a bad document."""
        try:
            with open(self.state_file, encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning(
                f"[yellow]Installation state at '{self.state_file}' is unreadable, "
                f"treating it as empty: {e}[/yellow]"
            )
            return {}

        if not isinstance(document, dict):
            log.warning(
                f"[yellow]Installation state at '{self.state_file}' is not an object, "
                "treating it as empty.[/yellow]"
            )
            return {}

        records = {}
        for package_id, fields in document.items():
            if not isinstance(fields, dict):
                log.warning(f"Skipping malformed installation record for '{package_id}'.")
                continue
            try:
                records[package_id] = InstallationRecord(
                    package_id=package_id, **fields
                )
            except (ValidationError, TypeError) as e:
                log.warning(
                    f"Skipping invalid installation record for '{package_id}': {e}"
                )
        return records

    def save(self, records: dict[str, InstallationRecord]) -> None:
        """
        Replaces the whole document with `records`.

        Raises:
            StorageError: If the document cannot be written.
        """
        document = {pid: record.to_document() for pid, record in records.items()}
        temp_path = None
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.state_file.parent,
                prefix=f".{self.state_file.stem}-",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                json.dump(document, handle, indent=2, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.state_file)
            temp_path = None
        except OSError as e:
            raise StorageError(
                f"Failed to write installation state to '{self.state_file}': {e}"
            ) from e
        finally:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    log.debug(f"Could not remove temporary state file '{temp_path}'.")
        log.debug(f"Saved {len(document)} installation record(s) to '{self.state_file}'.")

    def ensure_document(self) -> None:
        """
        Writes an empty document if none exists yet, so the state file is
        present from first use rather than from the first install.

        Raises:
            StorageError: If the document cannot be written.
        """
        with self._lock:
            if not self.state_file.exists():
                self.save({})

    def get(self, package_id: str) -> InstallationRecord | None:
        return self.load().get(package_id)

    def is_installed(self, package_id: str) -> bool:
        return package_id in self.load()

    def set(self, package_id: str, record: InstallationRecord) -> None:
        """Adds or replaces the record for a package."""
        with self._lock:
            records = self.load()
            records[package_id] = record
            self.save(records)

    def remove(self, package_id: str) -> bool:
        """
        Drops the record for a package.

        Returns:
            True if a record was removed, False if none existed.
        """
        with self._lock:
            records = self.load()
            if records.pop(package_id, None) is None:
                return False
            self.save(records)
            return True
