"""
Unpacks ZIP archives entry by entry, reporting progress as each file lands.
"""

import logging
import os
import stat
import zipfile
import zlib
from collections.abc import Callable
from pathlib import Path

from vyltrex_cli.exceptions import FormatError
from vyltrex_cli.utils.path import create_dir

log = logging.getLogger(__name__)

# Errors zipfile raises for damaged or unsupported entries
_CORRUPT_ENTRY_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)
_ENCRYPTED_FLAG = 0x1


class ArchiveExtractor:
    """Extracts archives while preserving the paths stored inside them."""

    def extract(
        self,
        archive_path: Path,
        destination_dir: Path,
        on_progress: Callable[[float], None] | None = None,
    ) -> int:
        """
        Extracts every file entry of a ZIP archive into `destination_dir`.

        Directory entries are skipped (their folders are created as a side
        effect of the files inside them). Existing files are overwritten.
        Progress is `processed / max(total, 1) * 100`, so an empty archive
        reports 100 once and succeeds.

        Returns:
            The number of files extracted.

        Raises:
            FormatError: If the archive cannot be opened or an entry is corrupt.
        """
        create_dir(destination_dir)
        try:
            with zipfile.ZipFile(archive_path) as archive:
                entries = [info for info in archive.infolist() if not info.is_dir()]
                total = max(len(entries), 1)
                log.debug(f"Extracting {len(entries)} file(s) from '{archive_path.name}'.")

                if not entries and on_progress:
                    on_progress(100.0)

                for processed, info in enumerate(entries, start=1):
                    if info.flag_bits & _ENCRYPTED_FLAG:
                        raise FormatError(
                            f"Entry '{info.filename}' in '{archive_path.name}' is "
                            "encrypted; password-protected archives are not supported."
                        )
                    try:
                        extracted = archive.extract(info, destination_dir)
                    except _CORRUPT_ENTRY_ERRORS as e:
                        raise FormatError(
                            f"Corrupt entry '{info.filename}' in '{archive_path.name}': {e}"
                        ) from e
                    self._restore_permissions(Path(extracted), info)
                    if on_progress:
                        on_progress(processed / total * 100)
                return len(entries)
        except zipfile.BadZipFile as e:
            raise FormatError(f"'{archive_path.name}' is not a valid ZIP archive: {e}") from e

    @staticmethod
    def _restore_permissions(extracted_path: Path, info: zipfile.ZipInfo) -> None:
        """Applies POSIX mode bits stored by Unix zip tools, if any."""
        if os.name == "nt":
            return
        mode = (info.external_attr >> 16) & 0o777
        if not mode or stat.S_ISLNK(info.external_attr >> 16):
            return
        try:
            os.chmod(extracted_path, mode | stat.S_IRUSR)
        except OSError as e:
            log.debug(f"Could not set permissions on '{extracted_path}': {e}")
