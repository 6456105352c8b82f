"""
Finds a package's executable inside an extracted tree whose layout is not
known in advance (archives often wrap everything in a top-level folder).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from vyltrex_cli.exceptions import EntryPointNotFoundError
from vyltrex_cli.utils.path import is_within, top_level_dirs

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocatedEntryPoint:
    """An entry point found on disk and the directory that contains it."""

    path: Path
    base_dir: Path


class EntryPointLocator:
    """Resolves an entry point name to a real file below an install root."""

    def locate(self, root_dir: Path, entry_point_name: str) -> LocatedEntryPoint:
        """
        Looks for `entry_point_name` below `root_dir`.

        The exact path `root_dir/entry_point_name` wins if it is a file inside
        `root_dir`; absolute names and names climbing out with `..` only
        contribute their basename to the search.
        Otherwise the tree is walked depth-first with an explicit stack and
        the first file whose name matches case-insensitively is returned.
        Sibling order is whatever the filesystem lists, so with several
        identically named files the choice is arbitrary.

        Raises:
            EntryPointNotFoundError: If no file matches anywhere in the tree.
        """
        exact = Path(os.path.normpath(root_dir / entry_point_name))
        if is_within(exact, root_dir) and exact.is_file():
            log.debug(f"Entry point found at expected path '{exact}'.")
            return LocatedEntryPoint(path=exact, base_dir=exact.parent)

        wanted = Path(entry_point_name).name.lower()
        stack = [root_dir]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                log.debug(f"Skipping unreadable directory '{current}': {e}")
                continue

            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append(Path(entry.path))
                    elif entry.is_file() and entry.name.lower() == wanted:
                        found = Path(entry.path)
                        log.debug(f"Entry point '{entry_point_name}' found at '{found}'.")
                        return LocatedEntryPoint(path=found, base_dir=found.parent)
                except OSError:
                    continue

        raise EntryPointNotFoundError(entry_point_name, top_level_dirs(root_dir))
