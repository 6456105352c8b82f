"""
Utilities for turning package ids into safe directory names and managing
install directories.
"""

import hashlib
import shutil
from pathlib import Path

from pathvalidate import sanitize_filename


def package_dir_name(package_id: str) -> str:
    """
    Returns a filesystem-safe directory name for a package id.

    Ids that are already valid names are returned unchanged, so the install
    directory of 'g1' is simply 'g1'. When sanitizing has to change the id,
    a short hash of the original id is appended so that distinct ids never
    share a directory ('a/b' and 'ab' map to different names).
    """
    name = sanitize_filename(package_id, platform="universal")
    if name == package_id and name not in (".", ".."):
        return name
    if name in (".", ".."):
        name = ""
    suffix = hashlib.sha256(package_id.encode("utf-8")).hexdigest()[:8]
    return f"{name}-{suffix}" if name else suffix


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def reset_dir(directory_path: Path) -> None:
    """Removes a directory and everything below it, then recreates it empty."""
    if directory_path.exists():
        shutil.rmtree(directory_path)
    create_dir(directory_path)


def is_within(path: Path, root: Path) -> bool:
    """True if `path` resolves to `root` or somewhere below it."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def top_level_dirs(directory_path: Path) -> list[str]:
    """Lists the names of the directories directly inside `directory_path`."""
    try:
        return [p.name for p in directory_path.iterdir() if p.is_dir()]
    except OSError:
        return []
