"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class VyltrexCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(VyltrexCliError):
    """Raised for issues related to configuration loading or validation."""


class CatalogError(VyltrexCliError):
    """Raised when the package catalog cannot be loaded or is malformed."""


class PackageNotFoundError(VyltrexCliError):
    """Raised when a package id is not present in the catalog."""


class NetworkError(VyltrexCliError):
    """
    Raised when fetching a remote archive fails: connection errors, exhausted
    redirects, non-2xx responses or an interrupted stream.
    """


class DigestMismatchError(VyltrexCliError):
    """Raised when a downloaded archive does not match its expected digest."""


class FormatError(VyltrexCliError):
    """Raised when an archive cannot be opened or one of its entries is corrupt."""


class NotFoundError(VyltrexCliError):
    """Raised when an expected file (entry point, executable) does not exist."""


class EntryPointNotFoundError(NotFoundError):
    """Raised when no file in an extracted tree matches the entry point name."""

    def __init__(self, entry_point_name: str, top_level_dirs: list[str]):
        self.entry_point_name = entry_point_name
        self.top_level_dirs = top_level_dirs
        if top_level_dirs:
            detail = f"Top-level folder(s) in archive: {', '.join(top_level_dirs)}"
        else:
            detail = "No top-level folders; the archive may be empty or laid out differently."
        super().__init__(f"Entry point '{entry_point_name}' not found. {detail}")


class NotInstalledError(VyltrexCliError):
    """Raised when an operation requires an installed package that has no record."""


class StorageError(VyltrexCliError):
    """Raised when the installation state file cannot be written."""


class InstallInProgressError(VyltrexCliError):
    """Raised when a package is already being installed."""


class LaunchError(VyltrexCliError):
    """Raised when the operating system refuses to start an entry point."""
