"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import hashlib
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from vyltrex_cli import __version__
from vyltrex_cli.utils.path import package_dir_name

DEFAULT_USER_AGENT = f"VyltrexLauncher/{__version__}"
DEFAULT_CHUNK_SIZE = 131072  # 128 KB


def default_data_dir() -> Path:
    """Returns the per-user directory holding installed games and metadata."""
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
        return base_dir.expanduser() / "VyltrexLauncher"
    base_dir = Path(os.getenv("XDG_DATA_HOME", "~/.local/share"))
    return base_dir.expanduser() / "vyltrex"


class LauncherConfig(BaseModel):
    """A validated configuration model for the application."""

    # Locations
    data_dir: Path = Field(default_factory=default_data_dir)
    install_root: Path | None = None
    catalog_path: Path | None = None

    # Transfer Settings
    max_redirects: int = 10
    chunk_size: int = DEFAULT_CHUNK_SIZE
    user_agent: str = DEFAULT_USER_AGENT

    # Verification
    digest_algorithm: str = "sha256"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("data_dir", "install_root", "catalog_path")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        """Expands '~' so paths from the INI file behave like shell paths."""
        return v.expanduser() if v is not None else None

    @field_validator("max_redirects")
    @classmethod
    def validate_redirects(cls, v: int) -> int:
        """Ensures a sane redirect limit."""
        if v < 0 or v > 50:
            raise ValueError("Max redirects must be between 0 and 50.")
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Keeps the streaming chunk size between 4 KB and 16 MB."""
        if v < 4096 or v > 16 * 1024 * 1024:
            raise ValueError("Chunk size must be between 4096 and 16777216 bytes.")
        return v

    @field_validator("digest_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Ensures the digest algorithm is provided by hashlib."""
        v = v.lower()
        if v not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported digest algorithm: '{v}'.")
        return v

    @property
    def games_dir(self) -> Path:
        """Root directory under which every package gets its own folder."""
        return self.install_root or self.data_dir / "Games"

    @property
    def meta_dir(self) -> Path:
        """Directory for the state file and temporary archives."""
        return self.data_dir / "Meta"

    @property
    def state_file(self) -> Path:
        return self.meta_dir / "installed.json"

    @property
    def catalog_file(self) -> Path:
        return self.catalog_path or self.data_dir / "games.json"

    def install_dir_for(self, package_id: str) -> Path:
        """Returns the install directory owned by a package."""
        return self.games_dir / package_dir_name(package_id)

    def temp_archive_for(self, package_id: str) -> Path:
        """Returns the package-scoped location of the downloaded archive."""
        return self.meta_dir / f"{package_dir_name(package_id)}.zip"

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
