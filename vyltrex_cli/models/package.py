"""
Pydantic models for catalog descriptors and installation records.
"""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class PackageDescriptor(BaseModel):
    """
    A single catalog entry describing a downloadable package.

    The catalog file uses the short keys `download`, `sha256` and `exe`; the
    model accepts those as well as the field names.
    """

    id: str = Field(..., min_length=1)
    download_url: str = Field(..., alias="download", min_length=1)
    expected_digest: str = Field("", alias="sha256")
    entry_point_name: str = Field(..., alias="exe", min_length=1)

    # Display metadata, inert to the install pipeline
    name: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    description: str = ""

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        str_strip_whitespace = True
        frozen = True

    @field_validator("expected_digest", mode="before")
    @classmethod
    def normalize_digest(cls, v: str | None) -> str:
        """Treats a missing digest like an empty one."""
        return "" if v is None else str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        return v or []

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def requires_verification(self) -> bool:
        return bool(self.expected_digest)


class InstallationRecord(BaseModel):
    """Where a package was installed and where its entry point was found."""

    package_id: str
    install_dir: Path
    resolved_base_dir: Path
    entry_point_file: str = Field(..., min_length=1)
    installed_at: datetime

    @property
    def executable_path(self) -> Path:
        return self.resolved_base_dir / self.entry_point_file

    def to_document(self) -> dict[str, str]:
        """Serializes the record for the state file (keyed by package id)."""
        return {
            "install_dir": str(self.install_dir),
            "resolved_base_dir": str(self.resolved_base_dir),
            "entry_point_file": self.entry_point_file,
            "installed_at": self.installed_at.isoformat(),
        }


class CatalogEntry(BaseModel):
    """A catalog descriptor annotated with its current install status."""

    descriptor: PackageDescriptor
    installed: bool = False
