"""
Loads the read-only package catalog (a JSON list of descriptors).
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vyltrex_cli.exceptions import CatalogError, PackageNotFoundError
from vyltrex_cli.models.package import PackageDescriptor
from vyltrex_cli.utils.path import package_dir_name

log = logging.getLogger(__name__)


class Catalog:
    """An ordered, read-only collection of package descriptors keyed by id."""

    def __init__(self, descriptors: list[PackageDescriptor]):
        self._descriptors: dict[str, PackageDescriptor] = {}
        # Folded to lower case so ids also stay apart on case-insensitive filesystems
        dir_owners: dict[str, str] = {}
        for descriptor in descriptors:
            if descriptor.id in self._descriptors:
                raise CatalogError(f"Duplicate package id in catalog: '{descriptor.id}'.")
            dir_name = package_dir_name(descriptor.id).lower()
            if dir_name in dir_owners:
                raise CatalogError(
                    f"Package ids '{dir_owners[dir_name]}' and '{descriptor.id}' "
                    "would share one install directory."
                )
            dir_owners[dir_name] = descriptor.id
            self._descriptors[descriptor.id] = descriptor

    @classmethod
    def from_entries(cls, entries: list[dict[str, Any]]) -> "Catalog":
        """Builds a catalog from raw JSON objects, validating each one."""
        descriptors = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise CatalogError(f"Catalog entry #{index} is not an object.")
            try:
                descriptors.append(PackageDescriptor(**entry))
            except ValidationError as e:
                label = entry.get("id", f"#{index}")
                raise CatalogError(f"Invalid catalog entry '{label}':\n{e}") from e
        return cls(descriptors)

    @classmethod
    def from_file(cls, catalog_path: Path) -> "Catalog":
        """
        Loads a catalog file.

        Raises:
            CatalogError: If the file is missing, not valid JSON, not a list, or
            contains invalid or duplicate entries.
        """
        if not catalog_path.is_file():
            raise CatalogError(f"Catalog file not found at '{catalog_path}'.")
        try:
            with open(catalog_path, encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CatalogError(f"Could not read catalog '{catalog_path}': {e}") from e

        if not isinstance(entries, list):
            raise CatalogError(f"Catalog '{catalog_path}' must contain a JSON list.")

        catalog = cls.from_entries(entries)
        log.debug(f"Loaded {len(catalog)} package(s) from '{catalog_path}'.")
        return catalog

    def get(self, package_id: str) -> PackageDescriptor:
        try:
            return self._descriptors[package_id]
        except KeyError:
            raise PackageNotFoundError(
                f"Package '{package_id}' is not in the catalog."
            ) from None

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._descriptors

    def __iter__(self) -> Iterator[PackageDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)
