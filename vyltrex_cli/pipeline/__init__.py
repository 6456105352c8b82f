"""
Install Pipeline Layer.

This package contains the individual steps of an install: fetching the
archive, verifying its digest, extracting it and locating the entry point.
Each step is usable on its own; `core.InstallManager` sequences them.
"""

from .extractor import ArchiveExtractor
from .fetcher import Fetcher
from .integrity import DigestVerifier
from .locator import EntryPointLocator, LocatedEntryPoint

__all__ = [
    "ArchiveExtractor",
    "DigestVerifier",
    "EntryPointLocator",
    "Fetcher",
    "LocatedEntryPoint",
]
