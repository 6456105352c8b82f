"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures used throughout the application, such as configuration,
catalog descriptors, installation records and progress events.
"""

from .config import LauncherConfig
from .package import CatalogEntry, InstallationRecord, PackageDescriptor
from .progress import ProgressEvent, ProgressSink, Stage

__all__ = [
    "CatalogEntry",
    "InstallationRecord",
    "LauncherConfig",
    "PackageDescriptor",
    "ProgressEvent",
    "ProgressSink",
    "Stage",
]
