"""
Storage Layer.

This package handles all data persistence, including the configuration file,
the package catalog and the installation state document.
"""

from .catalog import Catalog
from .config_manager import ConfigManager
from .content_store import InstallationStore

__all__ = ["Catalog", "ConfigManager", "InstallationStore"]
