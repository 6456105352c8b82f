"""
vyltrex-cli: download, verify, install and launch game packages from a catalog.
"""

__version__ = "1.0.0"
