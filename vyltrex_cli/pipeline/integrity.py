"""
Provides streaming digest computation and verification for downloaded archives.
"""

import hashlib
import logging
from pathlib import Path

from vyltrex_cli.exceptions import ConfigurationError

log = logging.getLogger(__name__)


class DigestVerifier:
    """Computes file digests in chunks and compares them to expected hex values."""

    def __init__(self, algorithm: str = "sha256", chunk_size: int = 1048576):
        """
        Args:
            algorithm: Any algorithm name known to hashlib.
            chunk_size: Number of bytes read per step; files are never loaded
                into memory whole.
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ConfigurationError(f"Unsupported digest algorithm: '{algorithm}'.")
        self.chunk_size = chunk_size

    def digest(self, filepath: Path) -> str:
        """
        Computes the hex digest of a file.

        Raises:
            OSError: If the file cannot be read.
        """
        hasher = hashlib.new(self.algorithm)
        with open(filepath, "rb") as f:
            while chunk := f.read(self.chunk_size):
                hasher.update(chunk)
        return hasher.hexdigest()

    def verify(self, filepath: Path, expected_hex: str | None) -> bool:
        """
        Checks a file against an expected digest.

        An empty or missing expected digest means the package opted out of
        verification, which counts as success without reading the file.

        Returns:
            True if the digests match (ignoring case) or verification is skipped.
        """
        expected = (expected_hex or "").strip().lower()
        if not expected:
            log.debug(f"No digest given for '{filepath}', skipping verification.")
            return True

        actual = self.digest(filepath).lower()
        if actual == expected:
            log.debug(f"{self.algorithm} verified for '{filepath}'.")
            return True

        log.warning(
            f"{self.algorithm} mismatch for '{filepath}': expected {expected}, "
            f"got {actual}."
        )
        return False
