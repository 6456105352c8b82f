"""
Tests for streaming digest verification.
"""
import hashlib

import pytest

from vyltrex_cli.exceptions import ConfigurationError
from vyltrex_cli.pipeline.integrity import DigestVerifier

PAYLOAD = b"vyltrex" * 5000


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "package.zip"
    path.write_bytes(PAYLOAD)
    return path


class TestDigestVerifier:
    def test_digest_matches_hashlib(self, archive):
        verifier = DigestVerifier(chunk_size=4096)
        assert verifier.digest(archive) == hashlib.sha256(PAYLOAD).hexdigest()

    def test_verify_ignores_case_and_whitespace(self, archive):
        expected = hashlib.sha256(PAYLOAD).hexdigest().upper()
        assert DigestVerifier().verify(archive, f"  {expected} ")

    def test_mismatch(self, archive):
        assert not DigestVerifier().verify(archive, "0" * 64)

    @pytest.mark.parametrize("expected", ["", None, "   "])
    def test_empty_digest_skips_reading(self, tmp_path, expected):
        assert DigestVerifier().verify(tmp_path / "does-not-exist.zip", expected)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            DigestVerifier().verify(tmp_path / "does-not-exist.zip", "abc")

    def test_other_algorithm(self, archive):
        verifier = DigestVerifier("MD5")
        assert verifier.algorithm == "md5"
        assert verifier.verify(archive, hashlib.md5(PAYLOAD).hexdigest())

    def test_unknown_algorithm(self):
        with pytest.raises(ConfigurationError):
            DigestVerifier("rot13")
