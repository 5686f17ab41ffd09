"""Tests for lacy.tools.checksum module."""

from __future__ import annotations

import hashlib
from pathlib import Path

from lacy.core.result import Err, Ok
from lacy.output.console import MockConsole
from lacy.tools.checksum import ChecksumVerifier, sha256_file

PAYLOAD = b"lacylights release payload\n"
DIGEST = hashlib.sha256(PAYLOAD).hexdigest()


def write_artifact(tmp_path: Path, data: bytes = PAYLOAD) -> Path:
    path = tmp_path / "lacylights-rpi-0.1.7.tar.gz"
    path.write_bytes(data)
    return path


class TestSha256File:
    def test_matches_hashlib(self, tmp_path: Path) -> None:
        assert sha256_file(write_artifact(tmp_path)) == DIGEST


class TestChecksumVerifier:
    def test_match(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = write_artifact(tmp_path)

        result = ChecksumVerifier(console).verify(path, DIGEST, expected_size=len(PAYLOAD))

        assert result == Ok(True)
        assert path.exists()
        assert console.find("verified")

    def test_digest_is_case_insensitive(self, tmp_path: Path) -> None:
        path = write_artifact(tmp_path)
        assert ChecksumVerifier(MockConsole()).verify(path, DIGEST.upper()) == Ok(True)

    def test_single_byte_change_is_rejected_and_deleted(self, tmp_path: Path) -> None:
        """Flipping one byte of the artifact must fail and discard the file."""
        tampered = bytearray(PAYLOAD)
        tampered[0] ^= 0x01
        path = write_artifact(tmp_path, bytes(tampered))

        result = ChecksumVerifier(MockConsole()).verify(path, DIGEST)

        assert isinstance(result, Err)
        assert result.error.check == "sha256"
        assert result.error.expected == DIGEST
        assert not path.exists()

    def test_size_mismatch_checked_first(self, tmp_path: Path) -> None:
        path = write_artifact(tmp_path)

        result = ChecksumVerifier(MockConsole()).verify(
            path, DIGEST, expected_size=len(PAYLOAD) + 1
        )

        assert isinstance(result, Err)
        assert result.error.check == "size"
        assert not path.exists()

    def test_missing_digest_warns(self, tmp_path: Path) -> None:
        console = MockConsole()
        path = write_artifact(tmp_path)

        result = ChecksumVerifier(console).verify(path, None)

        assert result == Ok(False)
        assert path.exists()
        assert any("WITHOUT verification" in w for w in console.warnings())
