"""Artifact integrity checks.

A digest mismatch is always fatal: the file is deleted on the spot so no
later step can pick it up by accident. A missing digest only happens for
artifacts published before metadata tracking existed; those are installed
with a visible warning.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import IntegrityError

if TYPE_CHECKING:
    from lacy.output.console import ConsoleProtocol

__all__ = ["sha256_file", "ChecksumVerifier"]


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


class ChecksumVerifier:
    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def verify(
        self,
        path: Path,
        expected_sha256: str | None,
        *,
        expected_size: int | None = None,
    ) -> Result[bool, IntegrityError]:
        """Check ``path`` against the published size and digest.

        Returns:
            Ok(True) if the digest matched, Ok(False) if there was no digest
            to check (warning emitted), Err(IntegrityError) on mismatch. On
            mismatch the file has already been removed.
        """
        if expected_size is not None:
            actual_size = path.stat().st_size
            if actual_size != expected_size:
                path.unlink(missing_ok=True)
                return Err(
                    IntegrityError(
                        path=path,
                        expected=str(expected_size),
                        actual=str(actual_size),
                        check="size",
                    )
                )

        if expected_sha256 is None:
            self._console.warning(
                f"no SHA256 checksum published for {path.name}; installing WITHOUT verification"
            )
            return Ok(False)

        actual = sha256_file(path)
        if actual.lower() != expected_sha256.strip().lower():
            path.unlink(missing_ok=True)
            return Err(IntegrityError(path=path, expected=expected_sha256.lower(), actual=actual))

        self._console.success("SHA256 checksum verified")
        return Ok(True)
