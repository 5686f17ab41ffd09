"""Error payloads for the install and publish flows.

Each install-side failure mode is its own type so presentation code can
match on it and give the operator the right remediation. None of them is
retried automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

__all__ = [
    "ParseError",
    "MetadataUnavailable",
    "FetchError",
    "IntegrityError",
    "CorruptArchiveError",
    "TargetError",
    "InstallError",
    "PublishError",
    "PublishErrorKind",
]


@dataclass(frozen=True, slots=True)
class ParseError:
    """A version tag or metadata version string is malformed."""

    text: str
    expected: str

    def __str__(self) -> str:
        return f"invalid version {self.text!r} (expected {self.expected})"


@dataclass(frozen=True, slots=True)
class MetadataUnavailable:
    """Release metadata could not be read or failed schema validation.

    ``missing`` is True when the store answered but has no such record
    (HTTP 404 / no file). ``malformed`` is True when a document was read but
    failed validation. Neither flag set means the store was unreachable.
    """

    source: str
    reason: str
    missing: bool = False
    malformed: bool = False

    def __str__(self) -> str:
        return f"release metadata unavailable from {self.source}: {self.reason}"


@dataclass(frozen=True, slots=True)
class FetchError:
    """The artifact download failed.

    ``not_found`` (HTTP 404) usually means the requested version does not
    exist; ``network`` covers every other transport problem.
    """

    url: str
    kind: Literal["not_found", "network"]
    message: str
    status: int = 0

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class IntegrityError:
    """The downloaded artifact does not match its published digest or size."""

    path: Path
    expected: str
    actual: str
    check: Literal["sha256", "size"] = "sha256"

    def __str__(self) -> str:
        return (
            f"{self.check} mismatch for {self.path.name}: "
            f"expected {self.expected}, got {self.actual}"
        )


@dataclass(frozen=True, slots=True)
class CorruptArchiveError:
    """The archive could not be unpacked or lacks the expected contents.

    ``backup`` is the preserved previous installation, if one was taken
    before the failure. ``target`` is set once extraction into the install
    directory has begun; that directory is then partial and flagged.
    """

    archive: Path
    reason: str
    missing: tuple[str, ...] = ()
    backup: Path | None = None
    target: Path | None = None

    def __str__(self) -> str:
        return f"{self.reason}: {self.archive.name}"


@dataclass(frozen=True, slots=True)
class TargetError:
    """The install directory could not be backed up, created or written.

    ``backup`` is the preserved previous installation when the failure came
    after it was moved aside.
    """

    path: Path
    reason: str
    backup: Path | None = None

    def __str__(self) -> str:
        return f"{self.reason}: {self.path}"


InstallError = (
    ParseError
    | MetadataUnavailable
    | FetchError
    | IntegrityError
    | CorruptArchiveError
    | TargetError
)


PublishErrorKind = Literal[
    "invalid_input",
    "record_exists",
    "artifact_missing",
    "io_failed",
    "git_failed",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """Publish-side failure (allocation, packaging, metadata writes, git)."""

    kind: PublishErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
