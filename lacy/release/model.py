"""Release records, the latest pointer, and their JSON wire format.

Wire format (one JSON object per file on the distribution server)::

    {
      "version": "0.1.7b1",
      "url": "https://dist.lacylights.com/releases/rpi/lacylights-rpi-0.1.7b1.tar.gz",
      "sha256": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
      "releaseDate": "2025-06-01T12:00:00Z",
      "isPrerelease": true,
      "fileSize": 48213
    }

``latest.json`` has the same fields plus ``installScript``. Parsing is
strict: a missing or wrongly-typed field makes the whole record unusable
rather than silently empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime

from lacy.core.result import Err, Ok, Result
from lacy.core.structured import as_str_dict, get_bool, get_int, get_str
from lacy.release.errors import MetadataUnavailable
from lacy.release.version import Version, parse_version

__all__ = [
    "ReleaseRecord",
    "LatestPointer",
    "Latest",
    "Explicit",
    "ResolveRequest",
    "Resolution",
    "parse_selector",
    "parse_record",
    "parse_latest",
    "record_to_json",
    "latest_to_json",
    "format_timestamp",
]

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """Immutable descriptor of one published artifact.

    ``sha256``, ``release_timestamp`` and ``size_bytes`` are None only for
    best-effort records built without metadata (legacy artifacts, GitHub
    fallback); such records cannot be integrity-checked.
    """

    version: Version
    artifact_url: str
    sha256: str | None
    release_timestamp: datetime | None
    is_prerelease: bool
    size_bytes: int | None

    @property
    def key(self) -> str:
        return self.version.bare()


@dataclass(frozen=True, slots=True)
class LatestPointer:
    """The single mutable reference to the newest stable release."""

    record: ReleaseRecord
    install_script_url: str

    def __post_init__(self) -> None:
        if self.record.is_prerelease or self.record.version.is_prerelease:
            raise ValueError(
                f"latest pointer cannot reference prerelease {self.record.version.to_tag()}"
            )


@dataclass(frozen=True, slots=True)
class Latest:
    """Request for the newest stable release."""


@dataclass(frozen=True, slots=True)
class Explicit:
    """Request for one exact tag, stable or beta."""

    tag: str


ResolveRequest = Latest | Explicit


def parse_selector(text: str) -> ResolveRequest:
    """Map the installer's first positional argument to a request."""
    if text.strip().lower() == "latest":
        return Latest()
    return Explicit(text.strip())


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of version resolution.

    ``verified`` is False whenever the artifact will be installed without a
    digest check; ``source`` names the store (or fallback) that answered.
    """

    record: ReleaseRecord
    verified: bool
    source: str


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 UTC with a ``Z`` suffix, second precision."""
    return ts.astimezone(UTC).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_timestamp(raw: str) -> datetime | None:
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def parse_record(obj: object, *, source: str) -> Result[ReleaseRecord, MetadataUnavailable]:
    """Validate a decoded JSON object against the record schema."""

    def bad(reason: str) -> Err[MetadataUnavailable]:
        return Err(MetadataUnavailable(source=source, reason=reason, malformed=True))

    data = as_str_dict(obj)
    if data is None:
        return bad("expected a JSON object")

    raw_version = get_str(data, "version")
    if raw_version is None:
        return bad("missing 'version'")
    if raw_version.startswith("v"):
        return bad(f"'version' must not carry a prefix: {raw_version!r}")
    parsed = parse_version(raw_version)
    if isinstance(parsed, Err):
        return bad(str(parsed.error))
    version = parsed.value

    url = get_str(data, "url")
    if url is None:
        return bad("missing 'url'")

    digest = get_str(data, "sha256")
    if digest is None or not _SHA256_RE.match(digest):
        return bad("'sha256' must be a 64-character hex string")

    raw_date = get_str(data, "releaseDate")
    timestamp = _parse_timestamp(raw_date) if raw_date else None
    if timestamp is None:
        return bad("'releaseDate' must be an ISO-8601 timestamp")

    is_prerelease = get_bool(data, "isPrerelease")
    if is_prerelease is None:
        return bad("'isPrerelease' must be a boolean")
    if is_prerelease != version.is_prerelease:
        return bad(f"'isPrerelease' disagrees with version {raw_version!r}")

    size = get_int(data, "fileSize")
    if size is None or size < 0:
        return bad("'fileSize' must be a non-negative integer")

    return Ok(
        ReleaseRecord(
            version=version,
            artifact_url=url,
            sha256=digest.lower(),
            release_timestamp=timestamp,
            is_prerelease=is_prerelease,
            size_bytes=size,
        )
    )


def parse_latest(obj: object, *, source: str) -> Result[LatestPointer, MetadataUnavailable]:
    """Validate ``latest.json``; a prerelease here is treated as malformed."""
    record = parse_record(obj, source=source)
    if isinstance(record, Err):
        return record

    data = as_str_dict(obj) or {}
    script = get_str(data, "installScript")
    if script is None:
        return Err(
            MetadataUnavailable(source=source, reason="missing 'installScript'", malformed=True)
        )

    if record.value.is_prerelease:
        return Err(
            MetadataUnavailable(
                source=source,
                reason=f"latest pointer references prerelease {record.value.version.to_tag()}",
                malformed=True,
            )
        )

    return Ok(LatestPointer(record=record.value, install_script_url=script))


def record_to_json(record: ReleaseRecord) -> dict[str, object]:
    if record.sha256 is None or record.release_timestamp is None or record.size_bytes is None:
        raise ValueError(f"cannot serialise best-effort record {record.version.to_tag()}")
    return {
        "version": record.version.bare(),
        "url": record.artifact_url,
        "sha256": record.sha256,
        "releaseDate": format_timestamp(record.release_timestamp),
        "isPrerelease": record.is_prerelease,
        "fileSize": record.size_bytes,
    }


def latest_to_json(pointer: LatestPointer) -> dict[str, object]:
    data = record_to_json(pointer.record)
    data["installScript"] = pointer.install_script_url
    return data
