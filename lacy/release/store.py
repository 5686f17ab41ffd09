"""Release metadata stores.

- MetadataStore: read-side protocol used by the resolver
- HttpMetadataStore: the distribution server (``latest.json``, ``<version>.json``)
- DirectoryMetadataStore: a local metadata tree, written by ``lacy release publish``
  and synced to the server out of band

Records are immutable once written. Only ``latest.json`` is ever replaced.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from lacy.core.result import Err, Ok, Result
from lacy.platform.files import atomic_write_json, create_exclusive_text
from lacy.release.errors import MetadataUnavailable, PublishError
from lacy.release.model import (
    LatestPointer,
    ReleaseRecord,
    latest_to_json,
    parse_latest,
    parse_record,
    record_to_json,
)
from lacy.release.version import Version, parse_version

if TYPE_CHECKING:
    from lacy.tools.http import HttpClient

__all__ = [
    "LATEST_FILE",
    "MetadataStore",
    "HttpMetadataStore",
    "DirectoryMetadataStore",
    "record_filename",
]

LATEST_FILE = "latest.json"


def record_filename(version: Version) -> str:
    return f"{version.bare()}.json"


def _keyed_record(
    parsed: Result[ReleaseRecord, MetadataUnavailable], version: Version, source: str
) -> Result[ReleaseRecord, MetadataUnavailable]:
    """Reject a record stored under another version's key."""
    if isinstance(parsed, Ok) and parsed.value.version != version:
        return Err(
            MetadataUnavailable(
                source=source,
                reason=f"record describes {parsed.value.version.bare()}, not {version.bare()}",
                malformed=True,
            )
        )
    return parsed


class MetadataStore(Protocol):
    @property
    def name(self) -> str:
        """Human-readable source label used in error messages."""
        ...

    def latest(self) -> Result[LatestPointer, MetadataUnavailable]: ...

    def record(self, version: Version) -> Result[ReleaseRecord, MetadataUnavailable]: ...


class HttpMetadataStore:
    def __init__(self, base_url: str, http: HttpClient) -> None:
        self._base = base_url.rstrip("/")
        self._http = http

    @property
    def name(self) -> str:
        return self._base

    def _get(self, filename: str) -> Result[object, MetadataUnavailable]:
        url = f"{self._base}/{filename}"
        result = self._http.get_json(url)
        if isinstance(result, Err):
            error = result.error
            return Err(
                MetadataUnavailable(
                    source=url,
                    reason=str(error),
                    missing=error.is_not_found,
                    malformed=error.malformed,
                )
            )
        return Ok(result.value)

    def latest(self) -> Result[LatestPointer, MetadataUnavailable]:
        data = self._get(LATEST_FILE)
        if isinstance(data, Err):
            return data
        return parse_latest(data.value, source=f"{self._base}/{LATEST_FILE}")

    def record(self, version: Version) -> Result[ReleaseRecord, MetadataUnavailable]:
        filename = record_filename(version)
        data = self._get(filename)
        if isinstance(data, Err):
            return data
        source = f"{self._base}/{filename}"
        return _keyed_record(parse_record(data.value, source=source), version, source)


class DirectoryMetadataStore:
    """Metadata tree on the local filesystem.

    Layout mirrors the server: ``<root>/latest.json`` and ``<root>/<version>.json``.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    @property
    def name(self) -> str:
        return str(self.root)

    def _read(self, path: Path) -> Result[object, MetadataUnavailable]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Err(MetadataUnavailable(source=str(path), reason="no such file", missing=True))
        except OSError as e:
            return Err(MetadataUnavailable(source=str(path), reason=str(e)))
        try:
            return Ok(json.loads(text))
        except json.JSONDecodeError as e:
            return Err(
                MetadataUnavailable(
                    source=str(path), reason=f"JSON parse error: {e}", malformed=True
                )
            )

    def latest(self) -> Result[LatestPointer, MetadataUnavailable]:
        path = self.root / LATEST_FILE
        data = self._read(path)
        if isinstance(data, Err):
            return data
        return parse_latest(data.value, source=str(path))

    def record(self, version: Version) -> Result[ReleaseRecord, MetadataUnavailable]:
        path = self.root / record_filename(version)
        data = self._read(path)
        if isinstance(data, Err):
            return data
        return _keyed_record(parse_record(data.value, source=str(path)), version, str(path))

    def versions(self) -> list[Version]:
        """Versions with a record file present, oldest first."""
        if not self.root.is_dir():
            return []
        found: list[Version] = []
        for path in self.root.glob("*.json"):
            if path.name == LATEST_FILE:
                continue
            parsed = parse_version(path.stem)
            if isinstance(parsed, Ok):
                found.append(parsed.value)
        return sorted(found)

    def publish_record(self, record: ReleaseRecord) -> Result[Path, PublishError]:
        """Write ``<version>.json``; fails if a record for that version exists."""
        path = self.root / record_filename(record.version)
        content = json.dumps(record_to_json(record), indent=2) + "\n"
        try:
            create_exclusive_text(path, content)
        except FileExistsError:
            return Err(
                PublishError(
                    kind="record_exists",
                    message=f"release record already exists: {path}",
                    hint="Published records are immutable; allocate a new version.",
                )
            )
        except OSError as e:
            return Err(PublishError(kind="io_failed", message=f"failed to write {path}: {e}"))
        return Ok(path)

    def write_latest(self, pointer: LatestPointer) -> Result[Path, PublishError]:
        path = self.root / LATEST_FILE
        try:
            atomic_write_json(path, latest_to_json(pointer))
        except OSError as e:
            return Err(PublishError(kind="io_failed", message=f"failed to write {path}: {e}"))
        return Ok(path)
