"""GitHub Releases as a lower-trust release source.

GitHub carries no digests for our artifacts, so every record built here has
``sha256=None`` and installs from it are unverified. It is used for version
listing and, when enabled, as a fallback when the distribution server cannot
answer.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.core.structured import StrDict, as_obj_list, as_str_dict, get_bool, get_int, get_str
from lacy.release.errors import MetadataUnavailable
from lacy.release.model import ReleaseRecord
from lacy.release.version import Version, parse_tag

if TYPE_CHECKING:
    from lacy.core.config import InstallerConfig
    from lacy.tools.http import HttpClient

__all__ = ["GitHubReleaseStore", "conventional_record"]

_API = "https://api.github.com/repos"


def conventional_record(config: InstallerConfig, version: Version) -> ReleaseRecord:
    """Best-effort record for ``version`` using the release-asset URL convention."""
    url = (
        f"{config.distribution.github_download_base}/{version.to_tag()}/"
        f"{config.artifact_name(version.bare())}"
    )
    return ReleaseRecord(
        version=version,
        artifact_url=url,
        sha256=None,
        release_timestamp=None,
        is_prerelease=version.is_prerelease,
        size_bytes=None,
    )


def _parse_published(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    try:
        return datetime.fromisoformat(raw).astimezone(UTC)
    except ValueError:
        return None


class GitHubReleaseStore:
    def __init__(self, config: InstallerConfig, http: HttpClient) -> None:
        self._config = config
        self._http = http
        self._repo = config.distribution.github_repo

    @property
    def name(self) -> str:
        return f"github.com/{self._repo}"

    def _release_to_record(
        self, release: StrDict, url: str
    ) -> Result[ReleaseRecord, MetadataUnavailable]:
        tag = get_str(release, "tag_name")
        if tag is None:
            return Err(MetadataUnavailable(source=url, reason="missing tag_name"))
        parsed = parse_tag(tag)
        if isinstance(parsed, Err):
            return Err(MetadataUnavailable(source=url, reason=str(parsed.error)))
        version = parsed.value

        # A release flagged prerelease on GitHub counts as one even if the tag says otherwise.
        flagged = get_bool(release, "prerelease") or False
        fallback = conventional_record(self._config, version)
        artifact_url = fallback.artifact_url
        size: int | None = None
        asset_name = self._config.artifact_name(version.bare())
        for item in as_obj_list(release.get("assets")) or []:
            asset = as_str_dict(item)
            if asset is None or get_str(asset, "name") != asset_name:
                continue
            artifact_url = get_str(asset, "browser_download_url") or artifact_url
            size = get_int(asset, "size")
            break

        return Ok(
            ReleaseRecord(
                version=version,
                artifact_url=artifact_url,
                sha256=None,
                release_timestamp=_parse_published(get_str(release, "published_at")),
                is_prerelease=version.is_prerelease or flagged,
                size_bytes=size,
            )
        )

    def _get_release(self, url: str) -> Result[StrDict, MetadataUnavailable]:
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
        data = as_str_dict(result.value)
        if data is None:
            return Err(MetadataUnavailable(source=url, reason="expected a JSON object"))
        return Ok(data)

    def latest_stable(self) -> Result[ReleaseRecord, MetadataUnavailable]:
        """GitHub's "latest release", refused if it is a prerelease."""
        url = f"{_API}/{self._repo}/releases/latest"
        release = self._get_release(url)
        if isinstance(release, Err):
            return release
        record = self._release_to_record(release.value, url)
        if isinstance(record, Ok) and record.value.is_prerelease:
            return Err(
                MetadataUnavailable(
                    source=url,
                    reason=f"latest release {record.value.version.to_tag()} is a prerelease",
                )
            )
        return record

    def record(self, version: Version) -> Result[ReleaseRecord, MetadataUnavailable]:
        url = f"{_API}/{self._repo}/releases/tags/{version.to_tag()}"
        release = self._get_release(url)
        if isinstance(release, Err):
            return release
        return self._release_to_record(release.value, url)

    def list_records(
        self, *, include_prereleases: bool = False
    ) -> Result[list[ReleaseRecord], MetadataUnavailable]:
        """Published releases, newest first. Drafts and unparseable tags are skipped."""
        url = f"{_API}/{self._repo}/releases?per_page=100"
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
        items = as_obj_list(result.value)
        if items is None:
            return Err(MetadataUnavailable(source=url, reason="expected a JSON array"))

        records: list[ReleaseRecord] = []
        for item in items:
            release = as_str_dict(item)
            if release is None or get_bool(release, "draft"):
                continue
            record = self._release_to_record(release, url)
            if isinstance(record, Err):
                continue
            if record.value.is_prerelease and not include_prereleases:
                continue
            records.append(record.value)

        records.sort(key=lambda r: r.version, reverse=True)
        return Ok(records)
