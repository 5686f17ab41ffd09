"""Map a version request to a concrete release record.

``Latest`` is answered only by the latest pointer, which by construction
never names a prerelease; there is no "newest anything" fallback.
``Explicit`` looks up the exact record and, when the server has none (or
cannot be reached), builds the conventional artifact URL and continues
without a digest. Reads only; nothing here touches the filesystem.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import InstallError
from lacy.release.github import conventional_record
from lacy.release.model import Explicit, Latest, Resolution, ResolveRequest
from lacy.release.version import parse_tag

if TYPE_CHECKING:
    from lacy.core.config import InstallerConfig
    from lacy.output.console import ConsoleProtocol
    from lacy.release.github import GitHubReleaseStore
    from lacy.release.store import MetadataStore

__all__ = ["VersionResolver"]


class VersionResolver:
    def __init__(
        self,
        config: InstallerConfig,
        primary: MetadataStore,
        console: ConsoleProtocol,
        *,
        github: GitHubReleaseStore | None = None,
    ) -> None:
        self._config = config
        self._primary = primary
        self._console = console
        self._github = github

    def resolve(self, request: ResolveRequest) -> Result[Resolution, InstallError]:
        match request:
            case Latest():
                return self._resolve_latest()
            case Explicit(tag=tag):
                return self._resolve_explicit(tag)

    def _resolve_latest(self) -> Result[Resolution, InstallError]:
        pointer = self._primary.latest()
        if isinstance(pointer, Ok):
            record = pointer.value.record
            return Ok(Resolution(record=record, verified=True, source=self._primary.name))

        error = pointer.error
        if self._github is None or not self._config.distribution.github_fallback:
            return Err(error)

        self._console.warning(f"{error}; asking {self._github.name} for the latest stable release")
        fallback = self._github.latest_stable()
        if isinstance(fallback, Err):
            # Report the primary failure; the fallback was only a second chance.
            self._console.warning(str(fallback.error))
            return Err(error)

        record = fallback.value
        self._console.warning(
            f"resolved {record.version.to_tag()} from {self._github.name}; "
            "no checksum is available for this release"
        )
        return Ok(Resolution(record=record, verified=False, source=self._github.name))

    def _resolve_explicit(self, tag: str) -> Result[Resolution, InstallError]:
        parsed = parse_tag(tag)
        if isinstance(parsed, Err):
            return parsed
        version = parsed.value

        found = self._primary.record(version)
        if isinstance(found, Ok):
            return Ok(Resolution(record=found.value, verified=True, source=self._primary.name))

        error = found.error
        if error.malformed:
            return Err(error)

        record = conventional_record(self._config, version)
        if error.missing:
            reason = "no release metadata"
        else:
            reason = f"metadata unreachable ({error.reason})"
        self._console.warning(
            f"{reason} for {version.to_tag()}; downloading {record.artifact_url} "
            "WITHOUT checksum verification"
        )
        return Ok(Resolution(record=record, verified=False, source="conventional-url"))
