"""Install orchestration: resolve -> fetch -> verify -> transaction.

Everything downloaded lives in one staging directory that is removed when
the operation ends, whatever the outcome.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.install.transaction import (
    BACKUP_INFIX,
    InstallReceipt,
    InstallState,
    InstallTransaction,
)
from lacy.platform.detection import is_raspberry_pi
from lacy.release.errors import InstallError
from lacy.release.github import GitHubReleaseStore
from lacy.release.resolver import VersionResolver
from lacy.release.store import HttpMetadataStore
from lacy.release.version import Version, parse_version
from lacy.tools.checksum import ChecksumVerifier
from lacy.tools.fetch import ArchiveFetcher, staging_area

if TYPE_CHECKING:
    from lacy.core.config import InstallConfig, InstallerConfig
    from lacy.install.hooks import PostInstallHook
    from lacy.output.console import ConsoleProtocol
    from lacy.platform.process import ProcessError
    from lacy.release.model import ResolveRequest
    from lacy.tools.http import HttpClient

__all__ = ["InstallService", "read_installed_version", "list_backups"]


def read_installed_version(config: InstallConfig) -> Version | None:
    """Version named by the marker file of the current installation, if readable."""
    try:
        text = config.marker_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    parsed = parse_version(text)
    if isinstance(parsed, Err):
        return None
    return parsed.value


def list_backups(install_dir: Path) -> list[Path]:
    """Backups of ``install_dir``, newest first."""
    parent = install_dir.parent
    if not parent.is_dir():
        return []
    prefix = f"{install_dir.name}{BACKUP_INFIX}"
    found = [p for p in parent.iterdir() if p.name.startswith(prefix) and p.is_dir()]
    return sorted(found, key=lambda p: p.name, reverse=True)


class InstallService:
    def __init__(
        self,
        config: InstallerConfig,
        console: ConsoleProtocol,
        http: HttpClient,
        *,
        clock: Callable[[], datetime] | None = None,
        board_check: Callable[[], bool] = is_raspberry_pi,
    ) -> None:
        self._config = config
        self._console = console
        self._http = http
        self._clock = clock
        self._board_check = board_check
        self.last_states: tuple[InstallState, ...] = ()

    def resolver(self) -> VersionResolver:
        return VersionResolver(
            self._config,
            HttpMetadataStore(self._config.distribution.base_url, self._http),
            self._console,
            github=GitHubReleaseStore(self._config, self._http),
        )

    def install(self, request: ResolveRequest) -> Result[InstallReceipt, InstallError]:
        """Install the requested release into the configured directory.

        ``last_states`` records how far the archive got, from FETCHED through
        the transaction, ending in COMMITTED or ABORTED. It stays empty when
        resolution fails, since nothing was fetched.
        """
        self.last_states = ()
        if not self._board_check():
            self._console.warning("this does not look like a Raspberry Pi; continuing anyway")

        resolved = self.resolver().resolve(request)
        if isinstance(resolved, Err):
            return resolved
        resolution = resolved.value
        record = resolution.record
        self._console.info(f"version {record.version.to_tag()} (from {resolution.source})")
        self._console.info(f"install directory: {self._config.install.dir}")

        with staging_area() as staging:
            self._console.header("Downloading Release")
            fetched = ArchiveFetcher(self._http).fetch(record.artifact_url, staging)
            if isinstance(fetched, Err):
                self.last_states = (InstallState.ABORTED,)
                return fetched
            archive = fetched.value.path
            self._console.print(f"downloaded {fetched.value.size} bytes from {record.artifact_url}")

            verified = ChecksumVerifier(self._console).verify(
                archive,
                record.sha256,
                expected_size=record.size_bytes,
            )
            if isinstance(verified, Err):
                self.last_states = (InstallState.FETCHED, InstallState.ABORTED)
                return verified

            self._console.header("Installing")
            transaction = InstallTransaction(self._config.install, self._console, clock=self._clock)
            receipt = transaction.run(archive, replace(resolution, verified=verified.value))
            self.last_states = transaction.last_states
            if isinstance(receipt, Err):
                return receipt

        return Ok(receipt.value)

    def run_hooks(
        self, receipt: InstallReceipt, hooks: Sequence[PostInstallHook]
    ) -> Result[None, ProcessError]:
        for hook in hooks:
            self._console.header(f"Running {hook.description}")
            result = hook.run(receipt.target)
            if isinstance(result, Err):
                return result
        return Ok(None)
