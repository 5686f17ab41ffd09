"""Apply a verified release archive to the install directory.

States::

    FETCHED -> VERIFIED -> STAGED -> BACKED_UP -> EXTRACTED -> VALIDATED
            -> PERMISSIONED -> COMMITTED

with ABORTED reachable from every state before COMMITTED. Fetching and
verification happen before the transaction is handed the archive, so a run
starts in VERIFIED; ``InstallService.last_states`` records an abort in
either of those two steps.

The existing installation is renamed aside, never deleted, before anything
is written. There is no automatic rollback: after an abort past BACKED_UP
the operator has a partial directory (flagged with ``INSTALL_INCOMPLETE``)
next to an intact backup, and re-running install is the recovery path.
"""

from __future__ import annotations

import shlex
import stat
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from lacy.core.result import Err, Ok, Result
from lacy.install.extract import ArchiveExtractor
from lacy.release.errors import CorruptArchiveError, TargetError
from lacy.release.version import parse_version

if TYPE_CHECKING:
    from lacy.core.config import InstallConfig
    from lacy.output.console import ConsoleProtocol
    from lacy.release.model import Resolution

__all__ = [
    "INCOMPLETE_FLAG",
    "InstallState",
    "InstallReceipt",
    "InstallTransaction",
    "TransactionError",
    "backup_path_for",
    "restore_command",
]

INCOMPLETE_FLAG = "INSTALL_INCOMPLETE"
BACKUP_INFIX = ".backup."
_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S_%f"

TransactionError = CorruptArchiveError | TargetError


class InstallState(StrEnum):
    FETCHED = "fetched"
    VERIFIED = "verified"
    STAGED = "staged"
    BACKED_UP = "backed-up"
    EXTRACTED = "extracted"
    VALIDATED = "validated"
    PERMISSIONED = "permissioned"
    COMMITTED = "committed"
    ABORTED = "aborted"


_NEXT: Mapping[InstallState, InstallState] = {
    InstallState.FETCHED: InstallState.VERIFIED,
    InstallState.VERIFIED: InstallState.STAGED,
    InstallState.STAGED: InstallState.BACKED_UP,
    InstallState.BACKED_UP: InstallState.EXTRACTED,
    InstallState.EXTRACTED: InstallState.VALIDATED,
    InstallState.VALIDATED: InstallState.PERMISSIONED,
    InstallState.PERMISSIONED: InstallState.COMMITTED,
}


@dataclass(frozen=True, slots=True)
class InstallReceipt:
    """Success report handed back to the caller."""

    tag: str
    target: Path
    backup: Path | None
    verified: bool
    files_count: int
    permission_failures: tuple[str, ...] = ()


@dataclass(slots=True)
class _Session:
    archive: Path
    resolution: Resolution
    target: Path
    state: InstallState = InstallState.VERIFIED
    history: list[InstallState] = field(
        default_factory=lambda: [InstallState.FETCHED, InstallState.VERIFIED]
    )
    backup: Path | None = None
    extraction_started: bool = False
    files_count: int = 0
    permission_failures: list[str] = field(default_factory=list)

    def advance(self, to: InstallState) -> None:
        expected = _NEXT.get(self.state)
        if to is not InstallState.ABORTED and to is not expected:
            raise RuntimeError(f"illegal install transition: {self.state} -> {to}")
        if self.state is InstallState.COMMITTED:
            raise RuntimeError("install already committed")
        self.state = to
        self.history.append(to)


def backup_path_for(target: Path, now: datetime) -> Path:
    """First free ``<target>.backup.<timestamp>[.N]`` path."""
    base = target.with_name(f"{target.name}{BACKUP_INFIX}{now.strftime(_TIMESTAMP_FORMAT)}")
    candidate = base
    n = 0
    while candidate.exists() or candidate.is_symlink():
        n += 1
        candidate = base.with_name(f"{base.name}.{n}")
    return candidate


def restore_command(target: Path, backup: Path) -> str:
    quoted_target = shlex.quote(str(target))
    return f"rm -rf {quoted_target} && mv {shlex.quote(str(backup))} {quoted_target}"


_Handler: TypeAlias = "Callable[[_Session], Result[None, TransactionError]]"


class InstallTransaction:
    def __init__(
        self,
        config: InstallConfig,
        console: ConsoleProtocol,
        *,
        extractor: ArchiveExtractor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._console = console
        self._extractor = extractor or ArchiveExtractor()
        self._clock = clock or datetime.now
        self.last_states: tuple[InstallState, ...] = ()

    def run(
        self, archive: Path, resolution: Resolution
    ) -> Result[InstallReceipt, TransactionError]:
        """Drive the archive from VERIFIED to COMMITTED (or ABORTED)."""
        session = _Session(archive=archive, resolution=resolution, target=self._config.dir)
        handlers = self._handlers()

        try:
            while session.state is not InstallState.COMMITTED:
                handler = handlers[session.state]
                outcome = handler(session)
                if isinstance(outcome, Err):
                    return Err(self._abort(session, outcome.error))
                session.advance(_NEXT[session.state])
        finally:
            self.last_states = tuple(session.history)

        return Ok(
            InstallReceipt(
                tag=resolution.record.version.to_tag(),
                target=session.target,
                backup=session.backup,
                verified=resolution.verified,
                files_count=session.files_count,
                permission_failures=tuple(session.permission_failures),
            )
        )

    def _handlers(self) -> dict[InstallState, _Handler]:
        # Keyed by the state being left; each handler performs the work of the next state.
        return {
            InstallState.VERIFIED: self._stage,
            InstallState.STAGED: self._back_up,
            InstallState.BACKED_UP: self._extract,
            InstallState.EXTRACTED: self._validate,
            InstallState.VALIDATED: self._set_permissions,
            InstallState.PERMISSIONED: self._commit,
        }

    def _stage(self, session: _Session) -> Result[None, TransactionError]:
        checked = self._extractor.check(session.archive)
        if isinstance(checked, Err):
            return checked
        self._console.print(f"archive OK ({checked.value} entries)")
        return Ok(None)

    def _back_up(self, session: _Session) -> Result[None, TransactionError]:
        target = session.target
        if not (target.exists() or target.is_symlink()):
            return Ok(None)

        backup = backup_path_for(target, self._clock())
        try:
            target.rename(backup)
        except OSError as e:
            return Err(
                TargetError(path=target, reason=f"could not back up existing installation ({e})")
            )
        session.backup = backup
        self._console.info(f"previous installation moved to {backup}")
        return Ok(None)

    def _extract(self, session: _Session) -> Result[None, TransactionError]:
        session.extraction_started = True
        result = self._extractor.extract(
            session.archive,
            session.target,
            strip_components=self._config.strip_components,
        )
        if isinstance(result, Err):
            return result
        extracted = result.value
        for name in extracted.skipped:
            self._console.warning(f"skipped unsafe archive entry: {name}")
        session.files_count = extracted.files_count
        self._console.print(f"extracted {extracted.files_count} files into {session.target}")
        return Ok(None)

    def _validate(self, session: _Session) -> Result[None, TransactionError]:
        entries = (self._config.marker_file, *self._config.required_entries)
        missing = tuple(e for e in entries if not (session.target / e).is_file())
        if missing:
            return Err(
                CorruptArchiveError(
                    archive=session.archive,
                    reason="archive is missing required entries",
                    missing=missing,
                )
            )

        expected = session.resolution.record.version
        marker_path = session.target / self._config.marker_file
        try:
            marker = marker_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return Err(
                CorruptArchiveError(archive=session.archive, reason=f"unreadable marker file ({e})")
            )
        found = parse_version(marker)
        if isinstance(found, Err) or found.value != expected:
            return Err(
                CorruptArchiveError(
                    archive=session.archive,
                    reason=(
                        f"{self._config.marker_file} reads {marker.strip()!r}, "
                        f"expected {expected.bare()}"
                    ),
                )
            )
        return Ok(None)

    def _set_permissions(self, session: _Session) -> Result[None, TransactionError]:
        for dirname in self._config.script_dirs:
            root = session.target / dirname
            if not root.is_dir():
                continue
            for script in sorted(root.rglob("*.sh")):
                try:
                    mode = script.stat().st_mode
                    script.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
                except OSError as e:
                    rel = script.relative_to(session.target).as_posix()
                    session.permission_failures.append(rel)
                    self._console.warning(f"could not make {rel} executable: {e}")
        return Ok(None)

    def _commit(self, session: _Session) -> Result[None, TransactionError]:
        tag = session.resolution.record.version.to_tag()
        self._console.success(f"installed {tag} into {session.target}")
        return Ok(None)

    def _abort(self, session: _Session, error: TransactionError) -> TransactionError:
        failed_in = session.state
        session.advance(InstallState.ABORTED)

        if session.extraction_started and session.target.is_dir():
            flag = session.target / INCOMPLETE_FLAG
            lines = [
                f"Installation of {session.resolution.record.version.to_tag()} did not complete.",
                f"Reason: {error}",
            ]
            if session.backup is not None:
                lines.append(f"Restore with: {restore_command(session.target, session.backup)}")
            try:
                flag.write_text("\n".join(lines) + "\n", encoding="utf-8")
            except OSError as e:
                self._console.warning(f"could not write {flag}: {e}")

        self._console.error(f"install aborted after {failed_in}")
        if isinstance(error, CorruptArchiveError):
            return replace(
                error,
                backup=session.backup,
                target=session.target if session.extraction_started else None,
            )
        return replace(error, backup=session.backup)
