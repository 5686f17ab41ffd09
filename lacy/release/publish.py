"""Publish side: version bump, packaging and metadata publication.

``bump_version`` mints the next version (see :mod:`lacy.release.allocator`),
rewrites the VERSION marker, commits it and tags the commit.
``package_release`` builds ``<product>-<version>.tar.gz`` from the repository
layout. ``publish_artifact`` writes the immutable record and, for stable
releases only, moves the latest pointer and refreshes the generic install
entry point.
"""

from __future__ import annotations

import gzip
import os
import re
import shutil
import tarfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.platform.files import atomic_write_text
from lacy.release.allocator import Allocation, allocate, compute_history
from lacy.release.errors import PublishError
from lacy.release.model import LatestPointer, ReleaseRecord
from lacy.release.store import DirectoryMetadataStore, record_filename
from lacy.release.version import BumpKind, Version, parse_tag, parse_version
from lacy.tools.checksum import sha256_file

if TYPE_CHECKING:
    from collections.abc import Callable

    from lacy.core.config import InstallerConfig
    from lacy.output.console import ConsoleProtocol
    from lacy.release.git import GitRepository

__all__ = [
    "PublishReport",
    "read_marker_version",
    "bump_version",
    "package_release",
    "publish_artifact",
]


@dataclass(frozen=True, slots=True)
class PublishReport:
    record: ReleaseRecord
    written: tuple[Path, ...]
    latest_updated: bool


def read_marker_version(repo_root: Path, marker_file: str) -> Result[Version, PublishError]:
    path = repo_root / marker_file
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"version marker not found: {path}",
                hint=f"Create {marker_file} containing the current version (e.g. 0.1.0).",
            )
        )
    except OSError as e:
        return Err(PublishError(kind="io_failed", message=f"failed to read {path}: {e}"))

    parsed = parse_version(text)
    if isinstance(parsed, Err):
        return Err(PublishError(kind="invalid_input", message=f"{path}: {parsed.error}"))
    return Ok(parsed.value)


def _restore_marker(
    git: GitRepository, marker_path: Path, original: str, console: ConsoleProtocol
) -> None:
    """Undo the marker edit after a failed commit (index and working tree)."""
    if isinstance(git.restore([marker_path]), Ok):
        return
    try:
        atomic_write_text(marker_path, original)
    except OSError as e:
        console.warning(f"could not restore {marker_path.name}: {e}")


def bump_version(
    *,
    repo_root: Path,
    config: InstallerConfig,
    git: GitRepository,
    store: DirectoryMetadataStore | None,
    bump: BumpKind,
    prerelease: bool,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[Allocation, PublishError]:
    """Allocate the next version, commit the marker and tag it."""
    marker = read_marker_version(repo_root, config.install.marker_file)
    if isinstance(marker, Err):
        return marker

    tags = git.tags()
    if isinstance(tags, Err):
        return Err(
            PublishError(
                kind="git_failed", message=f"git {tags.error.command}: {tags.error.message}"
            )
        )

    known: list[Version] = []
    for tag in tags.value:
        parsed = parse_tag(tag)
        if isinstance(parsed, Ok):
            known.append(parsed.value)
    if store is not None:
        known.extend(store.versions())

    history = compute_history(known)
    current = history.latest_stable
    if current is None and not marker.value.is_prerelease:
        current = marker.value

    allocation = allocate(
        current_stable=current,
        bump=bump,
        prerelease=prerelease,
        history=history,
    )
    if isinstance(allocation, Err):
        return allocation

    new = allocation.value
    base = (current or Version(0, 0, 0)).to_tag()
    kind = "prerelease" if prerelease else "stable"
    console.info(f"{base} -> {new.tag} ({bump}, {kind})")
    if dry_run:
        return allocation

    if not git.is_clean():
        return Err(
            PublishError(
                kind="invalid_input",
                message="working tree has uncommitted changes",
                hint="Commit or stash them before bumping the version.",
            )
        )

    marker_path = repo_root / config.install.marker_file
    try:
        original = marker_path.read_text(encoding="utf-8")
        atomic_write_text(marker_path, new.version.bare() + "\n")
    except OSError as e:
        return Err(PublishError(kind="io_failed", message=f"failed to write {marker_path}: {e}"))

    message = f"Release {new.tag}"
    committed = git.commit([marker_path], message)
    if isinstance(committed, Err):
        _restore_marker(git, marker_path, original, console)
        return Err(PublishError(kind="git_failed", message=committed.error.message))
    tagged = git.create_tag(new.tag, message)
    if isinstance(tagged, Err):
        # The marker commit is in place and the tree is clean; only the tag is missing.
        return Err(
            PublishError(
                kind="git_failed",
                message=tagged.error.message,
                hint=f"Tag the release commit by hand: git tag -a {new.tag} -m '{message}'",
            )
        )

    console.success(f"committed {config.install.marker_file} and tagged {new.tag}")
    return allocation


def _collect(repo_root: Path, entry: str) -> list[Path]:
    path = repo_root / entry
    if path.is_file():
        return [path]
    if path.is_dir():
        return [p for p in sorted(path.rglob("*")) if p.is_file()]
    return []


def _normalize(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info


def package_release(
    *,
    repo_root: Path,
    config: InstallerConfig,
    out_dir: Path,
    console: ConsoleProtocol,
) -> Result[Path, PublishError]:
    """Build the release tarball for the version in the marker file.

    Members are added in sorted order with owner information stripped and a
    zero gzip timestamp, so the same tree produces the same bytes.
    """
    version = read_marker_version(repo_root, config.install.marker_file)
    if isinstance(version, Err):
        return version

    missing = [e for e in config.install.required_entries if not (repo_root / e).is_file()]
    if missing:
        return Err(
            PublishError(
                kind="artifact_missing",
                message=f"required file(s) missing: {', '.join(missing)}",
                hint="The installer rejects archives without them.",
            )
        )

    files = [repo_root / config.install.marker_file]
    for entry in config.publish.layout:
        found = _collect(repo_root, entry)
        if not found:
            console.warning(f"layout entry not found, skipping: {entry}")
        files.extend(found)

    out = out_dir / config.artifact_name(version.value.bare())
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        with (
            out.open("wb") as raw,
            gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz,
            tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar,
        ):
            for path in files:
                arcname = path.relative_to(repo_root).as_posix()
                tar.add(path, arcname=arcname, recursive=False, filter=_normalize)
    except OSError as e:
        out.unlink(missing_ok=True)
        return Err(PublishError(kind="io_failed", message=f"failed to write {out}: {e}"))

    console.success(f"packaged {len(files)} files into {out}")
    return Ok(out)


def _version_from_artifact(
    config: InstallerConfig, artifact: Path
) -> Result[Version, PublishError]:
    pattern = re.compile(rf"^{re.escape(config.product.name)}-(.+)\.tar\.gz$")
    m = pattern.match(artifact.name)
    if m is None:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"unexpected artifact name: {artifact.name}",
                hint=f"Expected {config.artifact_name('<version>')}",
            )
        )
    bad = PublishError(
        kind="invalid_input", message=f"bad version in artifact name: {artifact.name}"
    )
    if m.group(1).startswith("v"):
        return Err(bad)
    parsed = parse_version(m.group(1))
    if isinstance(parsed, Err):
        return Err(bad)
    return Ok(parsed.value)


def _immutable(message: str) -> PublishError:
    return PublishError(
        kind="record_exists",
        message=message,
        hint="Published artifacts are immutable; allocate a new version.",
    )


def _stage_artifact(
    artifact: Path, store: DirectoryMetadataStore, digest: str
) -> Result[Path | None, PublishError]:
    """Copy ``artifact`` into the store; an identical copy already there is kept."""
    staged = store.root / artifact.name
    if staged.resolve() == artifact.resolve():
        return Ok(None)
    if staged.exists():
        if sha256_file(staged) != digest:
            return Err(_immutable(f"a different artifact is already staged: {staged}"))
        return Ok(None)
    try:
        shutil.copy2(artifact, staged)
    except OSError as e:
        staged.unlink(missing_ok=True)
        return Err(PublishError(kind="io_failed", message=f"failed to copy artifact: {e}"))
    return Ok(staged)


def _store_record(
    store: DirectoryMetadataStore, record: ReleaseRecord
) -> Result[tuple[ReleaseRecord, Path | None], PublishError]:
    """Create the record, or reuse an existing one describing the same bytes."""
    existing = store.record(record.version)
    if isinstance(existing, Ok):
        if existing.value.sha256 != record.sha256:
            return Err(
                _immutable(f"release record for {record.version.bare()} has a different digest")
            )
        return Ok((existing.value, None))
    if existing.error.malformed:
        return Err(_immutable(str(existing.error)))

    created = store.publish_record(record)
    if isinstance(created, Err):
        return created
    return Ok((record, created.value))


def publish_artifact(
    *,
    artifact: Path,
    repo_root: Path,
    config: InstallerConfig,
    store: DirectoryMetadataStore,
    console: ConsoleProtocol,
    now: Callable[[], datetime] | None = None,
) -> Result[PublishReport, PublishError]:
    """Stage an artifact and its metadata in the store directory.

    Every input is checked before the first write. The record is created
    once and never replaced; re-running with the same artifact reuses what
    is already staged, so an interrupted stable publish can be completed.
    For a stable release the install entry point is then refreshed and
    ``latest.json`` is moved last, so a pointer never names a record that
    is not in place.
    """
    if not artifact.is_file():
        return Err(
            PublishError(kind="artifact_missing", message=f"artifact not found: {artifact}")
        )

    version = _version_from_artifact(config, artifact)
    if isinstance(version, Err):
        return version
    v = version.value

    script_src = repo_root / config.publish.install_script
    if not v.is_prerelease and not script_src.is_file():
        return Err(
            PublishError(
                kind="artifact_missing",
                message=f"install entry point not found: {script_src}",
                hint="Stable releases refresh the generic install script.",
            )
        )

    try:
        store.root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return Err(PublishError(kind="io_failed", message=f"cannot create {store.root}: {e}"))
    if not os.access(store.root, os.W_OK):
        return Err(PublishError(kind="io_failed", message=f"not writable: {store.root}"))

    base_url = config.distribution.base_url
    clock = now or (lambda: datetime.now(UTC))
    digest = sha256_file(artifact)
    candidate = ReleaseRecord(
        version=v,
        artifact_url=f"{base_url}/{artifact.name}",
        sha256=digest,
        release_timestamp=clock(),
        is_prerelease=v.is_prerelease,
        size_bytes=artifact.stat().st_size,
    )

    written: list[Path] = []
    staged = _stage_artifact(artifact, store, digest)
    if isinstance(staged, Err):
        return staged
    if staged.value is not None:
        written.append(staged.value)

    stored = _store_record(store, candidate)
    if isinstance(stored, Err):
        return stored
    record, record_path = stored.value
    if record_path is None:
        console.info(f"{record_filename(v)} already published; reusing it")
    else:
        written.append(record_path)
        console.success(f"wrote {record_path.name}")

    if v.is_prerelease:
        console.info(f"{v.to_tag()} is a prerelease; latest pointer left unchanged")
        return Ok(PublishReport(record=record, written=tuple(written), latest_updated=False))

    script_dest = store.root / script_src.name
    try:
        shutil.copyfile(script_src, script_dest)
    except OSError as e:
        return Err(
            PublishError(
                kind="io_failed",
                message=f"failed to stage install entry point {script_src}: {e}",
            )
        )
    written.append(script_dest)

    pointer = LatestPointer(record=record, install_script_url=f"{base_url}/{script_dest.name}")
    latest = store.write_latest(pointer)
    if isinstance(latest, Err):
        return latest
    written.append(latest.value)
    console.success(f"latest -> {v.to_tag()}")

    return Ok(PublishReport(record=record, written=tuple(written), latest_updated=True))
