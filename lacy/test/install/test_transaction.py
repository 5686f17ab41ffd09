"""Tests for lacy.install.transaction module."""

from __future__ import annotations

import errno
import io
import subprocess
import tarfile
from datetime import UTC, datetime
from pathlib import Path

import pytest

from lacy.core.config import InstallConfig
from lacy.core.result import Err, Ok
from lacy.install import extract
from lacy.install.service import list_backups
from lacy.install.transaction import (
    INCOMPLETE_FLAG,
    InstallState,
    InstallTransaction,
    backup_path_for,
    restore_command,
)
from lacy.output.console import MockConsole
from lacy.release.errors import CorruptArchiveError, TargetError
from lacy.release.model import ReleaseRecord, Resolution
from lacy.release.version import Version

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0)


def resolution_for(version: Version) -> Resolution:
    record = ReleaseRecord(
        version=version,
        artifact_url=f"https://dist.example/lacylights-rpi-{version.bare()}.tar.gz",
        sha256="0" * 64,
        release_timestamp=datetime(2025, 6, 1, tzinfo=UTC),
        is_prerelease=version.is_prerelease,
        size_bytes=1,
    )
    return Resolution(record=record, verified=True, source="test")


def release_archive(
    path: Path, marker: str, *, with_setup: bool = True, extra: dict[str, bytes] | None = None
) -> Path:
    files = {"VERSION": f"{marker}\n".encode(), "README.md": b"# LacyLights\n"}
    if with_setup:
        files["scripts/setup-new-pi.sh"] = b"#!/bin/bash\necho setup\n"
        files["utils/check.sh"] = b"#!/bin/bash\n"
    files.update(extra or {})
    with tarfile.open(path, "w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def install_config(tmp_path: Path) -> InstallConfig:
    return InstallConfig(dir=tmp_path / "lacylights-setup")


def transaction(config: InstallConfig, console: MockConsole | None = None) -> InstallTransaction:
    return InstallTransaction(config, console or MockConsole(), clock=lambda: FIXED_NOW)


class TestBackupPath:
    def test_timestamped(self, tmp_path: Path) -> None:
        target = tmp_path / "lacylights-setup"
        path = backup_path_for(target, FIXED_NOW)
        assert path.name == "lacylights-setup.backup.20250601_120000_000000"

    def test_collision_gets_suffix(self, tmp_path: Path) -> None:
        target = tmp_path / "lacylights-setup"
        backup_path_for(target, FIXED_NOW).mkdir()
        path = backup_path_for(target, FIXED_NOW)
        assert path.name == "lacylights-setup.backup.20250601_120000_000000.1"


class TestInstallTransaction:
    def test_fresh_install(self, tmp_path: Path, install_config: InstallConfig) -> None:
        archive = release_archive(tmp_path / "a.tar.gz", "0.1.7")
        txn = transaction(install_config)

        result = txn.run(archive, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Ok)
        receipt = result.value
        assert receipt.tag == "v0.1.7"
        assert receipt.backup is None
        assert receipt.files_count == 4
        assert txn.last_states == (
            InstallState.FETCHED,
            InstallState.VERIFIED,
            InstallState.STAGED,
            InstallState.BACKED_UP,
            InstallState.EXTRACTED,
            InstallState.VALIDATED,
            InstallState.PERMISSIONED,
            InstallState.COMMITTED,
        )
        target = install_config.dir
        assert (target / "scripts" / "setup-new-pi.sh").stat().st_mode & 0o111 == 0o111
        assert (target / "utils" / "check.sh").stat().st_mode & 0o111 == 0o111
        assert not (target / "README.md").stat().st_mode & 0o100

    def test_repeated_installs_keep_every_backup(
        self, tmp_path: Path, install_config: InstallConfig
    ) -> None:
        """Two upgrades leave two backups next to the current install."""
        first = release_archive(tmp_path / "1.tar.gz", "0.1.6")
        second = release_archive(tmp_path / "2.tar.gz", "0.1.7b1")
        third = release_archive(tmp_path / "3.tar.gz", "0.1.7")

        assert isinstance(
            transaction(install_config).run(first, resolution_for(Version(0, 1, 6))), Ok
        )
        assert isinstance(
            transaction(install_config).run(second, resolution_for(Version(0, 1, 7, 1))), Ok
        )
        result = transaction(install_config).run(third, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Ok)
        assert result.value.backup is not None
        assert result.value.backup.name.endswith(".1")
        backups = list_backups(install_config.dir)
        assert len(backups) == 2
        markers = sorted((b / "VERSION").read_text(encoding="utf-8").strip() for b in backups)
        assert markers == ["0.1.6", "0.1.7b1"]
        assert (install_config.dir / "VERSION").read_text(encoding="utf-8") == "0.1.7\n"

    def test_corrupt_archive_leaves_install_untouched(
        self, tmp_path: Path, install_config: InstallConfig
    ) -> None:
        install_config.dir.mkdir()
        (install_config.dir / "VERSION").write_text("0.1.6\n", encoding="utf-8")
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"not gzip")
        console = MockConsole()
        txn = transaction(install_config, console)

        result = txn.run(archive, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Err)
        assert isinstance(result.error, CorruptArchiveError)
        assert result.error.backup is None
        assert result.error.target is None
        assert txn.last_states[-2:] == (InstallState.VERIFIED, InstallState.ABORTED)
        assert (install_config.dir / "VERSION").read_text(encoding="utf-8") == "0.1.6\n"
        assert list_backups(install_config.dir) == []
        assert console.find("install aborted after verified")

    def test_missing_entries_flag_partial_install(
        self, tmp_path: Path, install_config: InstallConfig
    ) -> None:
        previous = release_archive(tmp_path / "old.tar.gz", "0.1.6")
        assert isinstance(
            transaction(install_config).run(previous, resolution_for(Version(0, 1, 6))), Ok
        )
        broken = release_archive(tmp_path / "new.tar.gz", "0.1.7", with_setup=False)
        txn = transaction(install_config)

        result = txn.run(broken, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Err)
        error = result.error
        assert isinstance(error, CorruptArchiveError)
        assert error.missing == ("scripts/setup-new-pi.sh",)
        assert error.target == install_config.dir
        assert error.backup is not None
        assert txn.last_states[-2:] == (InstallState.EXTRACTED, InstallState.ABORTED)

        flag = install_config.dir / INCOMPLETE_FLAG
        assert flag.exists()
        command = restore_command(install_config.dir, error.backup)
        assert command in flag.read_text(encoding="utf-8")

        subprocess.run(command, shell=True, check=True)
        assert (install_config.dir / "VERSION").read_text(encoding="utf-8") == "0.1.6\n"
        assert not (install_config.dir / INCOMPLETE_FLAG).exists()

    def test_marker_mismatch_is_rejected(
        self, tmp_path: Path, install_config: InstallConfig
    ) -> None:
        archive = release_archive(tmp_path / "a.tar.gz", "0.1.6")

        result = transaction(install_config).run(archive, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Err)
        assert isinstance(result.error, CorruptArchiveError)
        assert "expected 0.1.7" in result.error.reason
        assert (install_config.dir / INCOMPLETE_FLAG).exists()

    def test_unsafe_entries_warned(self, tmp_path: Path, install_config: InstallConfig) -> None:
        archive = release_archive(tmp_path / "a.tar.gz", "0.1.7", extra={"../evil": b"x"})
        console = MockConsole()

        result = transaction(install_config, console).run(archive, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Ok)
        assert any("../evil" in w for w in console.warnings())
        assert not (tmp_path / "evil").exists()

    def test_write_failure_keeps_backup_and_reports_target(
        self, tmp_path: Path, install_config: InstallConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        previous = release_archive(tmp_path / "old.tar.gz", "0.1.6")
        assert isinstance(
            transaction(install_config).run(previous, resolution_for(Version(0, 1, 6))), Ok
        )
        archive = release_archive(tmp_path / "new.tar.gz", "0.1.7")

        def no_space(*args: object, **kwargs: object) -> None:
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(extract.shutil, "copyfileobj", no_space)

        result = transaction(install_config).run(archive, resolution_for(Version(0, 1, 7)))

        assert isinstance(result, Err)
        assert isinstance(result.error, TargetError)
        assert result.error.backup is not None
        assert (result.error.backup / "VERSION").read_text(encoding="utf-8") == "0.1.6\n"
        assert (install_config.dir / INCOMPLETE_FLAG).exists()
