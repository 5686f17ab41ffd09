"""Release archive extraction.

Only regular files are written. Absolute paths, ``..`` components, links and
device entries are skipped, and every file must resolve inside the target
directory. Unlike a tool cache, the target is never cleared here: the
install transaction guarantees it does not exist yet.
"""

from __future__ import annotations

import contextlib
import gzip
import os
import shutil
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import CorruptArchiveError, TargetError

__all__ = ["ArchiveExtractor", "ExtractResult"]


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Result of an extraction.

    Attributes:
        target: Directory the archive was unpacked into
        files_count: Regular files written
        skipped: Member names that were refused as unsafe
    """

    target: Path
    files_count: int
    skipped: tuple[str, ...] = ()


class ArchiveExtractor:
    def check(self, archive: Path) -> Result[int, CorruptArchiveError]:
        """Open ``archive`` as a gzip tarball and walk its index.

        Returns the number of members. Reads nothing onto disk.
        """
        try:
            with tarfile.open(archive, "r:gz") as tar:
                count = len(tar.getmembers())
        except (tarfile.TarError, EOFError, OSError) as e:
            return Err(CorruptArchiveError(archive=archive, reason=f"not a gzip tarball ({e})"))
        if count == 0:
            return Err(CorruptArchiveError(archive=archive, reason="archive is empty"))
        return Ok(count)

    def _safe_relative_path(self, member_name: str, strip_components: int) -> Path | None:
        """Return a sanitized relative extraction path, or None if unsafe."""
        normalized = member_name.replace("\\", "/")
        if normalized.startswith("/"):
            return None

        parts = PurePosixPath(normalized).parts
        if len(parts) <= strip_components:
            return None

        kept = parts[strip_components:]
        if any(part in {"", ".", ".."} for part in kept):
            return None
        return Path(*kept)

    def _is_within_root(self, root: Path, target: Path) -> bool:
        try:
            return target.resolve().is_relative_to(root)
        except OSError:
            return False

    def extract(
        self,
        archive: Path,
        target: Path,
        *,
        strip_components: int = 0,
    ) -> Result[ExtractResult, CorruptArchiveError | TargetError]:
        """Unpack ``archive`` into ``target``, which is created here.

        A damaged archive is a ``CorruptArchiveError``; failing to create or
        write the target (permissions, disk space) is a ``TargetError``.
        """
        try:
            target.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            return Err(TargetError(path=target, reason="target already exists"))
        except OSError as e:
            return Err(TargetError(path=target, reason=f"cannot create install directory ({e})"))

        try:
            root = target.resolve()
            files_count = 0
            skipped: list[str] = []

            with tarfile.open(archive, "r:gz") as tar:
                for member in tar:
                    if member.isdir():
                        continue
                    if not member.isreg():
                        skipped.append(member.name)
                        continue

                    rel_path = self._safe_relative_path(member.name, strip_components)
                    if rel_path is None:
                        skipped.append(member.name)
                        continue

                    full_path = target / rel_path
                    if not self._is_within_root(root, full_path):
                        skipped.append(member.name)
                        continue

                    src = tar.extractfile(member)
                    if src is None:
                        skipped.append(member.name)
                        continue

                    full_path.parent.mkdir(parents=True, exist_ok=True)
                    with src, open(full_path, "wb") as dst:
                        shutil.copyfileobj(src, dst)

                    mode = member.mode & 0o777
                    if mode:
                        with contextlib.suppress(OSError):
                            os.chmod(full_path, mode)

                    files_count += 1

        except (tarfile.TarError, EOFError, gzip.BadGzipFile, zlib.error) as e:
            return Err(CorruptArchiveError(archive=archive, reason=f"extraction failed ({e})"))
        except (FileExistsError, NotADirectoryError, IsADirectoryError) as e:
            # A member path collides with another member (file vs directory).
            return Err(CorruptArchiveError(archive=archive, reason=f"conflicting entries ({e})"))
        except OSError as e:
            return Err(TargetError(path=target, reason=f"cannot write install directory ({e})"))

        return Ok(ExtractResult(target=target, files_count=files_count, skipped=tuple(skipped)))
