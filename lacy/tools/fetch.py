"""Artifact retrieval into a private scratch directory.

The whole install operation runs inside :func:`staging_area`; whatever is
downloaded there disappears when the ``with`` block exits, on success,
failure or exception alike.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import FetchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from lacy.tools.http import HttpClient

__all__ = ["ArchiveFetcher", "FetchedArchive", "staging_area"]


@contextmanager
def staging_area(prefix: str = "lacy-") -> Iterator[Path]:
    """Yield a fresh 0700 temporary directory, removed on exit."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@dataclass(frozen=True, slots=True)
class FetchedArchive:
    path: Path
    url: str
    size: int


class ArchiveFetcher:
    def __init__(self, http: HttpClient) -> None:
        self._http = http

    @staticmethod
    def filename_for(url: str) -> str:
        return Path(urlparse(url).path).name or "artifact.tar.gz"

    def fetch(
        self,
        url: str,
        dest_dir: Path,
        *,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[FetchedArchive, FetchError]:
        """Download ``url`` into ``dest_dir``.

        Returns:
            Ok(FetchedArchive), or Err(FetchError) with ``kind="not_found"``
            for HTTP 404/410 and ``kind="network"`` for everything else. A
            partial file is never left behind.
        """
        dest = dest_dir / self.filename_for(url)
        result = self._http.download(url, dest, progress=progress)
        if isinstance(result, Err):
            dest.unlink(missing_ok=True)
            error = result.error
            return Err(
                FetchError(
                    url=url,
                    kind="not_found" if error.is_not_found else "network",
                    message=error.message,
                    status=error.status,
                )
            )

        return Ok(FetchedArchive(path=dest, url=url, size=dest.stat().st_size))
