"""Version tags: ``vMAJOR.MINOR.PATCH`` (stable) and ``vMAJOR.MINOR.PATCHbN`` (beta).

Ordering::

    v0.1.6 < v0.1.7b1 < v0.1.7b2 < v0.1.7 < v0.1.8b1

A beta is scoped to the stable version it leads up to: it sorts after every
version below its target and before the target itself. Numbers are always
read as decimal, so ``b01`` and ``b1`` are the same version and formatting
produces the canonical unpadded spelling.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import ParseError

__all__ = [
    "BumpKind",
    "BUMP_KINDS",
    "Version",
    "parse_tag",
    "parse_version",
    "compare",
]

BumpKind = Literal["patch", "minor", "major"]
BUMP_KINDS: tuple[BumpKind, ...] = ("patch", "minor", "major")

_TAG_RE = re.compile(r"^v([0-9]+)\.([0-9]+)\.([0-9]+)(?:b([0-9]+))?$")
_BARE_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)(?:b([0-9]+))?$")


@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: int | None = None

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def target(self) -> Version:
        """The stable version this one is (or leads up to)."""
        return Version(self.major, self.minor, self.patch)

    def to_tag(self) -> str:
        return f"v{self.bare()}"

    def bare(self) -> str:
        """Version without the ``v`` prefix, as used in metadata and artifact names."""
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease is None:
            return core
        return f"{core}b{self.prerelease}"

    def bump(self, kind: BumpKind) -> Version:
        match kind:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def with_prerelease(self, n: int) -> Version:
        if n < 1:
            raise ValueError(f"prerelease number must be >= 1, got {n}")
        return Version(self.major, self.minor, self.patch, n)

    def sort_key(self) -> tuple[int, int, int, int, int]:
        # Stable sorts after every beta of the same target.
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, 0)
        return (self.major, self.minor, self.patch, 0, self.prerelease)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        return self.to_tag()


def _from_match(m: re.Match[str]) -> Version:
    beta = m.group(4)
    return Version(
        int(m.group(1)),
        int(m.group(2)),
        int(m.group(3)),
        int(beta) if beta is not None else None,
    )


def parse_tag(tag: str) -> Result[Version, ParseError]:
    """Parse a ``v``-prefixed tag as typed by an operator or stored in git."""
    m = _TAG_RE.match(tag.strip())
    if m is None:
        return Err(ParseError(text=tag, expected="vMAJOR.MINOR.PATCH or vMAJOR.MINOR.PATCHbN"))
    version = _from_match(m)
    if version.prerelease == 0:
        return Err(ParseError(text=tag, expected="beta number >= 1 (e.g. v1.2.3b1)"))
    return Ok(version)


def parse_version(text: str) -> Result[Version, ParseError]:
    """Parse the bare form (``0.1.7b1``) found in metadata and marker files.

    A leading ``v`` is tolerated so marker files written by older tooling
    still compare equal.
    """
    stripped = text.strip()
    if stripped.startswith("v"):
        return parse_tag(stripped)
    m = _BARE_RE.match(stripped)
    if m is None:
        return Err(ParseError(text=text, expected="MAJOR.MINOR.PATCH or MAJOR.MINOR.PATCHbN"))
    version = _from_match(m)
    if version.prerelease == 0:
        return Err(ParseError(text=text, expected="beta number >= 1 (e.g. 1.2.3b1)"))
    return Ok(version)


def compare(a: Version, b: Version) -> int:
    """Three-way comparison: -1, 0 or 1."""
    ka, kb = a.sort_key(), b.sort_key()
    return (ka > kb) - (ka < kb)
