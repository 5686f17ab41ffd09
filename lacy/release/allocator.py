"""Next-version allocation for ``lacy release bump``.

The new version always derives from the current *stable* version, never
from an in-flight beta::

    stable 0.1.6, existing betas 0.1.7b1 and 0.1.7b2
    bump=patch prerelease=True   -> 0.1.7b3 (latest pointer untouched)
    bump=patch prerelease=False  -> 0.1.7   (latest pointer + install entry point updated)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from lacy.core.result import Err, Ok, Result
from lacy.release.errors import PublishError
from lacy.release.version import BumpKind, Version

__all__ = ["ReleaseHistory", "Allocation", "compute_history", "allocate"]

_ZERO = Version(0, 0, 0)


@dataclass(frozen=True, slots=True)
class ReleaseHistory:
    latest_stable: Version | None
    beta_max_by_target: dict[Version, int]
    existing: frozenset[Version]


@dataclass(frozen=True, slots=True)
class Allocation:
    """The minted version and which mutable pointers it may move."""

    version: Version
    update_latest: bool

    @property
    def tag(self) -> str:
        return self.version.to_tag()


def compute_history(versions: Iterable[Version]) -> ReleaseHistory:
    stable: list[Version] = []
    beta_max: dict[Version, int] = {}
    seen: set[Version] = set()

    for v in versions:
        seen.add(v)
        if v.prerelease is None:
            stable.append(v)
            continue
        prev = beta_max.get(v.target)
        beta_max[v.target] = v.prerelease if prev is None else max(prev, v.prerelease)

    return ReleaseHistory(
        latest_stable=max(stable) if stable else None,
        beta_max_by_target=beta_max,
        existing=frozenset(seen),
    )


def allocate(
    *,
    current_stable: Version | None,
    bump: BumpKind,
    prerelease: bool,
    history: ReleaseHistory,
) -> Result[Allocation, PublishError]:
    """Compute the next version.

    Args:
        current_stable: Version in the marker file (or newest stable tag);
            None for a repository that has never released.
        bump: Which component to increment.
        prerelease: Mint the next beta of the bumped target instead of the
            stable target itself.
        history: Versions already tagged or published.

    Returns:
        Ok(Allocation), or Err(PublishError) if the version already exists
        (e.g. a stable release of the target has already shipped).
    """
    base = current_stable or _ZERO
    if base.is_prerelease:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"current stable version is a prerelease: {base.to_tag()}",
                hint="Set the VERSION marker to the last stable release.",
            )
        )

    target = base.bump(bump)
    if prerelease:
        n = history.beta_max_by_target.get(target, 0)
        version = target.with_prerelease(n + 1)
    else:
        version = target

    if version in history.existing:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"version already exists: {version.to_tag()}",
                hint="Pick a larger bump kind.",
            )
        )
    if target in history.existing and prerelease:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"{target.to_tag()} is already released; a beta of it would sort below it",
                hint="Pick a larger bump kind.",
            )
        )

    return Ok(Allocation(version=version, update_latest=not prerelease))
