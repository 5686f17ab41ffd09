"""Release commands - version bump, packaging and metadata publication."""

from __future__ import annotations

from pathlib import Path
from typing import cast

import typer

from lacy.cli.commands._helpers import exit_failure
from lacy.cli.context import build_context
from lacy.core.result import Err
from lacy.output.errors import print_publish_error
from lacy.release.git import GitRepository
from lacy.release.publish import bump_version, package_release, publish_artifact
from lacy.release.store import DirectoryMetadataStore
from lacy.release.version import BUMP_KINDS, BumpKind

release_app = typer.Typer(add_completion=False, no_args_is_help=True)

_REPO_OPTION = typer.Option(Path("."), "--repo", help="Repository root")


def _metadata_store(repo: Path, metadata_dir: str) -> DirectoryMetadataStore:
    return DirectoryMetadataStore(repo / metadata_dir)


@release_app.command("bump")
def bump_cmd(
    bump: str = typer.Option("patch", "--bump", help="major/minor/patch"),
    prerelease: bool = typer.Option(
        False, "--prerelease", help="Mint the next beta instead of a stable release"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the new version only"),
    repo: Path = _REPO_OPTION,
) -> None:
    """Allocate the next version, commit the VERSION marker and tag it."""
    ctx = build_context()
    if bump not in BUMP_KINDS:
        ctx.console.error(f"invalid --bump {bump!r} (expected one of: {', '.join(BUMP_KINDS)})")
        exit_failure()

    root = repo.resolve()
    git = GitRepository(root)
    if not git.exists():
        ctx.console.error(f"not a git repository: {root}")
        exit_failure()

    result = bump_version(
        repo_root=root,
        config=ctx.config,
        git=git,
        store=_metadata_store(root, ctx.config.publish.metadata_dir),
        bump=cast(BumpKind, bump),
        prerelease=prerelease,
        console=ctx.console,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        print_publish_error(result.error, ctx.console)
        exit_failure()

    allocation = result.value
    typer.echo(allocation.tag)
    if allocation.update_latest:
        ctx.console.info("stable release: publishing will move the latest pointer")
    else:
        ctx.console.info("prerelease: the latest pointer will not move")


@release_app.command("package")
def package_cmd(
    out: Path = typer.Option(Path("dist"), "--out", help="Output directory"),
    repo: Path = _REPO_OPTION,
) -> None:
    """Build <product>-<version>.tar.gz from the repository layout."""
    ctx = build_context()
    root = repo.resolve()
    result = package_release(
        repo_root=root,
        config=ctx.config,
        out_dir=root / out,
        console=ctx.console,
    )
    if isinstance(result, Err):
        print_publish_error(result.error, ctx.console)
        exit_failure()


@release_app.command("publish")
def publish_cmd(
    artifact: Path = typer.Option(..., "--artifact", help="Release tarball to publish"),
    repo: Path = _REPO_OPTION,
) -> None:
    """Stage the artifact and its metadata for upload to the release server."""
    ctx = build_context()
    root = repo.resolve()
    store = _metadata_store(root, ctx.config.publish.metadata_dir)
    result = publish_artifact(
        artifact=artifact.resolve(),
        repo_root=root,
        config=ctx.config,
        store=store,
        console=ctx.console,
    )
    if isinstance(result, Err):
        print_publish_error(result.error, ctx.console)
        exit_failure()

    for path in result.value.written:
        ctx.console.print(str(path))
