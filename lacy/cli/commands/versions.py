"""Versions command - list published releases."""

from __future__ import annotations

import typer

from lacy.cli.context import build_context
from lacy.core.result import Err
from lacy.install.service import read_installed_version
from lacy.output.console import Style
from lacy.output.errors import install_error_exit_code, print_install_error
from lacy.release.github import GitHubReleaseStore


def versions(
    prereleases: bool = typer.Option(False, "--prereleases", help="Include beta releases"),
) -> None:
    """List published releases, newest first."""
    ctx = build_context()
    console = ctx.console
    store = GitHubReleaseStore(ctx.config, ctx.http)

    result = store.list_records(include_prereleases=prereleases)
    if isinstance(result, Err):
        print_install_error(result.error, console)
        raise typer.Exit(code=install_error_exit_code(result.error))

    records = result.value
    if not records:
        console.print("no releases published", Style.DIM)
        return

    installed = read_installed_version(ctx.config.install)
    for record in records:
        line = record.version.to_tag()
        if record.release_timestamp is not None:
            line += f"  {record.release_timestamp:%Y-%m-%d}"
        if record.is_prerelease:
            line += "  (beta)"
        if record.version == installed:
            console.print(f"{line}  <- installed", Style.SUCCESS)
        else:
            console.print(line)
