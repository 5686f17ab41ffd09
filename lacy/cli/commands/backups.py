"""Backups command - list superseded installations."""

from __future__ import annotations

from lacy.cli.context import build_context
from lacy.install.service import list_backups
from lacy.output.console import Style


def backups() -> None:
    """List timestamped backups of the install directory, newest first."""
    ctx = build_context()
    found = list_backups(ctx.config.install.dir)
    if not found:
        ctx.console.print(f"no backups of {ctx.config.install.dir}", Style.DIM)
        return
    for path in found:
        ctx.console.print(str(path))
