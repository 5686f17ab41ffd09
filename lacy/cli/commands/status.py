"""Status command - what is installed here and what is available."""

from __future__ import annotations

from lacy.cli.context import build_context
from lacy.core.result import Err
from lacy.install.service import list_backups, read_installed_version
from lacy.output.console import Style
from lacy.release.store import HttpMetadataStore


def status() -> None:
    """Show the installed version, the latest stable release and backups."""
    ctx = build_context()
    console = ctx.console
    config = ctx.config

    console.header("LacyLights RPi")
    installed = read_installed_version(config.install)
    if installed is None:
        if config.install.dir.exists():
            console.warning(f"{config.install.dir} has no readable {config.install.marker_file}")
        else:
            console.print(f"not installed ({config.install.dir})", Style.DIM)
    else:
        console.print(f"installed: {installed.to_tag()} ({config.install.dir})")

    latest = HttpMetadataStore(config.distribution.base_url, ctx.http).latest()
    if isinstance(latest, Err):
        console.warning(str(latest.error))
    else:
        available = latest.value.record.version
        console.print(f"latest stable: {available.to_tag()}")
        if installed is not None and installed < available:
            console.info(f"update available: lacy install {available.to_tag()}")

    backups = list_backups(config.install.dir)
    console.print(f"backups: {len(backups)}", Style.DIM)
