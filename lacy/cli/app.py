from __future__ import annotations

import os
from pathlib import Path

import typer

from lacy import __version__
from lacy.cli.commands.backups import backups
from lacy.cli.commands.install import install
from lacy.cli.commands.release import release_app
from lacy.cli.commands.status import status
from lacy.cli.commands.versions import versions
from lacy.core.config import ENV_CONFIG
from lacy.core.errors import ErrorCode

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


# Commands
app.command()(install)
app.command()(status)
app.command()(versions)
app.command()(backups)

# Sub-apps
app.add_typer(release_app, name="release")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: ~/.config/lacy/config.toml)",
    ),
) -> None:
    """LacyLights RPi release installer."""
    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: config file not found: {path}", err=True)
            raise typer.Exit(code=int(ErrorCode.FAILURE))
        os.environ[ENV_CONFIG] = str(path)


def main() -> None:
    app()
