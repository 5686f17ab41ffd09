"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from lacy.core.errors import ErrorCode


def exit_failure() -> NoReturn:
    raise typer.Exit(code=int(ErrorCode.FAILURE))
