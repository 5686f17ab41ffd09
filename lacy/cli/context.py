from __future__ import annotations

from dataclasses import dataclass

import typer

from lacy.core.config import InstallerConfig, load_config
from lacy.core.errors import ErrorCode
from lacy.core.result import Err
from lacy.output.console import ConsoleProtocol, RichConsole
from lacy.output.errors import print_config_error
from lacy.tools.http import HttpClient, RealHttpClient


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: InstallerConfig
    console: ConsoleProtocol
    http: HttpClient


def build_context() -> CLIContext:
    console = RichConsole()
    config_result = load_config()
    if isinstance(config_result, Err):
        print_config_error(config_result.error, console)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    config = config_result.value
    return CLIContext(
        config=config,
        console=console,
        http=RealHttpClient(timeout=config.distribution.timeout),
    )
