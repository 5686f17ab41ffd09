"""Delegate an install to another host over ssh.

The selector is validated here first so a typo fails fast instead of after
an ssh round trip. The remote command is a template from the ``[remote]``
config table; it runs on the target host, whose exit status becomes ours.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import TYPE_CHECKING

from lacy.core.result import Err, Ok, Result
from lacy.platform.process import ProcessError, run_streaming
from lacy.release.errors import ParseError
from lacy.release.model import Explicit, Latest, ResolveRequest
from lacy.release.version import parse_tag

if TYPE_CHECKING:
    from lacy.core.config import RemoteConfig
    from lacy.output.console import ConsoleProtocol

__all__ = ["RemoteInstaller", "is_valid_host", "remote_command", "validate_selector"]


def validate_selector(request: ResolveRequest) -> Result[str, ParseError]:
    """Canonical selector text to forward (``latest`` or a normalized tag)."""
    match request:
        case Latest():
            return Ok("latest")
        case Explicit(tag=tag):
            parsed = parse_tag(tag)
            if isinstance(parsed, Err):
                return parsed
            return Ok(parsed.value.to_tag())


def remote_command(config: RemoteConfig, host: str, selector: str) -> list[str]:
    command = config.command.replace("{version}", shlex.quote(selector))
    return [*shlex.split(config.ssh), host, command]


class RemoteInstaller:
    def __init__(self, config: RemoteConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console

    def install(self, host: str, selector: str) -> Result[None, ProcessError]:
        cmd = remote_command(self._config, host, selector)
        self._console.info(f"running on {host}: {cmd[-1]}")
        return run_streaming(cmd, cwd=Path.cwd())


def is_valid_host(host: str) -> bool:
    """Reject empty hosts, whitespace and anything ssh would read as an option."""
    return bool(host) and not host.startswith("-") and not any(c.isspace() for c in host)
