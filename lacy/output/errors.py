"""Error presentation utilities.

Every fatal path ends here: one line saying what failed, then what the
operator can do about it. Exit codes are deliberately coarse (0 or 1).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lacy.core.errors import ErrorCode
from lacy.install.transaction import INCOMPLETE_FLAG, restore_command
from lacy.output.console import Style
from lacy.release.errors import (
    CorruptArchiveError,
    FetchError,
    InstallError,
    IntegrityError,
    MetadataUnavailable,
    ParseError,
    PublishError,
    TargetError,
)

if TYPE_CHECKING:
    from lacy.core.config import ConfigError
    from lacy.output.console import ConsoleProtocol
    from lacy.platform.process import ProcessError

__all__ = [
    "print_install_error",
    "install_error_exit_code",
    "print_publish_error",
    "print_config_error",
    "print_process_error",
]


def _hint(console: ConsoleProtocol, message: str) -> None:
    console.print(f"hint: {message}", Style.DIM)


def print_install_error(error: InstallError, console: ConsoleProtocol) -> None:
    """Print an install failure with remediation advice."""
    match error:
        case ParseError(text=text, expected=expected):
            console.error(f"invalid version {text!r}")
            _hint(console, f"expected {expected}, or 'latest'")
        case MetadataUnavailable(source=source, reason=reason, missing=missing):
            console.error(f"release metadata unavailable: {reason}")
            console.print(f"source: {source}", Style.DIM)
            if missing:
                _hint(console, "the release server has no such record; check the version")
            else:
                _hint(console, "check network access to the release server and retry")
            _hint(console, "use --github-fallback to install latest from GitHub without a checksum")
        case FetchError(kind="not_found", url=url):
            console.error(f"release archive not found: {url}")
            _hint(console, "this version may not exist; run 'lacy versions' to list releases")
        case FetchError(url=url, message=message):
            console.error(f"download failed: {message}")
            console.print(f"url: {url}", Style.DIM)
            _hint(console, "check network connectivity and retry")
        case IntegrityError(check=check, expected=expected, actual=actual):
            console.error(f"{check} mismatch; the downloaded archive was discarded")
            console.print(f"expected: {expected}", Style.DIM)
            console.print(f"actual:   {actual}", Style.DIM)
            _hint(console, "do not retry blindly; report this to the release maintainers")
        case CorruptArchiveError(reason=reason, missing=missing, backup=backup, target=target):
            console.error(f"corrupt release archive: {reason}")
            if missing:
                console.print(f"missing: {', '.join(missing)}", Style.DIM)
            if target is not None:
                console.print(f"partial installation left in {target} ({INCOMPLETE_FLAG})")
            if backup is not None and target is not None:
                console.print(f"previous installation preserved at {backup}")
                _hint(console, f"restore with: {restore_command(target, backup)}")
            elif backup is not None:
                console.print(f"previous installation preserved at {backup}")
            else:
                _hint(console, "the existing installation was not modified")
        case TargetError(path=path, reason=reason, backup=backup):
            console.error(f"{reason}: {path}")
            _hint(console, "check permissions and free space on the install filesystem")
            if backup is not None:
                console.print(f"previous installation preserved at {backup}")
                _hint(console, f"restore with: {restore_command(path, backup)}")


def install_error_exit_code(error: InstallError) -> int:
    """All install failures are fatal; the category is conveyed by the message."""
    return int(ErrorCode.FAILURE)


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        _hint(console, error.hint)


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.path is not None:
        console.print(f"config: {error.path}", Style.DIM)


def print_process_error(error: ProcessError, console: ConsoleProtocol) -> None:
    console.error(str(error))
    detail = error.stderr.strip()
    if detail:
        console.print(detail, Style.DIM)
