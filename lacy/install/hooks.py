"""Post-install collaborators.

System provisioning (packages, network, database, services) is owned by the
scripts shipped inside the release. A hook runs against the freshly
committed directory; if it fails the installation itself stays in place.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from lacy.core.result import Err, Result
from lacy.platform.process import ProcessError, run_streaming

__all__ = ["PostInstallHook", "SetupScriptHook", "DEFAULT_SETUP_SCRIPT"]

DEFAULT_SETUP_SCRIPT = "scripts/setup-new-pi.sh"


class PostInstallHook(Protocol):
    @property
    def description(self) -> str: ...

    def run(self, install_dir: Path) -> Result[None, ProcessError]: ...


class SetupScriptHook:
    """Run the bundled setup script against this host."""

    def __init__(
        self, script: str = DEFAULT_SETUP_SCRIPT, args: tuple[str, ...] = ("localhost",)
    ) -> None:
        self.script = script
        self.args = args

    @property
    def description(self) -> str:
        return " ".join([f"./{self.script}", *self.args])

    def run(self, install_dir: Path) -> Result[None, ProcessError]:
        path = install_dir / self.script
        if not path.is_file():
            return Err(
                ProcessError(
                    command=(str(path),),
                    returncode=-1,
                    stdout="",
                    stderr=f"setup script not found: {path}",
                )
            )
        return run_streaming([str(path), *self.args], cwd=install_dir)
