"""Install command - fetch, verify and apply a release (locally or over ssh)."""

from __future__ import annotations

from pathlib import Path

import typer

from lacy.cli.commands._helpers import exit_failure
from lacy.cli.context import build_context
from lacy.core.result import Err
from lacy.install.hooks import DEFAULT_SETUP_SCRIPT, SetupScriptHook
from lacy.install.remote import RemoteInstaller, is_valid_host, validate_selector
from lacy.install.service import InstallService
from lacy.output.console import ConsoleProtocol, Style
from lacy.output.errors import install_error_exit_code, print_install_error, print_process_error
from lacy.platform.paths import expand_path
from lacy.release.model import parse_selector


def install(
    version: str = typer.Argument("latest", help="'latest' or a tag such as v0.1.7 / v0.1.7b2"),
    host: str | None = typer.Argument(None, help="Install on this ssh host instead of locally"),
    install_dir: str | None = typer.Option(None, "--dir", help="Install directory override"),
    github_fallback: bool = typer.Option(
        False,
        "--github-fallback",
        help="If latest.json is unavailable, use GitHub's latest release (unverified)",
    ),
    setup: bool = typer.Option(
        False, "--setup", help=f"Run ./{DEFAULT_SETUP_SCRIPT} after installing"
    ),
) -> None:
    """Install a LacyLights RPi release."""
    ctx = build_context()
    console = ctx.console
    request = parse_selector(version)

    if host is not None:
        if not is_valid_host(host):
            console.error(f"invalid host: {host!r}")
            exit_failure()
        selector = validate_selector(request)
        if isinstance(selector, Err):
            print_install_error(selector.error, console)
            raise typer.Exit(code=install_error_exit_code(selector.error))
        if install_dir is not None or setup or github_fallback:
            console.warning("--dir, --setup and --github-fallback apply to local installs only")

        console.header("LacyLights RPi Installer (remote)")
        remote = RemoteInstaller(ctx.config.remote, console).install(host, selector.value)
        if isinstance(remote, Err):
            print_process_error(remote.error, console)
            exit_failure()
        console.success(f"installation complete on {host}")
        return

    config = ctx.config
    if install_dir is not None:
        config = config.with_install_dir(expand_path(install_dir))
    if github_fallback:
        config = config.with_github_fallback(True)

    console.header("LacyLights RPi Installer")
    service = InstallService(config, console, ctx.http)
    result = service.install(request)
    if isinstance(result, Err):
        print_install_error(result.error, console)
        raise typer.Exit(code=install_error_exit_code(result.error))

    receipt = result.value
    if not receipt.verified:
        console.warning(f"{receipt.tag} was installed without checksum verification")

    if setup:
        hooks = service.run_hooks(receipt, [SetupScriptHook()])
        if isinstance(hooks, Err):
            print_process_error(hooks.error, console)
            console.print(f"{receipt.tag} remains installed at {receipt.target}", Style.DIM)
            exit_failure()
        return

    _print_next_steps(console, receipt.target)


def _print_next_steps(console: ConsoleProtocol, target: Path) -> None:
    console.header("Next Steps")
    console.print("Complete automated setup (recommended for new installations):")
    console.print(f"    cd {target} && ./{DEFAULT_SETUP_SCRIPT} localhost", Style.BOLD)
    console.print("Manual step-by-step setup:")
    console.print(f"    cd {target} && sudo ./setup/01-system-setup.sh  # then 02..06", Style.DIM)
    console.print(f"Documentation: {target / 'README.md'}", Style.DIM)
