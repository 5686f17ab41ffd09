"""Typed installer configuration.

A single immutable :class:`InstallerConfig` is assembled once per invocation
(defaults, then the optional ``config.toml``, then environment overrides)
and handed to every component explicitly. Nothing reads configuration from
module globals.

Example ``config.toml``::

    [distribution]
    base_url = "https://dist.lacylights.com/releases/rpi"
    github_fallback = true

    [install]
    dir = "~/lacylights-setup"
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TypeVar

from lacy.platform.paths import expand_path, home, user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_str, get_str_list, get_table

__all__ = [
    "InstallerConfig",
    "ProductConfig",
    "DistributionConfig",
    "InstallConfig",
    "RemoteConfig",
    "PublishConfig",
    "ConfigError",
    "default_config_path",
    "load_config",
    "ENV_CONFIG",
    "ENV_DIST_URL",
    "ENV_INSTALL_DIR",
    "ENV_GITHUB_REPO",
]

ENV_CONFIG = "LACY_CONFIG"
ENV_DIST_URL = "LACY_DIST_URL"
ENV_INSTALL_DIR = "LACY_INSTALL_DIR"
ENV_GITHUB_REPO = "LACY_GITHUB_REPO"

DEFAULT_PRODUCT = "lacylights-rpi"
DEFAULT_DIST_URL = "https://dist.lacylights.com/releases/rpi"
DEFAULT_GITHUB_REPO = "bbernstein/lacylights-rpi"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ProductConfig:
    """Artifact naming: ``<name>-<version>.tar.gz``."""

    name: str = DEFAULT_PRODUCT


@dataclass(frozen=True, slots=True)
class DistributionConfig:
    """Where release metadata and artifacts are published."""

    base_url: str = DEFAULT_DIST_URL
    github_repo: str = DEFAULT_GITHUB_REPO
    # Opt-in: consult GitHub releases (unverified) when latest.json is unavailable.
    github_fallback: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @property
    def github_download_base(self) -> str:
        return f"https://github.com/{self.github_repo}/releases/download"


def _default_install_dir() -> Path:
    return home() / "lacylights-setup"


@dataclass(frozen=True, slots=True)
class InstallConfig:
    """Target directory and the archive layout expected inside it."""

    dir: Path = field(default_factory=_default_install_dir)
    marker_file: str = "VERSION"
    required_entries: tuple[str, ...] = ("scripts/setup-new-pi.sh",)
    script_dirs: tuple[str, ...] = ("scripts", "setup", "utils")
    strip_components: int = 0

    @property
    def marker_path(self) -> Path:
        return self.dir / self.marker_file


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """How an install is delegated to a remote host."""

    ssh: str = "ssh"
    # Runs on the target host; ``{version}`` is replaced by the validated selector.
    command: str = "lacy install {version}"


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Publish-side layout (relative to the repository root)."""

    metadata_dir: str = "dist/metadata"
    install_script: str = "install.sh"
    layout: tuple[str, ...] = ("README.md", "scripts", "setup", "utils", "docs", "config")


@dataclass(frozen=True, slots=True)
class InstallerConfig:
    """Main configuration container."""

    product: ProductConfig = field(default_factory=ProductConfig)
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    def artifact_name(self, bare_version: str) -> str:
        return f"{self.product.name}-{bare_version}.tar.gz"

    def with_install_dir(self, path: Path) -> InstallerConfig:
        return replace(self, install=replace(self.install, dir=path))

    def with_github_fallback(self, enabled: bool) -> InstallerConfig:
        return replace(self, distribution=replace(self.distribution, github_fallback=enabled))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> InstallerConfig:
        """Create config from a parsed TOML mapping.

        Raises:
            ValueError: If a present key has the wrong type or value.
        """
        product = _section(data, "product")
        dist = _section(data, "distribution")
        install = _section(data, "install")
        remote = _section(data, "remote")
        publish = _section(data, "publish")

        defaults = cls()

        timeout = dist.get("timeout", defaults.distribution.timeout)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("distribution.timeout must be a positive number")

        strip = _typed(install, "strip_components", get_int, defaults.install.strip_components)
        if strip < 0:
            raise ValueError("install.strip_components must be >= 0")

        install_dir = defaults.install.dir
        if "dir" in install:
            raw_dir = _typed(install, "dir", get_str, "")
            if not raw_dir.strip():
                raise ValueError("install.dir must not be empty")
            install_dir = expand_path(raw_dir)

        return cls(
            product=ProductConfig(
                name=_typed(product, "name", get_str, defaults.product.name),
            ),
            distribution=DistributionConfig(
                base_url=_typed(dist, "base_url", get_str, defaults.distribution.base_url).rstrip(
                    "/"
                ),
                github_repo=_typed(
                    dist, "github_repo", get_str, defaults.distribution.github_repo
                ),
                github_fallback=_typed(
                    dist, "github_fallback", get_bool, defaults.distribution.github_fallback
                ),
                timeout=float(timeout),
            ),
            install=InstallConfig(
                dir=install_dir,
                marker_file=_typed(install, "marker_file", get_str, defaults.install.marker_file),
                required_entries=tuple(
                    _typed(
                        install,
                        "required_entries",
                        get_str_list,
                        list(defaults.install.required_entries),
                    )
                ),
                script_dirs=tuple(
                    _typed(install, "script_dirs", get_str_list, list(defaults.install.script_dirs))
                ),
                strip_components=strip,
            ),
            remote=RemoteConfig(
                ssh=_typed(remote, "ssh", get_str, defaults.remote.ssh),
                command=_typed(remote, "command", get_str, defaults.remote.command),
            ),
            publish=PublishConfig(
                metadata_dir=_typed(
                    publish, "metadata_dir", get_str, defaults.publish.metadata_dir
                ),
                install_script=_typed(
                    publish, "install_script", get_str, defaults.publish.install_script
                ),
                layout=tuple(
                    _typed(publish, "layout", get_str_list, list(defaults.publish.layout))
                ),
            ),
        )

    def with_env(self, env: Mapping[str, str]) -> InstallerConfig:
        """Apply ``LACY_*`` environment overrides."""
        config = self
        dist_url = env.get(ENV_DIST_URL, "").strip()
        if dist_url:
            config = replace(
                config, distribution=replace(config.distribution, base_url=dist_url.rstrip("/"))
            )
        repo = env.get(ENV_GITHUB_REPO, "").strip()
        if repo:
            config = replace(config, distribution=replace(config.distribution, github_repo=repo))
        install_dir = env.get(ENV_INSTALL_DIR, "").strip()
        if install_dir:
            config = config.with_install_dir(expand_path(install_dir))
        return config


def _section(data: Mapping[str, object], key: str) -> StrDict:
    """Return table ``key``; missing → empty, present but not a table → ValueError."""
    if key not in data:
        return {}
    table = get_table(data, key)
    if table is None:
        raise ValueError(f"[{key}] must be a table")
    return table


_T = TypeVar("_T")


def _typed(
    table: StrDict,
    key: str,
    getter: Callable[[Mapping[str, object], str], _T | None],
    default: _T,
) -> _T:
    """Read ``key`` with ``getter``; missing → default, wrong type → ValueError."""
    if key not in table:
        return default
    value = getter(table, key)
    if value is None:
        raise ValueError(f"invalid value for {key!r}: {table[key]!r}")
    return value


def default_config_path() -> Path:
    return user_config_dir() / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> Result[InstallerConfig, ConfigError]:
    """Load configuration.

    Args:
        path: Explicit config file (must exist). When None, $LACY_CONFIG is
            used if set, then the default user config if present, otherwise
            built-in defaults.
        env: Environment for overrides (defaults to ``os.environ``).

    Returns:
        Ok(InstallerConfig) on success, Err(ConfigError) on failure
    """
    environ = os.environ if env is None else env

    target = path
    if target is None and environ.get(ENV_CONFIG, "").strip():
        target = expand_path(environ[ENV_CONFIG].strip())
    if target is None:
        candidate = default_config_path()
        target = candidate if candidate.exists() else None

    if target is None:
        return Ok(InstallerConfig().with_env(environ))

    parsed = _parse_toml(target)
    if isinstance(parsed, Err):
        return parsed

    try:
        config = InstallerConfig.from_dict(parsed.value)
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=target))

    return Ok(config.with_env(environ))
