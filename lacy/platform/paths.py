"""User-level path helpers.

The appliance installer only runs on Unix-like hosts (the target is a
Raspberry Pi; the operator's workstation is usually Linux or macOS), so
there is no Windows branch here.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

__all__ = [
    "APP_NAME",
    "home",
    "user_config_dir",
    "expand_path",
    "clear_caches",
]

APP_NAME = "lacy"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get the user's home directory, preferring $HOME (CI, containers, sudo -E)."""
    home_env = os.environ.get("HOME")
    if home_env:
        return Path(home_env)
    return Path.home()


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    """Location of the user config: $XDG_CONFIG_HOME/lacy or ~/.config/lacy."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return home() / ".config" / APP_NAME


def expand_path(raw: str) -> Path:
    """Expand ``~`` and environment variables in a user-provided path."""
    expanded = os.path.expandvars(raw)
    if expanded == "~" or expanded.startswith("~/"):
        expanded = str(home()) + expanded[1:]
    return Path(expanded)


def clear_caches() -> None:
    """Clear cached paths (tests change $HOME)."""
    home.cache_clear()
    user_config_dir.cache_clear()
