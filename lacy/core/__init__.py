"""Core types shared by the install and publish flows."""

from .result import Err, Ok, Result
from .errors import ErrorCode
from .config import ConfigError, InstallerConfig, load_config

__all__ = [
    # result
    "Err",
    "Ok",
    "Result",
    # errors
    "ErrorCode",
    # config
    "ConfigError",
    "InstallerConfig",
    "load_config",
]
