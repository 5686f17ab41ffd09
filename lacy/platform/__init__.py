"""Platform abstraction layer."""

from .detection import detect_board_model, is_raspberry_pi
from .files import atomic_write_json, atomic_write_text, create_exclusive_text
from .paths import expand_path, home, user_config_dir
from .process import ProcessError, run, run_streaming

__all__ = [
    # detection
    "detect_board_model",
    "is_raspberry_pi",
    # files
    "atomic_write_json",
    "atomic_write_text",
    "create_exclusive_text",
    # paths
    "expand_path",
    "home",
    "user_config_dir",
    # process
    "ProcessError",
    "run",
    "run_streaming",
]
