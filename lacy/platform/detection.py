"""Target board detection."""

from __future__ import annotations

from pathlib import Path

__all__ = ["DEVICE_TREE_MODEL", "detect_board_model", "is_raspberry_pi"]

DEVICE_TREE_MODEL = Path("/proc/device-tree/model")


def detect_board_model(model_file: Path = DEVICE_TREE_MODEL) -> str | None:
    """Return the device-tree model string (e.g. "Raspberry Pi 4 Model B"), if any."""
    try:
        raw = model_file.read_bytes()
    except OSError:
        return None
    # The kernel NUL-terminates device-tree strings.
    model = raw.decode("utf-8", errors="replace").rstrip("\x00").strip()
    return model or None


def is_raspberry_pi(model_file: Path = DEVICE_TREE_MODEL) -> bool:
    model = detect_board_model(model_file)
    return model is not None and "raspberry pi" in model.lower()
