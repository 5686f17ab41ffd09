"""Tests for lacy.platform.detection module."""

from __future__ import annotations

from pathlib import Path

from lacy.platform.detection import detect_board_model, is_raspberry_pi


class TestBoardDetection:
    def test_raspberry_pi_model(self, tmp_path: Path) -> None:
        model = tmp_path / "model"
        model.write_bytes(b"Raspberry Pi 4 Model B Rev 1.4\x00")
        assert detect_board_model(model) == "Raspberry Pi 4 Model B Rev 1.4"
        assert is_raspberry_pi(model) is True

    def test_other_board(self, tmp_path: Path) -> None:
        model = tmp_path / "model"
        model.write_bytes(b"Pine64 RockPro64\x00")
        assert is_raspberry_pi(model) is False

    def test_missing_file(self, tmp_path: Path) -> None:
        assert detect_board_model(tmp_path / "absent") is None
        assert is_raspberry_pi(tmp_path / "absent") is False

    def test_empty_file(self, tmp_path: Path) -> None:
        model = tmp_path / "model"
        model.write_bytes(b"\x00")
        assert detect_board_model(model) is None
