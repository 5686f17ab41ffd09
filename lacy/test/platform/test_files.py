"""Tests for lacy.platform.files module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lacy.platform.files import atomic_write_json, atomic_write_text, create_exclusive_text


class TestAtomicWrite:
    def test_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "latest.json"
        atomic_write_text(path, "x")
        assert path.read_text(encoding="utf-8") == "x"

    def test_replaces_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "latest.json"
        path.write_text("old", encoding="utf-8")
        atomic_write_text(path, "new")
        assert path.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["latest.json"]

    def test_json_is_indented_with_trailing_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "r.json"
        atomic_write_json(path, {"version": "0.1.7"})
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"version": "0.1.7"}


class TestCreateExclusive:
    def test_creates(self, tmp_path: Path) -> None:
        path = tmp_path / "0.1.7.json"
        create_exclusive_text(path, "{}")
        assert path.read_text(encoding="utf-8") == "{}"

    def test_never_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "0.1.7.json"
        path.write_text("original", encoding="utf-8")
        with pytest.raises(FileExistsError):
            create_exclusive_text(path, "replacement")
        assert path.read_text(encoding="utf-8") == "original"
