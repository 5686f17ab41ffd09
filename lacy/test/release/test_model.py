"""Tests for lacy.release.model module."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from lacy.core.result import Err, Ok
from lacy.release.model import (
    Explicit,
    Latest,
    LatestPointer,
    ReleaseRecord,
    format_timestamp,
    latest_to_json,
    parse_latest,
    parse_record,
    parse_selector,
    record_to_json,
)
from lacy.release.version import Version

DIGEST = "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08"


def record_json(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "version": "0.1.7",
        "url": "https://dist.lacylights.com/releases/rpi/lacylights-rpi-0.1.7.tar.gz",
        "sha256": DIGEST,
        "releaseDate": "2025-06-01T12:00:00Z",
        "isPrerelease": False,
        "fileSize": 48213,
    }
    data.update(overrides)
    return data


class TestParseSelector:
    def test_latest(self) -> None:
        assert parse_selector("latest") == Latest()
        assert parse_selector(" LATEST ") == Latest()

    def test_explicit(self) -> None:
        assert parse_selector("v0.1.7b1") == Explicit("v0.1.7b1")


class TestParseRecord:
    def test_valid(self) -> None:
        result = parse_record(record_json(), source="t")
        assert isinstance(result, Ok)
        record = result.value
        assert record.version == Version(0, 1, 7)
        assert record.sha256 == DIGEST
        assert record.release_timestamp == datetime(2025, 6, 1, 12, tzinfo=UTC)
        assert record.size_bytes == 48213
        assert record.key == "0.1.7"

    def test_uppercase_digest_is_normalized(self) -> None:
        result = parse_record(record_json(sha256=DIGEST.upper()), source="t")
        assert isinstance(result, Ok)
        assert result.value.sha256 == DIGEST

    @pytest.mark.parametrize(
        "overrides",
        [
            {"version": "v0.1.7"},
            {"version": "0.1"},
            {"url": ""},
            {"sha256": "abc"},
            {"sha256": None},
            {"releaseDate": "yesterday"},
            {"isPrerelease": "false"},
            {"isPrerelease": True},
            {"fileSize": -1},
            {"fileSize": True},
        ],
    )
    def test_schema_violations(self, overrides: dict[str, object]) -> None:
        result = parse_record(record_json(**overrides), source="t")
        assert isinstance(result, Err)
        assert result.error.malformed is True

    def test_not_an_object(self) -> None:
        assert isinstance(parse_record(["x"], source="t"), Err)

    def test_prerelease_flag_must_match_version(self) -> None:
        result = parse_record(record_json(version="0.1.7b1", isPrerelease=True), source="t")
        assert isinstance(result, Ok)
        assert result.value.is_prerelease


class TestParseLatest:
    def test_valid(self) -> None:
        data = record_json(installScript="https://dist.lacylights.com/releases/rpi/install.sh")
        result = parse_latest(data, source="t")
        assert isinstance(result, Ok)
        assert result.value.record.version == Version(0, 1, 7)

    def test_missing_install_script(self) -> None:
        assert isinstance(parse_latest(record_json(), source="t"), Err)

    def test_prerelease_pointer_is_malformed(self) -> None:
        data = record_json(version="0.1.8b1", isPrerelease=True, installScript="https://x/i.sh")
        result = parse_latest(data, source="t")
        assert isinstance(result, Err)
        assert "prerelease" in result.error.reason


class TestLatestPointer:
    def test_rejects_prerelease_record(self) -> None:
        record = ReleaseRecord(
            version=Version(0, 1, 8, 1),
            artifact_url="u",
            sha256=DIGEST,
            release_timestamp=datetime(2025, 1, 1, tzinfo=UTC),
            is_prerelease=True,
            size_bytes=1,
        )
        with pytest.raises(ValueError, match="prerelease"):
            LatestPointer(record=record, install_script_url="https://x/install.sh")


class TestSerialisation:
    def test_record_round_trip(self) -> None:
        parsed = parse_record(record_json(), source="t")
        assert isinstance(parsed, Ok)
        assert record_to_json(parsed.value) == record_json()

    def test_latest_includes_install_script(self) -> None:
        parsed = parse_record(record_json(), source="t")
        assert isinstance(parsed, Ok)
        data = latest_to_json(LatestPointer(parsed.value, "https://x/install.sh"))
        assert data["installScript"] == "https://x/install.sh"

    def test_best_effort_record_cannot_be_serialised(self) -> None:
        record = ReleaseRecord(
            version=Version(0, 1, 7),
            artifact_url="u",
            sha256=None,
            release_timestamp=None,
            is_prerelease=False,
            size_bytes=None,
        )
        with pytest.raises(ValueError):
            record_to_json(record)

    def test_format_timestamp(self) -> None:
        ts = datetime(2025, 6, 1, 12, 0, 0, 123456, tzinfo=UTC)
        assert format_timestamp(ts) == "2025-06-01T12:00:00Z"
