"""Tests for lacy.release.version module."""

from __future__ import annotations

import itertools

import pytest

from lacy.core.result import Err, Ok
from lacy.release.version import Version, compare, parse_tag, parse_version


def v(text: str) -> Version:
    result = parse_tag(text)
    assert isinstance(result, Ok), result
    return result.value


class TestParseTag:
    def test_stable(self) -> None:
        assert parse_tag("v0.1.7") == Ok(Version(0, 1, 7))

    def test_beta(self) -> None:
        assert parse_tag("v0.1.7b2") == Ok(Version(0, 1, 7, 2))

    def test_zero_padded_is_decimal(self) -> None:
        assert v("v0.1.7b01") == v("v0.1.7b1")
        assert v("v01.02.010") == Version(1, 2, 10)

    @pytest.mark.parametrize(
        "text",
        ["0.1.7", "v0.1", "v0.1.7-beta.1", "v0.1.7b", "v0.1.7rc1", "latest", "", "v0.1.7b0"],
    )
    def test_malformed(self, text: str) -> None:
        result = parse_tag(text)
        assert isinstance(result, Err)
        assert result.error.text == text

    def test_non_ascii_digits_rejected(self) -> None:
        assert isinstance(parse_tag("v\u0661.2.3"), Err)
        assert isinstance(parse_tag("v1.2.3b\uff11"), Err)

    def test_whitespace_tolerated(self) -> None:
        assert parse_tag(" v1.0.0\n") == Ok(Version(1, 0, 0))


class TestParseVersion:
    def test_bare(self) -> None:
        assert parse_version("0.1.7b1") == Ok(Version(0, 1, 7, 1))

    def test_marker_with_newline(self) -> None:
        assert parse_version("0.1.7\n") == Ok(Version(0, 1, 7))

    def test_leading_v_tolerated(self) -> None:
        assert parse_version("v0.1.7") == Ok(Version(0, 1, 7))

    def test_malformed(self) -> None:
        assert isinstance(parse_version("zero.one"), Err)
        assert isinstance(parse_version("\u0660.1.7"), Err)


class TestFormat:
    def test_round_trip_is_canonical(self) -> None:
        assert v("v0.1.7b01").to_tag() == "v0.1.7b1"
        assert str(v("v2.0.0")) == "v2.0.0"

    def test_bare(self) -> None:
        assert v("v0.1.7b3").bare() == "0.1.7b3"
        assert v("v0.1.7").bare() == "0.1.7"


class TestOrdering:
    def test_documented_chain(self) -> None:
        chain = [v(t) for t in ("v0.1.6", "v0.1.7b1", "v0.1.7b2", "v0.1.7", "v0.1.8b1")]
        assert chain == sorted(reversed(chain))
        for lo, hi in itertools.pairwise(chain):
            assert lo < hi
            assert compare(lo, hi) == -1
            assert compare(hi, lo) == 1

    def test_beta_above_everything_numerically_below_target(self) -> None:
        assert v("v0.1.6") < v("v0.2.0b1")
        assert v("v0.1.99") < v("v0.2.0b1")
        assert v("v0.2.0b1") < v("v0.2.0")

    def test_beta_numbers_compare_numerically(self) -> None:
        assert v("v0.1.7b9") < v("v0.1.7b10")

    def test_total_order_is_transitive(self) -> None:
        tags = ["v0.0.1", "v0.1.0b1", "v0.1.0", "v0.1.1b2", "v0.1.1b10", "v0.1.1", "v1.0.0b1"]
        versions = [v(t) for t in tags]
        for a, b, c in itertools.permutations(versions, 3):
            if a < b and b < c:
                assert a < c
        for a, b in itertools.permutations(versions, 2):
            assert (a < b) + (b < a) + (a == b) == 1

    def test_compare_equal(self) -> None:
        assert compare(v("v1.0.0b01"), v("v1.0.0b1")) == 0


class TestBump:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [("patch", Version(0, 1, 7)), ("minor", Version(0, 2, 0)), ("major", Version(1, 0, 0))],
    )
    def test_bump(self, kind: str, expected: Version) -> None:
        assert Version(0, 1, 6).bump(kind) == expected  # type: ignore[arg-type]

    def test_bump_drops_prerelease(self) -> None:
        assert Version(0, 1, 7, 2).bump("patch") == Version(0, 1, 8)

    def test_with_prerelease(self) -> None:
        assert Version(0, 1, 7).with_prerelease(3) == Version(0, 1, 7, 3)
        with pytest.raises(ValueError):
            Version(0, 1, 7).with_prerelease(0)

    def test_target(self) -> None:
        assert Version(0, 1, 7, 2).target == Version(0, 1, 7)
        assert Version(0, 1, 7, 2).is_prerelease
        assert not Version(0, 1, 7).is_prerelease
