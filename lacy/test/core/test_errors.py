"""Tests for lacy.core.errors module."""

from lacy.core.errors import ErrorCode


class TestErrorCode:
    def test_values(self) -> None:
        """The installer contract is 0 on success, 1 on any fatal error."""
        assert int(ErrorCode.OK) == 0
        assert int(ErrorCode.FAILURE) == 1

    def test_is_success(self) -> None:
        assert ErrorCode.OK.is_success is True
        assert ErrorCode.FAILURE.is_success is False

    def test_str(self) -> None:
        assert str(ErrorCode.FAILURE) == "failure"
