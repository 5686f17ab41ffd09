"""Tests for lacy.release.github module."""

from __future__ import annotations

from lacy.core.config import InstallerConfig
from lacy.core.result import Err, Ok
from lacy.release.github import GitHubReleaseStore, conventional_record
from lacy.release.version import Version
from lacy.tools.http import MockHttpClient

API = "https://api.github.com/repos/bbernstein/lacylights-rpi"


def release(tag: str, *, prerelease: bool = False, asset: bool = True) -> dict[str, object]:
    bare = tag.removeprefix("v")
    assets: list[object] = []
    if asset:
        assets.append(
            {
                "name": f"lacylights-rpi-{bare}.tar.gz",
                "browser_download_url": f"https://cdn.example/{bare}.tar.gz",
                "size": 1234,
            }
        )
    return {
        "tag_name": tag,
        "prerelease": prerelease,
        "draft": False,
        "published_at": "2025-06-01T12:00:00Z",
        "assets": assets,
    }


class TestConventionalRecord:
    def test_url_and_no_digest(self) -> None:
        record = conventional_record(InstallerConfig(), Version(0, 1, 7, 1))
        assert record.artifact_url == (
            "https://github.com/bbernstein/lacylights-rpi/releases/download/"
            "v0.1.7b1/lacylights-rpi-0.1.7b1.tar.gz"
        )
        assert record.sha256 is None
        assert record.is_prerelease is True


class TestLatestStable:
    def test_stable_release(self) -> None:
        http = MockHttpClient()
        http.set_json(f"{API}/releases/latest", release("v0.1.6"))
        result = GitHubReleaseStore(InstallerConfig(), http).latest_stable()
        assert isinstance(result, Ok)
        assert result.value.version == Version(0, 1, 6)
        assert result.value.artifact_url == "https://cdn.example/0.1.6.tar.gz"
        assert result.value.size_bytes == 1234
        assert result.value.sha256 is None

    def test_prerelease_refused(self) -> None:
        http = MockHttpClient()
        http.set_json(f"{API}/releases/latest", release("v0.1.7b1", prerelease=True))
        result = GitHubReleaseStore(InstallerConfig(), http).latest_stable()
        assert isinstance(result, Err)
        assert "prerelease" in result.error.reason

    def test_flagged_prerelease_with_stable_tag_refused(self) -> None:
        http = MockHttpClient()
        http.set_json(f"{API}/releases/latest", release("v0.1.7", prerelease=True))
        assert isinstance(GitHubReleaseStore(InstallerConfig(), http).latest_stable(), Err)

    def test_missing_asset_falls_back_to_convention(self) -> None:
        http = MockHttpClient()
        http.set_json(f"{API}/releases/latest", release("v0.1.6", asset=False))
        result = GitHubReleaseStore(InstallerConfig(), http).latest_stable()
        assert isinstance(result, Ok)
        assert result.value.artifact_url.endswith("/v0.1.6/lacylights-rpi-0.1.6.tar.gz")
        assert result.value.size_bytes is None


class TestListRecords:
    def _http(self) -> MockHttpClient:
        http = MockHttpClient()
        http.set_json(
            f"{API}/releases?per_page=100",
            [
                release("v0.1.6"),
                release("v0.1.7b1", prerelease=True),
                release("v0.1.7"),
                {**release("v0.1.8"), "draft": True},
                {"tag_name": "not-a-version"},
                "garbage",
            ],
        )
        return http

    def test_stable_only_newest_first(self) -> None:
        result = GitHubReleaseStore(InstallerConfig(), self._http()).list_records()
        assert isinstance(result, Ok)
        assert [r.version.to_tag() for r in result.value] == ["v0.1.7", "v0.1.6"]

    def test_with_prereleases(self) -> None:
        store = GitHubReleaseStore(InstallerConfig(), self._http())
        result = store.list_records(include_prereleases=True)
        assert isinstance(result, Ok)
        assert [r.version.to_tag() for r in result.value] == ["v0.1.7", "v0.1.7b1", "v0.1.6"]

    def test_api_failure(self) -> None:
        result = GitHubReleaseStore(InstallerConfig(), MockHttpClient()).list_records()
        assert isinstance(result, Err)
        assert result.error.missing is True
