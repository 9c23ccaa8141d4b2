"""search.py 单元测试：urlopen 以假响应替换"""

from __future__ import annotations

import io
import json
import urllib.error
import urllib.parse

import pytest

from nest.core.exceptions import SearchError
from nest.services.search import GitHubSearchClient, RepositoryHit

ITEMS = [
    {
        "name": "swift-format", "owner": {"login": "apple"},
        "clone_url": "https://github.com/apple/swift-format.git",
        "stargazers_count": 2500, "description": "Formatting technology for Swift",
    },
    {
        "name": "SwiftFormat", "owner": {"login": "nicklockwood"},
        "clone_url": "https://github.com/nicklockwood/SwiftFormat.git",
        "stargazers_count": 7000, "description": None,
    },
]


class _FakeResponse(io.BytesIO):
    def __init__(self, body: bytes, status: int = 200) -> None:
        super().__init__(body)
        self.status = status


def _patch_urlopen(monkeypatch: pytest.MonkeyPatch, body: bytes, status: int = 200) -> list:
    requests: list = []

    def fake_urlopen(req, timeout=None):
        requests.append((req, timeout))
        return _FakeResponse(body, status)

    monkeypatch.setattr("nest.services.search.urllib.request.urlopen", fake_urlopen)
    return requests


class TestRepositoryHit:
    def test_from_api(self) -> None:
        hit = RepositoryHit.from_api(ITEMS[1])
        assert hit.full_name == "nicklockwood/SwiftFormat"
        assert hit.stars == 7000
        assert hit.description == ""


class TestGitHubSearchClient:
    def test_rejects_non_http_scheme(self) -> None:
        with pytest.raises(SearchError, match="协议"):
            GitHubSearchClient(api_url="file:///etc/passwd")

    def test_build_url(self) -> None:
        url = GitHubSearchClient(api_url="https://api.example.com/").build_url("format", 4)
        parsed = urllib.parse.urlparse(url)
        assert parsed.path == "/search/repositories"
        query = urllib.parse.parse_qs(parsed.query)
        assert query == {"q": ["format language:swift"], "sort": ["stars"], "per_page": ["4"]}

    def test_search_parses_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        requests = _patch_urlopen(monkeypatch, json.dumps({"items": ITEMS}).encode())
        hits = GitHubSearchClient(timeout=5).search("format", limit=4)
        assert [h.full_name for h in hits] == ["apple/swift-format", "nicklockwood/SwiftFormat"]
        req, timeout = requests[0]
        assert timeout == 5
        assert req.get_header("User-agent") == "nest"

    def test_search_respects_limit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_urlopen(monkeypatch, json.dumps({"items": ITEMS}).encode())
        assert len(GitHubSearchClient().search("format", limit=1)) == 1

    def test_empty_result(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_urlopen(monkeypatch, b'{"total_count": 0, "items": []}')
        assert GitHubSearchClient().search("nothing") == []

    def test_non_200(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_urlopen(monkeypatch, b"{}", status=202)
        with pytest.raises(SearchError, match="202"):
            GitHubSearchClient().search("x")

    def test_http_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout=None):
            raise urllib.error.HTTPError(req.full_url, 403, "rate limited", {}, None)

        monkeypatch.setattr("nest.services.search.urllib.request.urlopen", fake_urlopen)
        with pytest.raises(SearchError, match="403"):
            GitHubSearchClient().search("x")

    def test_network_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout=None):
            raise urllib.error.URLError("no route")

        monkeypatch.setattr("nest.services.search.urllib.request.urlopen", fake_urlopen)
        with pytest.raises(SearchError, match="no route"):
            GitHubSearchClient().search("x")

    def test_bad_payload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_urlopen(monkeypatch, b'{"items": [{"name": "x"}]}')
        with pytest.raises(SearchError, match="无法解析"):
            GitHubSearchClient().search("x")
