"""远程包搜索：GitHub 仓库搜索 API

只负责把一个包名解析为若干候选仓库，安装流程据此构造 GitSource。
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from nest.core.exceptions import SearchError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


@dataclass
class RepositoryHit:
    """搜索命中的仓库"""

    owner: str
    name: str
    clone_url: str
    stars: int = 0
    description: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> RepositoryHit:
        return cls(
            owner=item["owner"]["login"],
            name=item["name"],
            clone_url=item["clone_url"],
            stars=int(item.get("stargazers_count") or 0),
            description=item.get("description") or "",
        )


class GitHubSearchClient:
    """GitHub 仓库搜索客户端"""

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        language: str = "swift",
    ) -> None:
        scheme = urllib.parse.urlparse(api_url).scheme
        if scheme not in _ALLOWED_SCHEMES:
            raise SearchError(f"不允许的 URL 协议 '{scheme}'，仅支持 http/https: {api_url}")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.language = language

    def build_url(self, query: str, limit: int) -> str:
        params = urllib.parse.urlencode({
            "q": f"{query} language:{self.language}",
            "sort": "stars",
            "per_page": limit,
        })
        return f"{self.api_url}/search/repositories?{params}"

    def search(self, query: str, limit: int = 4) -> list[RepositoryHit]:
        """按关键字搜索仓库，按星数排序"""
        url = self.build_url(query, limit)
        req = urllib.request.Request(url)
        req.add_header("Accept", "application/vnd.github.v3+json")
        req.add_header("User-Agent", "nest")

        logger.info("搜索: %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                status = resp.status
                body = resp.read()
        except urllib.error.HTTPError as e:
            raise SearchError(f"搜索 GitHub 失败 (status: {e.code})") from e
        except (urllib.error.URLError, OSError) as e:
            raise SearchError(f"搜索 GitHub 失败: {e}") from e

        if status != 200:
            raise SearchError(f"搜索 GitHub 失败 (status: {status})")

        try:
            data = json.loads(body)
            return [RepositoryHit.from_api(item) for item in data.get("items", [])][:limit]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SearchError(f"GitHub 响应无法解析: {e}") from e
