"""安装服务：来源解析 / 安装 / 卸载 / 列表

组合核心组件完成完整流程:
  install:   resolve() -> PackageFetcher.fetch -> PackageBuilder.build -> create_symlinks
  uninstall: UninstallResolver.find_matches -> remove_symlinks -> 删除包目录

所有组件共享同一个 Config / InstallConfiguration / CommandExecutor。
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from nest.core.builder import PackageBuilder
from nest.core.config import Config, InstallConfiguration
from nest.core.exceptions import (
    NoPackagesInstalledError,
    PackageNotFoundError,
    RemoveFailedError,
    ValidationError,
)
from nest.core.fetcher import PackageFetcher
from nest.core.manifest import ManifestReader
from nest.core.models import (
    BuildResult,
    FetchResult,
    GitSource,
    LocalPathSource,
    PackageIdentifier,
    PackageSource,
)
from nest.core.uninstall import UninstallResolver, list_installed
from nest.services.search import GitHubSearchClient, RepositoryHit
from nest.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

Selector = Callable[[list[RepositoryHit]], RepositoryHit]


@dataclass
class InstallReport:
    """一次安装的结果汇总"""

    fetch: FetchResult
    build: BuildResult
    installed: list[str] = field(default_factory=list)


@dataclass
class UninstallReport:
    """一次卸载的结果汇总"""

    identifier: str
    removed_symlinks: list[str] = field(default_factory=list)
    removed_packages: list[str] = field(default_factory=list)  # 相对 packages 目录


def owner_and_name_from_url(url: str) -> tuple[str, str]:
    """从 Git 地址提取 owner 与仓库名，去掉 .git 后缀

    支持 https://host/owner/repo(.git) 与 git@host:owner/repo.git 两种写法。
    """
    parsed = urlparse(url)
    path = parsed.path
    if not parsed.scheme and ":" in url:
        path = url.split(":", 1)[1]
    components = [c for c in path.split("/") if c]

    def strip(name: str) -> str:
        return name[:-4] if name.endswith(".git") else name

    if len(components) >= 2:
        return components[-2], strip(components[-1])

    name = strip(components[-1]) if components else ""
    if not name:
        return "local", "package"
    return name, name


class Installer:
    """包安装管理"""

    def __init__(
        self,
        config: Config,
        configuration: InstallConfiguration | None = None,
        *,
        executor: CommandExecutor | None = None,
        search_client: GitHubSearchClient | None = None,
        selector: Selector | None = None,
    ) -> None:
        self.config = config
        self.configuration = configuration or config.install_configuration()
        self.executor = executor or LocalExecutor()
        self._search_client = search_client
        self.selector = selector

        self.fetcher = PackageFetcher(
            self.configuration,
            executor=self.executor,
            git_executable=config.git_executable,
            rsync_executable=config.rsync_executable,
            manifest_file=config.manifest_file,
            output_limit=config.git_output_limit,
        )
        self.builder = PackageBuilder(
            self.configuration,
            executor=self.executor,
            build_tool=config.build_tool,
            manifest_reader=ManifestReader(
                build_tool=config.build_tool,
                executor=self.executor,
                output_limit=config.manifest_output_limit,
            ),
        )
        self.resolver = UninstallResolver(self.configuration)

    @property
    def search_client(self) -> GitHubSearchClient:
        if self._search_client is None:
            self._search_client = GitHubSearchClient(
                api_url=self.config.search_api_url,
                timeout=self.config.search_timeout,
            )
        return self._search_client

    # ---- 来源解析 ----

    def resolve(
        self,
        package: str | None = None,
        *,
        url: str | None = None,
        path: str | None = None,
        version: str | None = None,
        cwd: str | None = None,
    ) -> tuple[PackageSource, PackageIdentifier]:
        """把命令行输入解析为 (来源, 标识)；都未提供时使用当前目录"""
        provided = [x for x in (package, url, path) if x is not None]
        if len(provided) > 1:
            raise ValidationError("包名、--url、--path 最多只能指定一个")

        if package is not None:
            return self._resolve_by_name(package, version)

        if url is not None:
            owner, name = owner_and_name_from_url(url)
            ident = PackageIdentifier(owner=owner, name=name, origin=url, version=version)
            return GitSource(url=url, version=version), ident

        local = Path(os.path.abspath(path if path is not None else (cwd or os.getcwd())))
        ident = PackageIdentifier(owner="local", name=local.name, origin=str(local), version=version)
        return LocalPathSource(path=local), ident

    def _resolve_by_name(
        self, name: str, version: str | None,
    ) -> tuple[PackageSource, PackageIdentifier]:
        if "/" in name:
            parts = [p for p in name.split("/") if p]
            if len(parts) != 2:
                raise ValidationError(f"包名无效 '{name}'，格式应为 owner/repo")
            owner, repo = parts
            git_url = f"{self.config.github_url.rstrip('/')}/{owner}/{repo}"
            ident = PackageIdentifier(owner=owner, name=repo, origin=git_url, version=version)
            return GitSource(url=git_url, version=version), ident

        hits = self.search_client.search(name, limit=self.config.search_limit)
        if not hits:
            raise ValidationError(f"没有找到与 '{name}' 匹配的 Swift 包")
        if len(hits) == 1 or self.selector is None:
            hit = hits[0]
        else:
            hit = self.selector(hits)
        logger.info("选中: %s (%s)", hit.full_name, hit.clone_url)
        ident = PackageIdentifier(
            owner=hit.owner, name=hit.name, origin=hit.clone_url, version=version,
        )
        return GitSource(url=hit.clone_url, version=version), ident

    # ---- 安装 ----

    def fetch(self, source: PackageSource, identifier: PackageIdentifier) -> FetchResult:
        return self.fetcher.fetch(identifier, source)

    def build_and_link(self, fetch_result: FetchResult) -> InstallReport:
        build_result = self.builder.build(fetch_result.package_path)
        installed = self.builder.create_symlinks(build_result)
        return InstallReport(fetch=fetch_result, build=build_result, installed=installed)

    def install(self, source: PackageSource, identifier: PackageIdentifier) -> InstallReport:
        """拉取 -> 构建 -> 发布符号链接"""
        report = self.build_and_link(self.fetch(source, identifier))
        logger.info("安装完成: %s -> %s", identifier.display_name, report.installed)
        return report

    # ---- 卸载 / 列表 ----

    def uninstall(self, raw_identifier: str) -> UninstallReport:
        """卸载所有匹配的包：先移除 bin 链接，再删除包目录"""
        packages_dir = self.configuration.packages_dir
        if not packages_dir.exists():
            raise NoPackagesInstalledError()

        matches = self.resolver.find_matches(raw_identifier)
        if not matches:
            raise PackageNotFoundError(raw_identifier)

        report = UninstallReport(identifier=raw_identifier)
        for pkg in matches:
            try:
                report.removed_symlinks.extend(self.builder.remove_symlinks(pkg.name))
            except OSError as e:
                raise RemoveFailedError(self.configuration.bin_dir, str(e)) from e
        report.removed_symlinks.sort()

        for pkg in matches:
            try:
                shutil.rmtree(pkg)
            except OSError as e:
                raise RemoveFailedError(pkg, str(e)) from e
            report.removed_packages.append(str(pkg.relative_to(packages_dir)))
            logger.info("已删除包目录: %s", pkg)
        return report

    def list_installed(self) -> dict[str, list[str]]:
        return list_installed(self.configuration.packages_dir)
