"""包拉取器

把包源码放到 <packages>/<owner>/<name>[-<version>]/ 下：

  目标已存在（更新）:
    - LocalPathSource: rsync -a --delete 增量同步，保留权限与时间戳
    - GitSource:       fetch + checkout/pull 原地更新
    - NameSource:      原样返回（应已在上游解析为 GitSource）
  目标不存在（新建）:
    - GitSource:       clone，按需 checkout
    - LocalPathSource: 校验清单后整树复制
    - NameSource:      调用方契约错误

失败清理策略不对称：新建路径（新 clone / 新复制）失败时删除目标目录；
更新路径失败时绝不删除已有目录，保护用户此前可用的安装。

目录是否存在即为缓存判据，没有任何元数据文件。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from nest.core.config import InstallConfiguration
from nest.core.exceptions import (
    CheckoutFailedError,
    CloneFailedError,
    CopyFailedError,
    GitOperationFailedError,
    InvalidPackageStructureError,
    VersionNotFoundError,
)
from nest.core.models import (
    FetchResult,
    GitSource,
    LocalPathSource,
    NameSource,
    PackageIdentifier,
    PackageSource,
)
from nest.utils.fs import DEFAULT_EXCLUDES, copy_tree_contents
from nest.utils.shell import CommandExecutor, CommandResult, LocalExecutor

logger = logging.getLogger(__name__)

DEFAULT_GIT_OUTPUT_LIMIT = 16 * 1024


class PackageFetcher:
    """包拉取器 - 支持本地目录与 Git 仓库两类来源"""

    def __init__(
        self,
        configuration: InstallConfiguration,
        *,
        executor: CommandExecutor | None = None,
        git_executable: str = "git",
        rsync_executable: str = "rsync",
        manifest_file: str = "Package.swift",
        output_limit: int = DEFAULT_GIT_OUTPUT_LIMIT,
    ) -> None:
        self.configuration = configuration
        self.executor = executor or LocalExecutor()
        self.git_executable = git_executable
        self.rsync_executable = rsync_executable
        self.manifest_file = manifest_file
        self.output_limit = output_limit

    def fetch(self, identifier: PackageIdentifier, source: PackageSource) -> FetchResult:
        """拉取或更新包

        参数:
            identifier: 包标识，决定目标目录 <packages>/<owner>/<name>[-<version>]
            source: 包来源（本地目录 / Git 仓库 / 未解析的包名）

        返回:
            FetchResult，含包目录与解析出的版本（Git 未指定版本时为当前短哈希）

        异常:
            CloneFailedError / CheckoutFailedError / VersionNotFoundError: Git 新建失败
            GitOperationFailedError: Git 更新失败，或新目录遇到未解析的包名
            CopyFailedError: 本地复制或 rsync 同步失败
            InvalidPackageStructureError: 结果目录缺少清单文件
        """
        packages_dir = self.configuration.packages_dir
        packages_dir.mkdir(parents=True, exist_ok=True)

        destination = packages_dir / identifier.directory_name

        if destination.exists():
            return self._update_existing(identifier, source, destination)

        if isinstance(source, GitSource):
            return self._fetch_git(identifier, source, destination)
        if isinstance(source, LocalPathSource):
            return self._fetch_local(identifier, source, destination)
        if isinstance(source, NameSource):
            raise GitOperationFailedError(
                f"包名 '{source.name}' 应在拉取前解析为 Git 地址"
            )
        raise TypeError(f"不支持的包来源: {source!r}")

    # ---- 更新已有目录 ----

    def _update_existing(
        self, identifier: PackageIdentifier, source: PackageSource, destination: Path,
    ) -> FetchResult:
        if isinstance(source, LocalPathSource):
            logger.info("同步本地包: %s -> %s", source.path, destination)
            self._sync_local(source.path, destination)
            return self._finalize(destination, identifier, identifier.version, cleanup_on_error=False)

        if isinstance(source, GitSource):
            logger.info("更新已有 Git 仓库: %s", destination)
            self._update_git(destination, source.version)
            resolved = source.version or self._current_ref(destination)
            return self._finalize(destination, identifier, resolved, cleanup_on_error=False)

        if isinstance(source, NameSource):
            return self._finalize(destination, identifier, identifier.version, cleanup_on_error=False)

        raise TypeError(f"不支持的包来源: {source!r}")

    def _update_git(self, repo: Path, version: str | None) -> None:
        r = self._git(["fetch", "origin"], cwd=repo)
        if not r.success:
            raise GitOperationFailedError(f"拉取远程更新失败: {r.stderr.strip()}")

        if version is None:
            r = self._git(["pull"], cwd=repo)
            if not r.success:
                raise GitOperationFailedError(f"拉取最新提交失败: {r.stderr.strip()}")
            return

        r = self._git(["checkout", version], cwd=repo)
        if not r.success:
            raise self._checkout_error(repo, str(repo), version)

        # detached HEAD 时输出为 "HEAD"，否则为分支名
        head = self._git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=repo)
        if head.success and head.stdout.strip() not in ("", "HEAD"):
            r = self._git(["pull", "origin", version], cwd=repo)
            if not r.success:
                raise GitOperationFailedError(
                    f"拉取分支 '{version}' 最新提交失败: {r.stderr.strip()}"
                )

    def _sync_local(self, source: Path, destination: Path) -> None:
        if not source.is_dir():
            raise CopyFailedError(source, "源目录不存在")
        cmd = self._rsync_cmd(source, destination)
        logger.debug("rsync: %s", " ".join(cmd))
        try:
            r = self.executor.execute(cmd, cwd=destination, output_limit=self.output_limit)
        except OSError as e:
            raise CopyFailedError(source, f"无法执行 rsync: {e}") from e
        if not r.success:
            raise CopyFailedError(
                source, f"rsync 失败 (rc={r.returncode}): {r.stderr.strip()}",
            )

    def _rsync_cmd(self, source: Path, destination: Path) -> list[str]:
        """构造 rsync 命令：归档模式，删除源中已不存在的条目，排除项两侧都不动"""
        cmd = [self.rsync_executable, "-a", "--delete"]
        cmd.extend(f"--exclude={name}" for name in sorted(DEFAULT_EXCLUDES))
        # 结尾的 / 表示同步目录内容而不是目录本身
        cmd.append(f"{source}/")
        cmd.append(f"{destination}/")
        return cmd

    # ---- 新建 ----

    def _fetch_git(
        self, identifier: PackageIdentifier, source: GitSource, destination: Path,
    ) -> FetchResult:
        destination.parent.mkdir(parents=True, exist_ok=True)

        logger.info("克隆: %s -> %s", source.url, destination)
        r = self._git(
            ["clone", source.url, str(destination)], cwd=self.configuration.packages_dir,
        )
        if not r.success:
            self._cleanup(destination)
            raise CloneFailedError(source.url, r.stderr.strip())

        try:
            if source.version is not None:
                r = self._git(["checkout", source.version], cwd=destination)
                if not r.success:
                    raise self._checkout_error(destination, source.url, source.version)
                resolved: str | None = source.version
            else:
                resolved = self._current_ref(destination)
        except Exception:
            self._cleanup(destination)
            raise

        return self._finalize(destination, identifier, resolved, cleanup_on_error=True)

    def _fetch_local(
        self, identifier: PackageIdentifier, source: LocalPathSource, destination: Path,
    ) -> FetchResult:
        self._validate(source.path)

        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            destination.mkdir()
            copy_tree_contents(source.path, destination, DEFAULT_EXCLUDES)
        except OSError as e:
            self._cleanup(destination)
            raise CopyFailedError(source.path, str(e)) from e

        logger.info("已复制本地包: %s -> %s", source.path, destination)
        return self._finalize(destination, identifier, identifier.version, cleanup_on_error=True)

    # ---- 校验 / 工具方法 ----

    def _validate(self, path: Path) -> None:
        if not (path / self.manifest_file).is_file():
            raise InvalidPackageStructureError(path, self.manifest_file)

    def _finalize(
        self,
        destination: Path,
        identifier: PackageIdentifier,
        resolved_version: str | None,
        *,
        cleanup_on_error: bool,
    ) -> FetchResult:
        """校验包结构并生成结果，cleanup_on_error 决定校验失败时是否删除目录"""
        try:
            self._validate(destination)
        except InvalidPackageStructureError:
            if cleanup_on_error:
                self._cleanup(destination)
            raise
        return FetchResult(
            package_path=destination,
            resolved_version=resolved_version,
            identifier=identifier,
        )

    @staticmethod
    def _cleanup(destination: Path) -> None:
        if destination.exists():
            logger.info("清理未完成的包目录: %s", destination)
            shutil.rmtree(destination, ignore_errors=True)

    def _checkout_error(self, repo: Path, location: str, version: str) -> CheckoutFailedError:
        """检出失败时区分 ref 不存在与其他原因"""
        for ref in (f"{version}^{{commit}}", f"origin/{version}^{{commit}}"):
            r = self._git(["rev-parse", "--verify", "--quiet", ref], cwd=repo)
            if r.success:
                return CheckoutFailedError(location, version)
        return VersionNotFoundError(location, version)

    def _current_ref(self, repo: Path) -> str:
        r = self._git(["rev-parse", "--short", "HEAD"], cwd=repo)
        if not r.success:
            raise GitOperationFailedError(f"读取当前提交失败: {r.stderr.strip()}")
        return r.stdout.strip()

    def _git(self, args: list[str], *, cwd: Path) -> CommandResult:
        cmd = [self.git_executable, *args]
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
        try:
            return self.executor.execute(cmd, cwd=cwd, output_limit=self.output_limit)
        except OSError as e:
            raise GitOperationFailedError(f"无法执行 git {args[0]}: {e}") from e
