"""包构建器

职责:
- 按清单中的可执行产物逐个 release 构建（输出直接显示给用户）
- 在 .build/release/ 下定位构建出的二进制
- 在 bin 目录发布 / 移除指向二进制的符号链接
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from nest.core.config import InstallConfiguration
from nest.core.exceptions import (
    BuildFailedError,
    NoExecutablesFoundError,
    SymlinkFailedError,
)
from nest.core.manifest import ManifestReader
from nest.core.models import BuildResult, Executable
from nest.utils.fs import remove_path
from nest.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

RELEASE_DIR = Path(".build") / "release"


class PackageBuilder:
    """包构建器"""

    def __init__(
        self,
        configuration: InstallConfiguration,
        *,
        executor: CommandExecutor | None = None,
        manifest_reader: ManifestReader | None = None,
        build_tool: str = "swift",
    ) -> None:
        self.configuration = configuration
        self.executor = executor or LocalExecutor()
        self.build_tool = build_tool
        self.manifest_reader = manifest_reader or ManifestReader(
            build_tool=build_tool, executor=self.executor,
        )

    def build(self, package_path: Path) -> BuildResult:
        """逐个 release 构建包中的可执行产物

        参数:
            package_path: 已拉取的包目录

        返回:
            BuildResult，只含在 .build/release 下实际找到的二进制

        异常:
            ManifestError: 清单读取或解析失败
            NoExecutablesFoundError: 清单中没有可执行产物
            BuildFailedError: 某个产物构建失败或构建工具无法启动
        """
        names = self.manifest_reader.read_executable_products(package_path)
        if not names:
            raise NoExecutablesFoundError(package_path)

        for name in names:
            self._build_product(package_path, name)

        return BuildResult(
            package_path=package_path,
            executables=self._discover(package_path, names),
        )

    def _build_product(self, package_path: Path, product: str) -> None:
        # 只构建指定产物，避免编译测试与库目标
        cmd = [self.build_tool, "build", "-c", "release", "--product", product]
        logger.info("构建产物: %s (cwd=%s)", product, package_path)
        try:
            r = self.executor.execute(cmd, cwd=package_path, capture=False)
        except OSError as e:
            raise BuildFailedError(
                package_path, f"产物 '{product}' 构建进程启动失败: {e}",
            ) from e
        if not r.success:
            raise BuildFailedError(
                package_path, f"产物 '{product}' 构建失败 (rc={r.returncode})",
            )

    @staticmethod
    def _discover(package_path: Path, names: list[str]) -> list[Executable]:
        release = package_path / RELEASE_DIR
        found: list[Executable] = []
        for name in names:
            binary = release / name
            if binary.exists():
                found.append(Executable(name=name, path=binary))
            else:
                # 构建成功但产物名与二进制名不一致，按部分成功处理
                logger.warning("构建成功但未找到二进制: %s", binary)
        return found

    # ---- 符号链接 ----

    def create_symlinks(self, build_result: BuildResult) -> list[str]:
        """在 bin 目录为每个可执行文件创建符号链接

        参数:
            build_result: build() 的结果

        返回:
            已安装的可执行文件名列表

        异常:
            SymlinkFailedError: 链接创建失败，e.name 为失败的可执行文件；
                此前已创建的链接不回滚
        """
        bin_dir = self.configuration.bin_dir
        bin_dir.mkdir(parents=True, exist_ok=True)

        installed: list[str] = []
        for exe in build_result.executables:
            link = bin_dir / exe.name
            try:
                remove_path(link)
            except OSError as e:
                # 旧条目删除失败时交给下面的 symlink 报错
                logger.debug("删除旧链接失败 %s: %s", link, e)

            target = os.path.abspath(exe.path)
            try:
                link.symlink_to(target)
            except OSError as e:
                raise SymlinkFailedError(exe.name, str(e)) from e
            logger.info("已链接: %s -> %s", link, target)
            installed.append(exe.name)
        return installed

    def remove_symlinks(self, package_name: str) -> list[str]:
        """移除指向该包的 bin 链接，返回被移除的名称

        目标路径包含 "/<name>/" 或 "/<name>-" 即视为属于该包，可以匹配
        带版本号的目录，但名称互为前缀的包之间可能误伤。
        """
        bin_dir = self.configuration.bin_dir
        if not bin_dir.exists():
            return []

        removed: list[str] = []
        for entry in sorted(bin_dir.iterdir()):
            if not entry.is_symlink():
                continue
            target = os.readlink(entry)
            if f"/{package_name}/" in target or f"/{package_name}-" in target:
                entry.unlink()
                removed.append(entry.name)
                logger.info("已移除链接: %s -> %s", entry, target)
        return removed
