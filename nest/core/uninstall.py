"""卸载匹配与已安装包枚举

UninstallResolver 把用户输入的标识解析为一组包目录，支持:
  - owner/repo        精确目录，或 owner 下的 repo-<version> 目录
  - repo              所有 owner 下名为 repo 或以 repo- 开头的目录
  - 可执行文件名      解析 bin/<name> 符号链接，反查所属包目录

匹配区分大小写，只按前缀 / 子串规则判断；找不到时返回空列表，由调用方
决定如何报错。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from nest.core.config import InstallConfiguration

logger = logging.getLogger(__name__)


def _subdirs(path: Path) -> list[Path]:
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())


def list_installed(packages_dir: Path) -> dict[str, list[str]]:
    """列出已安装的包：{owner: [包目录名, ...]}，均已排序，跳过空 owner"""
    result: dict[str, list[str]] = {}
    for owner_dir in _subdirs(packages_dir):
        packages = [p.name for p in _subdirs(owner_dir)]
        if packages:
            result[owner_dir.name] = packages
    return result


class UninstallResolver:
    """卸载标识解析器"""

    def __init__(self, configuration: InstallConfiguration) -> None:
        self.configuration = configuration

    def find_matches(self, raw_identifier: str) -> list[Path]:
        """返回与标识匹配的全部包目录

        参数:
            raw_identifier: owner/repo、包名或 bin 目录下的可执行文件名

        返回:
            匹配的包目录列表（按路径排序）；名称匹配优先，无结果时才反查
            可执行文件链接；都没有则为空列表，不抛异常
        """
        packages_dir = self.configuration.packages_dir

        if "/" in raw_identifier:
            parts = [p for p in raw_identifier.split("/") if p]
            if len(parts) == 2:
                return self._match_owner_repo(packages_dir, parts[0], parts[1])
            logger.debug("标识 %s 不是 owner/repo 形式，按名称搜索", raw_identifier)

        matches = self._match_name(packages_dir, raw_identifier)
        if not matches:
            matches = self._match_binary(packages_dir, raw_identifier)
        return matches

    @staticmethod
    def _match_owner_repo(packages_dir: Path, owner: str, repo: str) -> list[Path]:
        owner_dir = packages_dir / owner
        if not owner_dir.is_dir():
            return []
        exact = owner_dir / repo
        if exact.is_dir():
            return [exact]
        return [p for p in _subdirs(owner_dir) if p.name.startswith(f"{repo}-")]

    @staticmethod
    def _match_name(packages_dir: Path, name: str) -> list[Path]:
        matches: list[Path] = []
        for owner_dir in _subdirs(packages_dir):
            for pkg in _subdirs(owner_dir):
                if pkg.name == name or pkg.name.startswith(f"{name}-"):
                    matches.append(pkg)
        return matches

    def _match_binary(self, packages_dir: Path, binary_name: str) -> list[Path]:
        bin_dir = self.configuration.bin_dir
        link = bin_dir / binary_name
        if not link.is_symlink():
            return []

        target = os.readlink(link)
        if not os.path.isabs(target):
            target = os.path.normpath(os.path.join(bin_dir, target))
        logger.debug("可执行文件 %s 指向 %s", binary_name, target)

        return [
            pkg
            for owner_dir in _subdirs(packages_dir)
            for pkg in _subdirs(owner_dir)
            if str(pkg) in target
        ]
