"""核心数据模型

包来源、包标识、拉取与构建结果集中定义，fetcher / builder / uninstall
三方统一从此处导入，保证目录名推导只有一处实现。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

# =========================================================================
# 包来源
# =========================================================================


@dataclass(frozen=True)
class NameSource:
    """仅有包名，需在到达 fetcher 之前由外部解析为 GitSource"""

    name: str


@dataclass(frozen=True)
class LocalPathSource:
    """本地文件系统目录"""

    path: Path


@dataclass(frozen=True)
class GitSource:
    """远程 Git 仓库，version 可为 tag / 分支 / commit"""

    url: str
    version: str | None = None


PackageSource = Union[NameSource, LocalPathSource, GitSource]


# =========================================================================
# 包标识
# =========================================================================


def _sanitize(component: str) -> str:
    return component.replace("/", "-")


def directory_name(owner: str, name: str, version: str | None = None) -> str:
    """推导包在 packages 目录下的相对路径

    owner/name 中的 "/" 替换为 "-"；有版本时追加 "-<version>"。
    fetch / build / uninstall 均依赖这一规则定位已安装的包。
    """
    base = f"{_sanitize(owner)}/{_sanitize(name)}"
    if version is not None:
        return f"{base}-{version}"
    return base


@dataclass(frozen=True)
class PackageIdentifier:
    """包标识：决定磁盘上的唯一安装位置"""

    owner: str
    name: str
    origin: str                 # Git URL 或本地路径
    version: str | None = None  # tag / 分支 / commit

    @property
    def directory_name(self) -> str:
        return directory_name(self.owner, self.name, self.version)

    @property
    def display_name(self) -> str:
        return f"{self.owner}/{self.name}"


# =========================================================================
# 拉取 / 构建结果
# =========================================================================


@dataclass
class FetchResult:
    """单次 fetch 的结果（不落盘，下次调用从目录重新推导）"""

    package_path: Path
    resolved_version: str | None
    identifier: PackageIdentifier


@dataclass
class Executable:
    """构建产出的可执行文件"""

    name: str
    path: Path


@dataclass
class BuildResult:
    """单次构建的结果"""

    package_path: Path
    executables: list[Executable] = field(default_factory=list)
