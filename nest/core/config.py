"""集中配置管理

Config 负责工具路径、输出上限、搜索参数等可调项，支持从 YAML 文件加载；
InstallConfiguration 只描述安装根目录及其派生路径。

两者都在每次 CLI 调用时构造一次并显式传给各组件，不存在全局单例。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from nest.core.exceptions import ConfigError
from nest.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DIRNAME = ".nest"
CONFIG_ENV_VAR = "NEST_CONFIG"


@dataclass(frozen=True)
class InstallConfiguration:
    """安装路径配置

    目录布局:
      <root>/bin/<可执行文件名>               -> 指向构建产物的符号链接
      <root>/packages/<owner>/<name>[-<ver>]/ -> 包源码树
    """

    root_dir: Path

    @property
    def bin_dir(self) -> Path:
        return self.root_dir / "bin"

    @property
    def packages_dir(self) -> Path:
        return self.root_dir / "packages"

    @classmethod
    def default(cls) -> InstallConfiguration:
        """默认安装到用户主目录下的 ~/.nest"""
        return cls(root_dir=Path.home() / DEFAULT_INSTALL_DIRNAME)


@dataclass
class Config:
    """nest 全局配置"""

    # 目录（空则使用 ~/.nest）
    install_dir: str = ""

    # 外部工具
    git_executable: str = "git"
    rsync_executable: str = "rsync"
    build_tool: str = "swift"
    manifest_file: str = "Package.swift"

    # 子进程输出上限（字节）
    manifest_output_limit: int = 1024 * 1024
    git_output_limit: int = 16 * 1024

    # 远程搜索
    github_url: str = "https://github.com"
    search_api_url: str = "https://api.github.com"
    search_limit: int = 4
    search_timeout: int = 30

    log_level: str = "WARNING"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        if path is None:
            path = default_config_path()
        try:
            data = load_yaml(path)
        except (OSError, ValueError) as e:
            raise ConfigError(f"配置文件无法读取: {path} ({e})") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置项无效: {path} ({e})") from e
        cfg.extra = extra
        logger.debug("配置已加载: %s", path)
        return cfg

    def install_configuration(self, override: str | Path | None = None) -> InstallConfiguration:
        """构造安装路径配置，命令行传入的目录优先"""
        root = override or self.install_dir
        if not root:
            return InstallConfiguration.default()
        return InstallConfiguration(root_dir=Path(root).expanduser())

    def to_dict(self) -> dict:
        return asdict(self)


def default_config_path() -> Path:
    """配置文件路径：$NEST_CONFIG 优先，否则 ~/.nest/config.yml"""
    env_path = os.getenv(CONFIG_ENV_VAR, "")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / DEFAULT_INSTALL_DIRNAME / "config.yml"
