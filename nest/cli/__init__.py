"""nest 命令行接口

CLI 按命令拆分为子模块，每个模块注册自己的命令到 main group。
未识别的第一个参数交给默认子命令 install 处理：

    nest                      # 安装当前目录
    nest apple/swift-format   # 等同于 nest install apple/swift-format
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click

from nest import __version__
from nest.core.config import Config
from nest.core.exceptions import ConfigError, NestError
from nest.services.installer import Installer, Selector
from nest.utils.logger import setup_logging_from_env


def _config() -> Config:
    """当前命令所用配置（由 main 加载）"""
    ctx = click.get_current_context()
    obj = ctx.find_root().obj
    return obj if isinstance(obj, Config) else Config()


def _installer(install_dir: str | None = None, selector: Selector | None = None) -> Installer:
    """按当前配置与 --install-dir 构造安装服务"""
    cfg = _config()
    return Installer(cfg, cfg.install_configuration(install_dir), selector=selector)


@contextmanager
def _guard() -> Iterator[None]:
    """把领域异常转换为 click 错误输出（退出码 1）"""
    try:
        yield
    except NestError as e:
        raise click.ClickException(str(e)) from e


class DefaultGroup(click.Group):
    """未匹配到子命令时转交给默认子命令"""

    def __init__(self, *args: Any, default_command: str = "install", **kwargs: Any) -> None:
        kwargs.setdefault("context_settings", {})
        kwargs["context_settings"].setdefault("ignore_unknown_options", True)
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not args:
            args = [self.default_command]
        return super().parse_args(ctx, args)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in self.commands:
            ctx.meta["nest.default_arg0"] = cmd_name
            cmd_name = self.default_command
        return super().get_command(ctx, cmd_name)

    def resolve_command(
        self, ctx: click.Context, args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        cmd_name, cmd, rest = super().resolve_command(ctx, args)
        arg0 = ctx.meta.pop("nest.default_arg0", None)
        if arg0 is not None and cmd is not None:
            rest.insert(0, arg0)
            cmd_name = cmd.name
        return cmd_name, cmd, rest


@click.group(cls=DefaultGroup)
@click.version_option(version=__version__, prog_name="nest")
@click.option(
    "--config", "config_path", default=None, envvar="NEST_CONFIG",
    help="配置文件路径（默认 ~/.nest/config.yml）",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """nest - 安装与管理 Swift 包中的可执行文件"""
    try:
        cfg = Config.from_file(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    setup_logging_from_env(cfg.log_level)
    ctx.obj = cfg


# 注册各子命令
from nest.cli.cmd_install import register as _reg_install  # noqa: E402
from nest.cli.cmd_list import register as _reg_list  # noqa: E402
from nest.cli.cmd_search import register as _reg_search  # noqa: E402
from nest.cli.cmd_uninstall import register as _reg_uninstall  # noqa: E402

_reg_install(main)
_reg_uninstall(main)
_reg_list(main)
_reg_search(main)
