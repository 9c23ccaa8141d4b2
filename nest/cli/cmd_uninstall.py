"""CLI：卸载命令"""

from __future__ import annotations

import click

from nest.cli import _guard, _installer


def register(group: click.Group) -> None:
    group.add_command(uninstall_cmd)


@click.command(name="uninstall")
@click.argument("identifier")
@click.option("--install-dir", default=None, help="安装根目录（默认 ~/.nest）")
def uninstall_cmd(identifier: str, install_dir: str | None) -> None:
    """卸载包（owner/repo、仓库名或可执行文件名）"""
    with _guard():
        report = _installer(install_dir).uninstall(identifier)

    for name in report.removed_symlinks:
        click.echo(f"已移除链接: {name}")
    for pkg in report.removed_packages:
        click.echo(f"已卸载: {pkg}")
