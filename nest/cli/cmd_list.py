"""CLI：已安装包列表"""

from __future__ import annotations

import click

from nest.cli import _guard, _installer


def register(group: click.Group) -> None:
    group.add_command(list_cmd)


@click.command(name="list")
@click.option("--install-dir", default=None, help="安装根目录（默认 ~/.nest）")
def list_cmd(install_dir: str | None) -> None:
    """列出已安装的包"""
    with _guard():
        installed = _installer(install_dir).list_installed()
    if not installed:
        click.echo("尚未安装任何包。")
        return
    for owner, packages in installed.items():
        click.echo(f"{owner}:")
        for name in packages:
            click.echo(f"  {name}")
