"""CLI：安装命令"""

from __future__ import annotations

import click

from nest.cli import _guard, _installer
from nest.cli.selector import select_repository


def register(group: click.Group) -> None:
    group.add_command(install_cmd)


@click.command(name="install")
@click.argument("package", required=False)
@click.option("--url", default=None, help="Git 仓库地址")
@click.option("--path", "local_path", default=None, help="本地包目录")
@click.option("--version", "version", default=None, help="tag / 分支 / commit")
@click.option("--install-dir", default=None, help="安装根目录（默认 ~/.nest）")
def install_cmd(
    package: str | None,
    url: str | None,
    local_path: str | None,
    version: str | None,
    install_dir: str | None,
) -> None:
    """安装 Swift 包中的可执行文件

    PACKAGE 可以是 owner/repo 或仓库名（通过 GitHub 搜索）；
    不指定任何来源时安装当前目录。
    """
    with _guard():
        svc = _installer(install_dir, selector=select_repository)
        source, ident = svc.resolve(package, url=url, path=local_path, version=version)

        click.echo(f"拉取 {ident.display_name} ...")
        fetched = svc.fetch(source, ident)
        if fetched.resolved_version:
            click.echo(f"  版本: {fetched.resolved_version}")
        click.echo(f"  位置: {fetched.package_path}")

        click.echo("构建中 ...")
        report = svc.build_and_link(fetched)

    if not report.installed:
        click.echo("构建完成，但没有找到可链接的可执行文件。")
        return
    bin_dir = svc.configuration.bin_dir
    click.echo(f"已安装 {len(report.installed)} 个可执行文件到 {bin_dir}:")
    for name in report.installed:
        click.echo(f"  {name}")
