"""CLI：远程搜索"""

from __future__ import annotations

import click

from nest.cli import _guard, _installer
from nest.cli.selector import describe_hit


def register(group: click.Group) -> None:
    group.add_command(search_cmd)


@click.command(name="search")
@click.argument("query")
@click.option("--limit", default=None, type=int, help="最多显示的结果数")
def search_cmd(query: str, limit: int | None) -> None:
    """在 GitHub 上搜索 Swift 包"""
    with _guard():
        svc = _installer()
        hits = svc.search_client.search(query, limit=limit or svc.config.search_limit)
    if not hits:
        click.echo(f"没有找到与 '{query}' 匹配的 Swift 包。")
        return
    for hit in hits:
        click.echo(f"  {describe_hit(hit)}")
        click.echo(f"    {hit.clone_url}")
