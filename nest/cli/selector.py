"""交互式候选选择"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

import click

from nest.core.exceptions import ValidationError
from nest.services.search import RepositoryHit

T = TypeVar("T")


def select_item(
    items: Sequence[T],
    title: str,
    describe: Callable[[T], str] = str,
) -> T:
    """列出编号候选并读取用户选择

    只有一个候选时直接返回；输入为空视为取消，输入无效或越界均报错。
    """
    if not items:
        raise ValidationError("没有可选择的候选项")
    if len(items) == 1:
        return items[0]

    click.echo(title)
    for i, item in enumerate(items, 1):
        click.echo(f"  {i}) {describe(item)}")

    raw = click.prompt("请输入编号", default="", show_default=False).strip()
    if not raw:
        raise ValidationError("已取消选择")
    try:
        index = int(raw)
    except ValueError:
        raise ValidationError(f"选择无效: {raw}") from None
    if not 1 <= index <= len(items):
        raise ValidationError(f"选择超出范围: {index}（1-{len(items)}）")
    return items[index - 1]


def describe_hit(hit: RepositoryHit) -> str:
    line = f"{hit.full_name:30s} ★{hit.stars}"
    if hit.description:
        line += f"  {hit.description}"
    return line


def select_repository(hits: list[RepositoryHit]) -> RepositoryHit:
    """安装时在多个搜索结果中选择一个"""
    return select_item(hits, "找到多个匹配的仓库:", describe_hit)
