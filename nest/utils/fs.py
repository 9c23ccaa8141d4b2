"""文件系统工具：首次拉取本地包时的整树复制

已存在目录的增量同步交给 rsync（见 PackageFetcher），这里只负责新建时的
复制与单个条目的删除。复制时跳过构建产物与版本控制目录。
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

DEFAULT_EXCLUDES = frozenset((".build", ".git"))


def remove_path(path: Path) -> None:
    """删除文件、符号链接或整个目录树（不跟随符号链接）"""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def copy_tree_contents(
    source: Path, dest: Path, exclude: Iterable[str] = DEFAULT_EXCLUDES,
) -> None:
    """把 source 下的每个条目复制到已存在的 dest 目录中

    符号链接按原样复制；被排除的名称在任意层级都会跳过。
    """
    excluded = frozenset(exclude)
    ignore = shutil.ignore_patterns(*excluded)
    for item in sorted(source.iterdir()):
        if item.name in excluded:
            continue
        target = dest / item.name
        if item.is_dir() and not item.is_symlink():
            shutil.copytree(item, target, symlinks=True, ignore=ignore)
        else:
            shutil.copy2(item, target, follow_symlinks=False)
