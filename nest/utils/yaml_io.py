"""配置文件读取

只读不写：nest 从不改写用户的 config.yml。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件只有十来个键，超过 1MB 一定是放错了文件
MAX_YAML_SIZE = 1024 * 1024


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射

    返回:
        dict: 文件不存在、为空或顶层不是映射时返回空字典

    异常:
        ValueError: 文件过大或 YAML 格式错误（消息中带行列号）
        OSError: 读取失败
    """
    p = Path(path)
    if not p.is_file():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节, 上限 {MAX_YAML_SIZE})")

    text = p.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" 第 {mark.line + 1} 行第 {mark.column + 1} 列" if mark is not None else ""
        raise ValueError(f"YAML 格式错误: {p}{where}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是映射 (%s)，忽略其内容", p, type(data).__name__)
        return {}
    logger.debug("已读取 %s: %d 个键", p, len(data))
    return data
