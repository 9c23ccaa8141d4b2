"""外部进程调用（git 与构建工具）

fetcher / manifest / builder 只依赖 CommandExecutor 协议；默认的 LocalExecutor
按字节上限截断捕获的输出，构建时则直接把输出交给终端。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """一次外部命令的退出码与（可能被截断的）输出"""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    truncated: bool = False  # stdout 超过上限被截断

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 执行器
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议

    capture=True 时捕获 stdout/stderr（各自按 output_limit 字节截断，stdout 被截断时标记 truncated），
    capture=False 时子进程直接继承当前进程的 stdout/stderr，便于实时显示构建进度。
    程序无法启动时抛 OSError，由调用方包装上下文。
    """

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        capture: bool = True,
        output_limit: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# subprocess 实现
# =========================================================================

def _decode(data: bytes, limit: int | None) -> tuple[str, bool]:
    """按字节上限截断后再解码，返回 (文本, 是否截断)"""
    truncated = limit is not None and len(data) > limit
    if truncated:
        data = data[:limit]
    return data.decode("utf-8", errors="replace"), truncated


class LocalExecutor:
    """本地 subprocess 执行器"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        capture: bool = True,
        output_limit: int | None = None,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(cmd), cwd or ".")
        if not capture:
            r = subprocess.run(
                cmd, cwd=cwd, env=env, check=False, timeout=timeout,
            )
            return CommandResult(returncode=r.returncode)

        r = subprocess.run(
            cmd, capture_output=True,
            cwd=cwd, env=env, check=False, timeout=timeout,
        )
        stdout, out_cut = _decode(r.stdout or b"", output_limit)
        stderr, _ = _decode(r.stderr or b"", output_limit)
        return CommandResult(
            returncode=r.returncode,
            stdout=stdout,
            stderr=stderr,
            truncated=out_cut,
        )
