"""包清单读取

调用构建工具的 "dump-package" 子命令，解析其 JSON 输出，提取可执行产物名。

产物类型按键存在与否判定：type 中含 "executable" 键即为可执行产物，其余
一律视为库。子命令失败（非零退出）时返回空列表而非报错，无法内省的包
可能只是纯库包。
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nest.core.exceptions import ManifestError
from nest.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_LIMIT = 1024 * 1024


@dataclass
class ManifestProduct:
    """清单中声明的单个产物"""

    name: str
    kind: str                                   # "executable" | "library"
    targets: list[str] = field(default_factory=list)

    @property
    def is_executable(self) -> bool:
        return self.kind == "executable"


@dataclass
class PackageManifest:
    """dump-package 输出中关心的部分"""

    name: str
    products: list[ManifestProduct] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> PackageManifest:
        if not isinstance(data, dict):
            raise ValueError("顶层不是 JSON 对象")
        name = data.get("name")
        products = data.get("products")
        if not isinstance(name, str):
            raise ValueError("缺少 name 字段")
        if not isinstance(products, list):
            raise ValueError("缺少 products 列表")

        parsed: list[ManifestProduct] = []
        for p in products:
            if not isinstance(p, dict) or not isinstance(p.get("name"), str):
                raise ValueError(f"产物条目无效: {p!r}")
            ptype = p.get("type") or {}
            kind = "executable" if isinstance(ptype, dict) and "executable" in ptype else "library"
            parsed.append(ManifestProduct(
                name=p["name"], kind=kind, targets=list(p.get("targets") or []),
            ))
        return cls(name=name, products=parsed)

    def executable_names(self) -> list[str]:
        """可执行产物名，保持清单声明顺序"""
        return [p.name for p in self.products if p.is_executable]


class ManifestReader:
    """包清单读取器"""

    def __init__(
        self,
        build_tool: str = "swift",
        executor: CommandExecutor | None = None,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
    ) -> None:
        self.build_tool = build_tool
        self.executor = executor or LocalExecutor()
        self.output_limit = output_limit

    def load(self, package_path: Path) -> PackageManifest | None:
        """读取并解析清单；dump 命令失败时返回 None"""
        cmd = [self.build_tool, "package", "dump-package"]
        try:
            r = self.executor.execute(
                cmd, cwd=package_path, output_limit=self.output_limit,
            )
        except OSError as e:
            raise ManifestError(package_path, f"无法执行 {self.build_tool}: {e}") from e

        if not r.success:
            logger.info(
                "dump-package 失败 (rc=%d)，按无可执行产物处理: %s",
                r.returncode, package_path,
            )
            return None
        if r.truncated:
            raise ManifestError(
                package_path, f"清单输出超过 {self.output_limit} 字节上限",
            )

        try:
            return PackageManifest.from_dict(json.loads(r.stdout))
        except (json.JSONDecodeError, ValueError) as e:
            raise ManifestError(package_path, f"清单 JSON 无法解析: {e}") from e

    def read_executable_products(self, package_path: Path) -> list[str]:
        """返回可执行产物名列表（清单声明顺序）"""
        manifest = self.load(package_path)
        if manifest is None:
            return []
        names = manifest.executable_names()
        logger.debug("包 %s 的可执行产物: %s", manifest.name, names)
        return names
