"""测试公共夹具：模拟外部工具的假执行器、安装目录、本地包工厂"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from nest.core.config import InstallConfiguration
from nest.utils.fs import remove_path
from nest.utils.shell import CommandResult


def _prune(src: Path, dest: Path, excluded: set[str]) -> None:
    """删除 dest 中 src 已不存在或类型改变的条目，排除项不动"""
    for entry in dest.iterdir():
        if entry.name in excluded:
            continue
        peer = src / entry.name
        if not peer.exists() or peer.is_dir() != entry.is_dir():
            remove_path(entry)
        elif entry.is_dir():
            _prune(peer, entry, excluded)


class FakeExecutor:
    """按命令模拟 git、swift、rsync 行为，记录全部调用

    - git clone: 创建目标目录（默认带 Package.swift）
    - git checkout / rev-parse: 以 refs 集合判定 ref 是否存在
    - swift package dump-package: 输出 products 描述的清单
    - swift build --product X: 生成 .build/release/X
    - rsync -a --delete: 用 copy2 复制（保留权限与时间戳）并删除多余条目
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], Path | None, bool]] = []
        self.refs: set[str] = {"1.0.0", "main"}
        self.branches: set[str] = {"main"}
        self.broken_refs: set[str] = set()     # 存在但检出失败
        self.clone_fail: set[str] = set()
        self.clone_without_manifest: set[str] = set()
        self.fail_fetch = False
        self.head = "abc1234"
        self.products: list[dict] = [
            {"name": "tool", "type": {"executable": None}, "targets": ["tool"]},
        ]
        self.dump_returncode = 0
        self.dump_output: str | None = None
        self.dump_truncated = False
        self.build_fail: set[str] = set()
        self.build_skip_binary: set[str] = set()
        self.rsync_fail = False
        self._current: str | None = None

    # ---- 查询 ----

    def commands(self, prefix: str | None = None) -> list[list[str]]:
        return [c for c, _, _ in self.calls if prefix is None or c[0] == prefix]

    def git_subcommands(self) -> list[str]:
        return [c[1] for c in self.commands("git")]

    # ---- 执行 ----

    def execute(
        self,
        cmd: list[str],
        *,
        cwd=None,
        env=None,
        timeout=None,
        capture: bool = True,
        output_limit=None,
    ) -> CommandResult:
        cwd_path = Path(cwd) if cwd is not None else None
        self.calls.append((list(cmd), cwd_path, capture))
        if cmd[0] == "git":
            return self._git(cmd[1:], cwd_path)
        if cmd[0] == "swift":
            return self._swift(cmd[1:], cwd_path)
        if cmd[0] == "rsync":
            return self._rsync(cmd[1:])
        raise FileNotFoundError(f"No such file or directory: '{cmd[0]}'")

    def _git(self, args: list[str], cwd: Path | None) -> CommandResult:
        sub = args[0]
        if sub == "clone":
            url, dest = args[1], Path(args[2])
            if url in self.clone_fail:
                dest.mkdir(parents=True, exist_ok=True)  # 模拟残留的半成品目录
                return CommandResult(128, stderr="fatal: repository not found")
            dest.mkdir(parents=True)
            if url not in self.clone_without_manifest:
                (dest / "Package.swift").write_text("// swift-tools-version:5.9\n")
            return CommandResult(0)
        if sub == "checkout":
            ref = args[1]
            if ref in self.refs and ref not in self.broken_refs:
                self._current = ref
                return CommandResult(0)
            return CommandResult(1, stderr=f"error: pathspec '{ref}' did not match")
        if sub == "rev-parse":
            if args[1] == "--verify":
                ref = args[-1].replace("^{commit}", "")
                ref = ref[len("origin/"):] if ref.startswith("origin/") else ref
                return CommandResult(0 if ref in self.refs else 1)
            if args[1] == "--abbrev-ref":
                branch = self._current if self._current in self.branches else "HEAD"
                return CommandResult(0, stdout=f"{branch}\n")
            if args[1] == "--short":
                return CommandResult(0, stdout=f"{self.head}\n")
        if sub == "fetch":
            if self.fail_fetch:
                return CommandResult(1, stderr="fatal: unable to access remote")
            return CommandResult(0)
        if sub == "pull":
            return CommandResult(0)
        return CommandResult(1, stderr=f"unsupported git command: {args}")

    def _rsync(self, args: list[str]) -> CommandResult:
        if self.rsync_fail:
            return CommandResult(23, stderr="rsync error: some files could not be transferred")
        excluded = {a.split("=", 1)[1] for a in args if a.startswith("--exclude=")}
        src, dest = (Path(a) for a in args if not a.startswith("-"))
        _prune(src, dest, excluded)
        shutil.copytree(
            src, dest, symlinks=True, dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(*excluded),
        )
        return CommandResult(0)

    def _swift(self, args: list[str], cwd: Path | None) -> CommandResult:
        if args[:2] == ["package", "dump-package"]:
            if self.dump_returncode != 0:
                return CommandResult(self.dump_returncode, stderr="error: manifest parse error")
            out = self.dump_output
            if out is None:
                out = json.dumps({"name": "pkg", "products": self.products})
            return CommandResult(0, stdout=out, truncated=self.dump_truncated)
        if args[0] == "build":
            product = args[args.index("--product") + 1]
            if product in self.build_fail:
                return CommandResult(1)
            if product not in self.build_skip_binary:
                release = cwd / ".build" / "release"
                release.mkdir(parents=True, exist_ok=True)
                (release / product).write_text("#!/bin/sh\n")
            return CommandResult(0)
        return CommandResult(1, stderr=f"unsupported swift command: {args}")


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def configuration(tmp_path: Path) -> InstallConfiguration:
    return InstallConfiguration(root_dir=tmp_path / "nest_root")


@pytest.fixture()
def make_package(tmp_path: Path):
    """在 tmp_path/src 下创建本地 Swift 包"""

    def _make(name: str = "mytool", files: dict[str, str] | None = None) -> Path:
        root = tmp_path / "src" / name
        (root / "Sources" / name).mkdir(parents=True)
        (root / "Package.swift").write_text("// swift-tools-version:5.9\n")
        (root / "Sources" / name / "main.swift").write_text('print("hi")\n')
        for rel, content in (files or {}).items():
            p = root / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content)
        return root

    return _make
