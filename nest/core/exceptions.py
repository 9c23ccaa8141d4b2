"""统一异常体系

所有业务异常继承 NestError，底层的 subprocess / 文件系统错误在出错位置
包装上下文（路径、ref、product）后再抛出。CLI 层据此输出友好提示。
"""

from __future__ import annotations

from pathlib import Path


class NestError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(NestError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(NestError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class SearchError(NestError):
    """远程搜索失败"""

    code = "SEARCH_ERROR"


# =========================================================================
# 拉取
# =========================================================================


class PackageFetcherError(NestError):
    """拉取阶段异常基类"""

    code = "FETCH_ERROR"


class CloneFailedError(PackageFetcherError):
    code = "CLONE_FAILED"

    def __init__(self, url: str, reason: str = "") -> None:
        msg = f"克隆仓库失败 '{url}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.url = url
        self.reason = reason


class CheckoutFailedError(PackageFetcherError):
    code = "CHECKOUT_FAILED"

    def __init__(self, location: str, version: str) -> None:
        super().__init__(f"检出版本 '{version}' 失败: {location}")
        self.location = location
        self.version = version


class VersionNotFoundError(CheckoutFailedError):
    """请求的 ref 在仓库中不存在（属于检出失败的一种）"""

    code = "VERSION_NOT_FOUND"

    def __init__(self, location: str, version: str) -> None:
        super().__init__(location, version)
        self.args = (f"仓库中不存在版本 '{version}': {location}",)


class CopyFailedError(PackageFetcherError):
    code = "COPY_FAILED"

    def __init__(self, source: Path | str, reason: str = "") -> None:
        msg = f"复制包失败 '{source}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.source = Path(source)
        self.reason = reason


class InvalidPackageStructureError(PackageFetcherError):
    code = "INVALID_PACKAGE_STRUCTURE"

    def __init__(self, path: Path | str, manifest_file: str = "Package.swift") -> None:
        super().__init__(f"包结构无效 '{path}' - 缺少 {manifest_file}")
        self.path = Path(path)
        self.manifest_file = manifest_file


class GitOperationFailedError(PackageFetcherError):
    code = "GIT_OPERATION_FAILED"

    def __init__(self, message: str) -> None:
        super().__init__(f"Git 操作失败: {message}")


# =========================================================================
# 清单 / 构建
# =========================================================================


class ManifestError(NestError):
    """包清单读取或解析失败"""

    code = "MANIFEST_ERROR"

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"读取包清单失败 '{path}': {reason}")
        self.path = Path(path)
        self.reason = reason


class PackageBuilderError(NestError):
    """构建阶段异常基类"""

    code = "BUILD_ERROR"


class BuildFailedError(PackageBuilderError):
    code = "BUILD_FAILED"

    def __init__(self, path: Path | str, detail: str) -> None:
        super().__init__(f"构建失败 '{path}':\n{detail}")
        self.path = Path(path)
        self.detail = detail


class NoExecutablesFoundError(PackageBuilderError):
    code = "NO_EXECUTABLES_FOUND"

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"包中没有可执行产物 '{path}'")
        self.path = Path(path)


class SymlinkFailedError(PackageBuilderError):
    code = "SYMLINK_FAILED"

    def __init__(self, name: str, reason: str = "") -> None:
        msg = f"创建符号链接失败 '{name}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.name = name
        self.reason = reason


# =========================================================================
# 卸载
# =========================================================================


class UninstallError(NestError):
    """卸载阶段异常基类"""

    code = "UNINSTALL_ERROR"


class NoPackagesInstalledError(UninstallError):
    code = "NO_PACKAGES_INSTALLED"

    def __init__(self) -> None:
        super().__init__("尚未安装任何包")


class PackageNotFoundError(UninstallError):
    code = "PACKAGE_NOT_FOUND"

    def __init__(self, identifier: str) -> None:
        super().__init__(f"包 '{identifier}' 未安装")
        self.identifier = identifier


class RemoveFailedError(UninstallError):
    code = "REMOVE_FAILED"

    def __init__(self, path: Path | str, reason: str = "") -> None:
        msg = f"删除失败 '{path}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.path = Path(path)
        self.reason = reason
