"""服务层：组合核心组件，供 CLI 调用"""

from nest.services.installer import InstallReport, Installer, UninstallReport
from nest.services.search import GitHubSearchClient, RepositoryHit

__all__ = [
    "Installer",
    "InstallReport",
    "UninstallReport",
    "GitHubSearchClient",
    "RepositoryHit",
]
