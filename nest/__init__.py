"""nest - Swift 包可执行文件安装管理工具"""

__version__ = "0.3.0"
