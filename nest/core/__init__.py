"""包生命周期核心：标识 / 拉取 / 构建 / 卸载"""
