"""fersk - 在源仓库的隔离、可丢弃副本中执行构建 / 测试命令"""

__version__ = "0.3.0"
