"""
日志子系统异常

- VocalogError: 基类
- LogSessionError: 会话生命周期（init/close）中的文件系统错误
- LogInitError: 初始化失败，日志无法启动
"""


class VocalogError(Exception):
    """vocalog 错误基类"""

    pass


class LogSessionError(VocalogError):
    """会话生命周期错误（例如崩溃标记无法删除）"""

    pass


class LogInitError(LogSessionError):
    """
    初始化失败

    日志目录、崩溃标记或日志文件不可访问时抛出，原始异常通过 __cause__ 保留。
    """

    pass
