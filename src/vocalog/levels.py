"""日志级别"""

import logging
from enum import IntEnum


class LogLevel(IntEnum):
    """日志级别，按严重程度递增；渲染时使用完整名称（Information 而不是 INFO）"""

    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def coerce(cls, value: "LogLevel | int") -> "LogLevel":
        """接受 LogLevel、0-5 的数值或标准库级别（logging.ERROR 等）"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.from_stdlib(value)

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """把标准库 logging 的级别数值映射过来"""
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.VERBOSE
