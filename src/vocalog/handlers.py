"""
标准库 logging 桥接

ChannelHandler 把宿主程序里 logging.getLogger(...) 产生的记录转发到会话的通道:

    root = logging.getLogger()
    root.addHandler(ChannelHandler(session))          # -> Main
    logging.getLogger("songs").addHandler(ChannelHandler(session, "song"))

通道在每次 emit 时才从会话中取，会话未初始化或已关闭时记录被静默丢弃。
vocalog 自身的诊断日志不会被转发，避免 Sink 报错时形成回环。
"""

import logging

from .levels import LogLevel
from .session import LogSession

_INTERNAL_PREFIX = "vocalog"


class ChannelHandler(logging.Handler):
    """
    把 LogRecord 写入 LogSession 的某个通道

    记录的 name / module / lineno 作为结构化属性附带，异常信息作为 Exception 渲染。
    """

    def __init__(self, session: LogSession, channel: str = "main", level: int = logging.DEBUG):
        """
        Args:
            session: 日志会话
            channel: "main" 或 "song"
            level: 最低日志级别
        """
        if channel not in ("main", "song"):
            raise ValueError(f"Unknown channel {channel!r}, expected 'main' or 'song'")
        super().__init__(level)
        self.session = session
        self.channel = channel

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == _INTERNAL_PREFIX or record.name.startswith(_INTERNAL_PREFIX + "."):
            return

        try:
            target = self.session.song if self.channel == "song" else self.session.main
            if target.is_silent:
                return

            exception = record.exc_info[1] if record.exc_info else None
            # getMessage 已完成 %-格式化，作为属性传入，避免其中的 {} 再被当作占位符
            target.write(
                LogLevel.from_stdlib(record.levelno),
                "{Text}",
                {
                    "Text": record.getMessage(),
                    "SourceContext": record.name,
                    "Module": record.module,
                    "Line": record.lineno,
                },
                exception,
            )
        except Exception:
            # 日志处理器不应该抛出异常
            self.handleError(record)
