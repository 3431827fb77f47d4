"""
日志通道

一个通道 = 名字 + 输出模板 + 有序的 Sink 列表。每次 write 渲染出一条记录文本，
依次交给所有 Sink；某个 Sink 出错（例如磁盘已满）不影响其他 Sink。

没有任何 Sink 的通道是"静默通道": 接受 write 调用但什么都不做。
会话初始化之前和关闭之后通道都处于这个状态，调用方不需要做空值检查。

输出模板支持的标记:
    {TimeStampFromStart}  自启动以来的时间，HH:MM:SS.fff
    {Timestamp}           本地时间
    {Level}               级别全称（Information、Warning ...）
    {Message}             按属性渲染后的消息
    {NewLine}             换行
    {Properties}          未出现在消息里的属性，形如 {ThreadId=3, Song=abc}
    {Exception}           异常堆栈（没有异常时为空）
    {ChannelName}         通道名
其他名字按同名属性渲染，找不到时原样保留。
"""

import logging
import re
import threading
import time
import traceback
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from .levels import LogLevel
from .sinks import BufferSink, Sink
from .template import bind_positional, placeholder_names, render_message

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"{([^{}]+)}")

SinkErrorHandler = Callable[["LogChannel", Sink, BaseException], None]


@dataclass
class LogEvent:
    """一条待渲染的日志事件"""

    level: LogLevel
    message_template: str
    properties: dict[str, Any] = field(default_factory=dict)
    exception: BaseException | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    elapsed: timedelta = field(default_factory=timedelta)

    def render_message(self) -> str:
        return render_message(self.message_template, self.properties)


def format_elapsed(elapsed: timedelta) -> str:
    """timedelta -> HH:MM:SS.fff（小时数可以超过 24）"""
    total_ms = elapsed // timedelta(milliseconds=1)
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_properties(properties: Mapping[str, Any]) -> str:
    return "{" + ", ".join(f"{k}={v}" for k, v in properties.items()) + "}"


def format_exception(exception: BaseException | None) -> str:
    if exception is None:
        return ""
    return "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))


def _log_sink_error(channel: "LogChannel", sink: Sink, exc: BaseException) -> None:
    logger.warning(f"[{channel.name}] sink {sink.label} failed: {exc}")


class LogChannel:
    """
    日志通道

    线程安全: 多个线程可以同时调用 write，每条记录在每个 Sink 内部是原子的。
    """

    def __init__(
        self,
        name: str,
        output_template: str = "{Message}{NewLine}",
        sinks: Iterable[Sink] = (),
        *,
        enrich_thread_id: bool = False,
        started_at: float | None = None,
        on_sink_error: SinkErrorHandler | None = None,
    ):
        """
        Args:
            name: 通道名
            output_template: 记录的输出模板
            sinks: 有序的 Sink 列表，为空即静默通道
            enrich_thread_id: 是否给每条记录附加 ThreadId 属性
            started_at: time.monotonic() 起点，用于 {TimeStampFromStart}
            on_sink_error: Sink 出错时的回调，默认记一条 warning
        """
        self.name = name
        self.output_template = output_template
        self.enrich_thread_id = enrich_thread_id
        self.started_at = time.monotonic() if started_at is None else started_at
        self.on_sink_error = on_sink_error or _log_sink_error
        self._sinks: tuple[Sink, ...] = tuple(sinks)
        self._lock = threading.Lock()

        # 已被输出模板直接引用的属性不再出现在 {Properties} 里
        self._template_tokens = set(placeholder_names(output_template))

    @classmethod
    def silent(cls, name: str) -> "LogChannel":
        """没有任何 Sink 的静默通道"""
        return cls(name)

    @property
    def sinks(self) -> tuple[Sink, ...]:
        return self._sinks

    @property
    def is_silent(self) -> bool:
        return not self._sinks

    # ------------------------------------------------------------------
    # 渲染
    # ------------------------------------------------------------------

    def render(self, event: LogEvent) -> str:
        """按输出模板渲染一条记录"""
        used = set(placeholder_names(event.message_template)) | self._template_tokens

        def _token(match: re.Match) -> str:
            token = match.group(1)
            if token == "NewLine":
                return "\n"
            if token == "Message":
                return event.render_message()
            if token == "Level":
                return event.level.display_name
            if token == "TimeStampFromStart":
                return format_elapsed(event.elapsed)
            if token == "Timestamp":
                return event.timestamp.isoformat(sep=" ", timespec="milliseconds")
            if token == "Properties":
                extra = {k: v for k, v in event.properties.items() if k not in used}
                return format_properties(extra)
            if token == "Exception":
                return format_exception(event.exception)
            if token == "ChannelName":
                return self.name
            if token in event.properties:
                return str(event.properties[token])
            return match.group(0)

        return _TOKEN.sub(_token, self.output_template)

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------

    def write(
        self,
        level: LogLevel | int,
        message_template: str,
        properties: Mapping[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """
        渲染一条记录并交给所有 Sink

        Args:
            level: 日志级别（LogLevel，或 logging.ERROR 这类标准库级别）
            message_template: 消息模板，{Name} 按 properties 渲染
            properties: 结构化属性
            exception: 附带的异常
        """
        sinks = self._sinks
        if not sinks:
            return

        level = LogLevel.coerce(level)
        props = dict(properties or {})
        if self.enrich_thread_id:
            props.setdefault("ThreadId", threading.get_ident())

        event = LogEvent(
            level=level,
            message_template=message_template,
            properties=props,
            exception=exception,
            elapsed=timedelta(seconds=time.monotonic() - self.started_at),
        )
        text = self.render(event)

        for sink in sinks:
            try:
                sink.write(text, level)
            except Exception as e:
                self.on_sink_error(self, sink, e)

    def _log(
        self,
        level: LogLevel,
        message_template: str,
        values: Sequence[Any],
        exception: BaseException | None,
        properties: dict[str, Any],
    ) -> None:
        if not self._sinks:
            return
        bound = bind_positional(message_template, values) if values else {}
        bound.update(properties)
        self.write(level, message_template, bound, exception)

    def verbose(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.VERBOSE, message_template, values, exception, properties)

    def debug(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.DEBUG, message_template, values, exception, properties)

    def information(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.INFORMATION, message_template, values, exception, properties)

    def warning(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.WARNING, message_template, values, exception, properties)

    def error(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.ERROR, message_template, values, exception, properties)

    def fatal(self, message_template: str, *values: Any, exception: BaseException | None = None, **properties: Any) -> None:
        self._log(LogLevel.FATAL, message_template, values, exception, properties)

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """刷新所有 Sink；单个 Sink 失败只会触发 on_sink_error"""
        for sink in self._sinks:
            try:
                sink.flush()
            except Exception as e:
                self.on_sink_error(self, sink, e)

    def buffer_snapshot(self) -> str:
        """第一个 BufferSink 的内容，没有时返回空串"""
        for sink in self._sinks:
            if isinstance(sink, BufferSink):
                return sink.snapshot()
        return ""

    def dispose(self) -> None:
        """
        关闭所有 Sink，通道随即变为静默通道

        所有 Sink 都会被尝试关闭；如果有失败，在全部处理完之后抛出第一个异常。
        """
        with self._lock:
            sinks, self._sinks = self._sinks, ()

        first_error: Exception | None = None
        for sink in sinks:
            try:
                try:
                    sink.flush()
                finally:
                    sink.close()
            except Exception as e:
                self.on_sink_error(self, sink, e)
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def __repr__(self) -> str:
        sinks = ", ".join(s.label for s in self._sinks) or "silent"
        return f"LogChannel({self.name!r}, sinks=[{sinks}])"
