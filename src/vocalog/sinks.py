"""
日志输出目标（Sink）

通道把渲染好的记录文本交给 Sink:
- BufferSink: 进程生命周期内的内存缓存，供崩溃报告读取完整主日志
- FileSink: 追加写文件（基于 logging.FileHandler），后台线程按固定间隔刷盘
- ConsoleSink: 彩色控制台输出（基于 logging.StreamHandler，调试用）

所有 Sink 都是 logging.Handler: 通道通过 write(text, level) 写入已渲染的记录，
也可以直接挂到标准库 logger 上使用。每个 Sink 用 Handler 自带的锁串行化写入，
单条记录不会与其他记录交错。
"""

import io
import logging
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from .levels import LogLevel

logger = logging.getLogger(__name__)

FlushErrorHandler = Callable[["Sink", BaseException], None]


class Sink(logging.Handler):
    """Sink 基类"""

    label: str = "sink"

    def write(self, text: str, level: LogLevel) -> None:
        """写入一条已渲染的记录"""
        raise NotImplementedError("write must be implemented by Sink subclasses")

    def emit(self, record: logging.LogRecord) -> None:
        """作为普通 logging.Handler 使用时，按 Formatter 渲染后写入"""
        try:
            self.write(self.format(record) + "\n", LogLevel.from_stdlib(record.levelno))
        except Exception:
            # 日志处理器不应该抛出异常
            self.handleError(record)


class BufferSink(Sink):
    """
    内存日志缓存

    不设上限，整个进程生命周期内保留主日志的全部文本，报告对话框按需读取。
    write / flush / snapshot 共用 Handler 的锁，读取快照时不会看到写了一半的记录。
    close() 不清空内容: 会话关闭之后缓存依然可读。
    """

    label = "buffer"

    def __init__(self, level: int = logging.NOTSET):
        super().__init__(level)
        self._buffer = io.StringIO()

    def write(self, text: str, level: LogLevel) -> None:
        with self.lock:
            self._buffer.write(text)

    def flush(self) -> None:
        # 写入本身是同步的；拿到锁就意味着之前发起的 write 都已完成
        with self.lock:
            self._buffer.flush()

    def snapshot(self) -> str:
        """当前缓存的全部文本"""
        with self.lock:
            return self._buffer.getvalue()

    def clear(self) -> None:
        with self.lock:
            self._buffer.seek(0)
            self._buffer.truncate()


class FileSink(Sink, logging.FileHandler):
    """
    追加写入的日志文件

    写入经过文件对象自身的缓冲；后台守护线程每 flush_interval 秒刷盘一次，
    显式 flush() / close() 也会立即刷盘。close() 会等待刷盘线程退出。
    后台刷盘失败交给 on_flush_error（默认记一条 warning）。
    """

    def __init__(
        self,
        path: str | Path,
        flush_interval: float = 30.0,
        encoding: str = "utf-8",
        on_flush_error: FlushErrorHandler | None = None,
    ):
        """
        Args:
            path: 日志文件路径（父目录必须存在）
            flush_interval: 最长刷盘间隔（秒）
            encoding: 文件编码
            on_flush_error: 后台刷盘失败时的回调 (sink, exc)
        """
        if flush_interval <= 0:
            raise ValueError(f"flush_interval must be > 0, got {flush_interval}")

        super().__init__(str(path), mode="a", encoding=encoding)
        self.path = Path(path)
        self.label = f"file:{self.path.name}"
        self.flush_interval = flush_interval
        self.on_flush_error = on_flush_error

        self._stop_event = threading.Event()
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name=f"FileSink-flush-{self.path.name}",
            daemon=True,
        )
        self._flush_thread.start()

    def _flush_loop(self) -> None:
        while not self._stop_event.wait(self.flush_interval):
            try:
                self.flush()
            except Exception as e:
                if self.on_flush_error is not None:
                    self.on_flush_error(self, e)
                else:
                    logger.warning(f"Periodic flush of {self.path} failed: {e}")

    def write(self, text: str, level: LogLevel) -> None:
        with self.lock:
            # 关闭过程中仍在途的写入直接丢弃
            if self.stream is None:
                return
            self.stream.write(text)

    def close(self) -> None:
        self._stop_event.set()
        if self._flush_thread.is_alive() and self._flush_thread is not threading.current_thread():
            self._flush_thread.join()
        # FileHandler.close: 加锁、刷盘、关闭文件
        super().close()

    @property
    def closed(self) -> bool:
        return self.stream is None


class ConsoleSink(Sink, logging.StreamHandler):
    """
    彩色控制台输出

    不同级别使用不同颜色:
    - Verbose / Debug: 灰色
    - Information: 默认
    - Warning: 黄色
    - Error: 红色
    - Fatal: 红色加粗

    Windows 上强制用 UTF-8 包装输出流，避免 GBK 编码遇到 emoji 等字符时报错。
    """

    label = "console"

    # ANSI 颜色码
    COLORS = {
        LogLevel.VERBOSE: "\033[90m",
        LogLevel.DEBUG: "\033[90m",
        LogLevel.INFORMATION: "\033[0m",
        LogLevel.WARNING: "\033[93m",
        LogLevel.ERROR: "\033[91m",
        LogLevel.FATAL: "\033[91;1m",
    }
    RESET = "\033[0m"

    def __init__(self, stream: TextIO | None = None, prefix: str = ""):
        """
        Args:
            stream: 输出流，默认 sys.stdout
            prefix: 每条记录前附加的前缀，例如 "[SongInfo] "
        """
        output_stream = stream or sys.stdout
        if stream is None and sys.platform == "win32" and hasattr(output_stream, "buffer"):
            output_stream = io.TextIOWrapper(
                output_stream.buffer, encoding="utf-8", errors="replace", line_buffering=True
            )
        super().__init__(output_stream)
        self.prefix = prefix
        self._supports_color = self._check_color_support()

    def _check_color_support(self) -> bool:
        """检测终端是否支持颜色"""
        if sys.platform == "win32":
            try:
                import ctypes

                kernel32 = ctypes.windll.kernel32
                # ENABLE_PROCESSED_OUTPUT | ENABLE_WRAP_AT_EOL_OUTPUT | ENABLE_VIRTUAL_TERMINAL_PROCESSING
                kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
            except (AttributeError, OSError):
                return False

        return hasattr(self.stream, "isatty") and self.stream.isatty()

    def write(self, text: str, level: LogLevel) -> None:
        message = f"{self.prefix}{text}"
        if self._supports_color:
            body = message.rstrip("\n")
            tail = message[len(body):]
            message = f"{self.COLORS.get(level, self.RESET)}{body}{self.RESET}{tail}"

        with self.lock:
            self.stream.write(message)
