"""
日志会话

把各个部件串起来:
- 启动: 检查并消费崩溃标记 -> 写新标记 -> 轮转日志文件 -> 创建 Main / Song 两个通道
- 关闭: 刷新并释放通道 -> 删除崩溃标记（正常关闭信号）
- 报告: 把内存中的主日志交给宿主程序提供的报告回调

状态机: UNINITIALIZED -> ACTIVE -> CLOSED，CLOSED 之后可以再次 init 回到 ACTIVE。

使用方式:
    session = LogSession()
    session.init("logs", "Main.log", "SongInformation.log", "CrashMarker.txt", "1.2.0", show_reporter)
    session.main.information("Loaded {Count} songs", 42)
    ...
    session.close()
"""

import logging
import sys
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from .channel import LogChannel
from .config import LogSettings
from .errors import LogInitError, LogSessionError
from .marker import CrashMarker
from .roller import roll_logs
from .sinks import BufferSink, ConsoleSink, FileSink, Sink
from .template import format_message_template

logger = logging.getLogger(__name__)

MAIN_LOG_TEMPLATE = "[{TimeStampFromStart}] [{Level}] {Message}{NewLine}{Properties}{NewLine}{Exception}"
SONG_LOG_TEMPLATE = "{Message}{NewLine}Additional info:{Properties}{NewLine}{Exception}"


class ReportCallback(Protocol):
    """宿主程序提供的报告回调（通常弹出报告对话框），同步调用，应尽快返回"""

    def __call__(
        self,
        *,
        crash: bool,
        show_continue: bool,
        version_tag: str,
        log: str,
        last_error: str,
    ) -> None: ...


class SessionState(Enum):
    """会话状态"""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


class LogSession:
    """
    崩溃感知的日志会话

    每个会话对象独立持有自己的通道、标记和内存缓存，测试中可以并存多个会话。
    内存缓存属于会话对象本身: 重新 init 不会清空它。
    """

    def __init__(self, settings: LogSettings | None = None):
        """
        Args:
            settings: 通道相关配置（调试输出、刷盘间隔、保留代数），默认从环境读取
        """
        self.settings = settings or LogSettings()

        self._lock = threading.RLock()
        self._state = SessionState.UNINITIALIZED
        self._started_at = time.monotonic()

        self._main_buffer = BufferSink()
        self._main = LogChannel.silent("Main")
        self._song = LogChannel.silent("Song")

        self._marker: CrashMarker | None = None
        self._report_callback: ReportCallback | None = None
        self._current_version = self.settings.current_version
        self._main_log_path: Path | None = None
        self._song_log_path: Path | None = None
        self._previous_excepthook = None

        # 已经报告过故障的 Sink，每个 Sink 只报告一次
        self._sink_error_lock = threading.Lock()
        self._reported_sinks: set[Sink] = set()

    # ------------------------------------------------------------------
    # 属性
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def main(self) -> LogChannel:
        """主日志通道（未初始化时为静默通道）"""
        return self._main

    @property
    def song(self) -> LogChannel:
        """歌曲信息日志通道（未初始化时为静默通道）"""
        return self._song

    @property
    def current_version(self) -> str:
        return self._current_version

    @property
    def crash_marker_path(self) -> Path | None:
        return self._marker.path if self._marker else None

    @property
    def main_log_path(self) -> Path | None:
        return self._main_log_path

    @property
    def song_log_path(self) -> Path | None:
        return self._song_log_path

    def buffer_snapshot(self) -> str:
        """本进程内主日志的全部文本"""
        self._main_buffer.flush()
        return self._main_buffer.snapshot()

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def init(
        self,
        log_folder: str | Path,
        main_log_file_name: str,
        song_log_file_name: str,
        crash_marker_file_name: str,
        current_version: str,
        report_callback: ReportCallback,
    ) -> None:
        """
        启动日志会话

        如果上一次运行留下了同一版本的崩溃标记，并且上一次的主日志还在，
        会先用上一次的日志内容调用 report_callback(crash=True, ...)。
        版本不同或旧日志不存在时不报告: 别的版本的崩溃不归当前版本负责。

        对已经 ACTIVE 的会话再次 init 会先正常关闭它（同一进程内，不算崩溃）。

        Raises:
            LogInitError: 日志目录、崩溃标记或日志文件不可访问；此时已写入的新标记会被删除，
                会话保持 UNINITIALIZED / CLOSED，通道仍为静默通道
        """
        with self._lock:
            if self._state is SessionState.ACTIVE:
                logger.info("Log session re-initialized while active, closing it first")
                self.close()

            log_folder = Path(log_folder)
            marker = CrashMarker(log_folder / crash_marker_file_name)
            main_log_path = log_folder / main_log_file_name
            song_log_path = log_folder / song_log_file_name

            # 1-2. 创建目录，检查上一次运行的崩溃标记
            try:
                log_folder.mkdir(parents=True, exist_ok=True)
                crashed_version = marker.consume_if_present()
                crash_log = None
                if crashed_version == current_version and main_log_path.exists():
                    crash_log = main_log_path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise LogInitError(f"Cannot check crash marker in {log_folder}: {e}") from e

            if crashed_version is not None and crash_log is None:
                logger.info(
                    f"Previous run of version {crashed_version!r} did not shut down cleanly, "
                    f"not reporting it for version {current_version!r}"
                )

            if crash_log is not None:
                logger.warning(f"Previous run of version {crashed_version!r} crashed, showing reporter")
                report_callback(
                    crash=True,
                    show_continue=True,
                    version_tag=crashed_version,
                    log=crash_log,
                    last_error=self.settings.crash_message,
                )

            # 3-5. 写新标记，轮转日志，创建通道
            marker_written = False
            try:
                marker.write_new(current_version)
                marker_written = True
                roll_logs(main_log_path, self.settings.retained_generations)
                roll_logs(song_log_path, self.settings.retained_generations)
                main, song = self._build_channels(main_log_path, song_log_path)
            except OSError as e:
                # 初始化失败时不留下崩溃标记
                if marker_written:
                    try:
                        marker.remove()
                    except OSError as remove_error:
                        logger.warning(f"Cannot remove crash marker {marker.path}: {remove_error}")
                raise LogInitError(f"Cannot initialize log files in {log_folder}: {e}") from e

            self._marker = marker
            self._report_callback = report_callback
            self._current_version = current_version
            self._main_log_path = main_log_path
            self._song_log_path = song_log_path
            self._main = main
            self._song = song
            self._state = SessionState.ACTIVE

        logger.info(f"Log session started in {log_folder} (version {current_version})")

    def init_from_settings(self, report_callback: ReportCallback) -> None:
        """用 LogSettings 中的目录、文件名和版本号启动"""
        s = self.settings
        self.init(
            s.log_folder,
            s.main_log_file_name,
            s.song_log_file_name,
            s.crash_marker_file_name,
            s.current_version,
            report_callback,
        )

    def _build_channels(self, main_log_path: Path, song_log_path: Path) -> tuple[LogChannel, LogChannel]:
        """创建 Main / Song 两个通道；中途失败时关闭已打开的文件"""
        opened: list[FileSink] = []
        try:
            main_file = FileSink(
                main_log_path,
                flush_interval=self.settings.main_flush_interval,
                on_flush_error=lambda sink, e: self._report_sink_failure("Main", sink, e),
            )
            opened.append(main_file)
            song_file = FileSink(
                song_log_path,
                flush_interval=self.settings.song_flush_interval,
                on_flush_error=lambda sink, e: self._report_sink_failure("Song", sink, e),
            )
            opened.append(song_file)
        except OSError:
            for sink in opened:
                sink.close()
            raise

        main_sinks: list[Sink] = [self._main_buffer, main_file]
        song_sinks: list[Sink] = [song_file]
        if self.settings.debug:
            main_sinks.append(ConsoleSink())
            song_sinks.append(ConsoleSink(prefix="[SongInfo] "))

        main = LogChannel(
            "Main",
            MAIN_LOG_TEMPLATE,
            main_sinks,
            enrich_thread_id=True,
            started_at=self._started_at,
            on_sink_error=self._on_sink_error,
        )
        song = LogChannel(
            "Song",
            SONG_LOG_TEMPLATE,
            song_sinks,
            started_at=self._started_at,
            on_sink_error=self._on_sink_error,
        )
        return main, song

    def _on_sink_error(self, channel: LogChannel, sink: Sink, exc: BaseException) -> None:
        self._report_sink_failure(channel.name, sink, exc)

    def _report_sink_failure(self, channel_name: str, sink: Sink, exc: BaseException) -> None:
        """
        Sink 写入/刷盘失败: 记一条 warning，并通过报告回调告知用户

        同一个 Sink 只报告一次，磁盘已满时不会每条记录弹一次对话框。
        """
        logger.warning(f"[{channel_name}] sink {sink.label} failed: {exc}")

        with self._sink_error_lock:
            if sink in self._reported_sinks:
                return
            self._reported_sinks.add(sink)

        callback = self._report_callback
        if callback is None:
            return
        callback(
            crash=False,
            show_continue=True,
            version_tag=self._current_version,
            log=self.buffer_snapshot(),
            last_error=format_message_template(
                "Writing to log sink {Sink} of channel {Channel} failed: {Error}",
                [sink.label, channel_name, exc],
            ),
        )

    def close(self) -> None:
        """
        正常关闭: 刷新并释放两个通道，恢复为静默通道，删除崩溃标记

        未初始化或已关闭的会话调用 close 不做任何事。

        Raises:
            LogSessionError: 刷盘或删除标记失败（通道仍会被释放，状态仍变为 CLOSED）
        """
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                return

            self.uninstall_excepthook()

            errors: list[Exception] = []
            for channel in (self._main, self._song):
                try:
                    channel.dispose()
                except Exception as e:
                    errors.append(e)
            self._main = LogChannel.silent("Main")
            self._song = LogChannel.silent("Song")

            try:
                self._marker.remove()
            except OSError as e:
                errors.append(e)

            self._state = SessionState.CLOSED

        if errors:
            raise LogSessionError(f"Log session did not close cleanly: {errors[0]}") from errors[0]
        logger.info("Log session closed")

    def __enter__(self) -> "LogSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # 报告
    # ------------------------------------------------------------------

    def show_log_assistant(
        self,
        message_template: str,
        values: list[Any] | tuple[Any, ...] | None = None,
        crash: bool = False,
        show_continue: bool = True,
    ) -> None:
        """
        把本进程的主日志交给报告回调

        Args:
            message_template: 错误描述模板，按位置填入 values
            values: 模板参数
            crash: 是否为崩溃
            show_continue: 是否允许用户继续运行
        """
        callback = self._report_callback
        if callback is None:
            logger.warning("show_log_assistant called before the log session was initialized")
            return

        self._main.flush()
        callback(
            crash=crash,
            show_continue=show_continue,
            version_tag=self._current_version,
            log=self.buffer_snapshot(),
            last_error=format_message_template(message_template, values),
        )

    def log_error(
        self,
        message_template: str,
        *values: Any,
        exception: BaseException | None = None,
        show: bool = False,
        crash: bool = False,
        **properties: Any,
    ) -> None:
        """写一条 Error 到主日志，show=True 时同时弹出报告"""
        self._main.error(message_template, *values, exception=exception, **properties)
        if show:
            self.show_log_assistant(message_template, values, crash=crash, show_continue=not crash)

    def install_excepthook(self) -> None:
        """
        安装未捕获异常钩子

        未捕获的异常先以 Fatal 写入主日志，再以 crash=True 弹出报告，
        最后交给原来的钩子。close() 时自动卸载。
        """
        with self._lock:
            if self._previous_excepthook is not None:
                return
            self._previous_excepthook = sys.excepthook
            sys.excepthook = self._handle_uncaught

    def uninstall_excepthook(self) -> None:
        with self._lock:
            if self._previous_excepthook is None:
                return
            if sys.excepthook == self._handle_uncaught:
                sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None

    def _handle_uncaught(self, exc_type, exc, tb) -> None:
        previous = self._previous_excepthook or sys.__excepthook__
        if not issubclass(exc_type, KeyboardInterrupt):
            try:
                self._main.fatal("Unhandled {ExceptionType}: {Reason}", exc_type.__name__, exc, exception=exc)
                self.show_log_assistant("Unhandled {ExceptionType}: {Reason}", [exc_type.__name__, exc], crash=True, show_continue=False)
            except Exception:
                logger.exception("Crash reporting failed")
        previous(exc_type, exc, tb)

    def __repr__(self) -> str:
        return f"LogSession(state={self._state.value}, version={self._current_version!r})"
