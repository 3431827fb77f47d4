"""
vocalog - 崩溃感知的双通道日志子系统

功能:
- 主日志 / 歌曲信息日志两个通道，写入轮转文件
- 主日志在内存中保留一份副本，供崩溃报告读取
- 崩溃标记文件：检测上一次运行是否异常退出
- 简易消息模板格式化（仅作兜底渲染）
"""


def _resolve_version() -> str:
    """
    解析版本号。

    开发模式下读取源码根目录的 pyproject.toml，否则回退到已安装包的元数据。
    """
    from pathlib import Path

    version = "0.0.0-dev"

    # 1. editable 安装时 pyproject.toml 始终最新
    project_root = Path(__file__).parent.parent.parent
    pyproject_path = project_root / "pyproject.toml"
    if pyproject_path.exists():
        try:
            import tomllib
            with open(pyproject_path, "rb") as f:
                return tomllib.load(f)["project"]["version"]
        except (OSError, KeyError, ValueError):
            pass

    # 2. 回退到已安装包的元数据
    try:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as meta_version
        version = meta_version("vocalog")
    except PackageNotFoundError:
        pass

    return version


__version__ = _resolve_version()

from .channel import LogChannel, LogEvent, LogLevel  # noqa: E402
from .errors import LogInitError, LogSessionError, VocalogError  # noqa: E402
from .handlers import ChannelHandler  # noqa: E402
from .marker import CrashMarker  # noqa: E402
from .roller import roll_logs  # noqa: E402
from .session import LogSession, SessionState  # noqa: E402
from .sinks import BufferSink, ConsoleSink, FileSink, Sink  # noqa: E402
from .template import format_message_template  # noqa: E402

__all__ = [
    "__version__",
    "BufferSink",
    "ChannelHandler",
    "ConsoleSink",
    "CrashMarker",
    "FileSink",
    "LogChannel",
    "LogEvent",
    "LogInitError",
    "LogLevel",
    "LogSession",
    "LogSessionError",
    "SessionState",
    "Sink",
    "VocalogError",
    "format_message_template",
    "roll_logs",
]
