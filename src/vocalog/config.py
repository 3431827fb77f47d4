"""
vocalog 配置模块

所有字段都可以用 VOCALOG_ 前缀的环境变量或 .env 文件覆盖，例如:
    VOCALOG_LOG_FOLDER=/var/log/karaoke
    VOCALOG_DEBUG=true
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from . import __version__


class LogSettings(BaseSettings):
    """日志会话配置"""

    # === 文件位置 ===
    log_folder: Path = Field(default=Path("logs"), description="日志目录")
    main_log_file_name: str = Field(default="Main.log", description="主日志文件名")
    song_log_file_name: str = Field(
        default="SongInformation.log", description="歌曲信息日志文件名"
    )
    crash_marker_file_name: str = Field(
        default="CrashMarker.txt", description="崩溃标记文件名"
    )

    # === 版本 ===
    # 崩溃标记里记录的版本号；只有同一版本的崩溃才会被报告
    current_version: str = Field(default=__version__, description="当前运行版本号")

    # === 通道 ===
    debug: bool = Field(default=False, description="是否把日志同时输出到控制台")
    main_flush_interval: float = Field(
        default=30.0, gt=0, description="主日志刷盘间隔（秒）"
    )
    song_flush_interval: float = Field(
        default=60.0, gt=0, description="歌曲信息日志刷盘间隔（秒）"
    )
    retained_generations: int = Field(
        default=2, ge=0, description="每个日志文件保留的历史代数"
    )

    crash_message: str = Field(
        default="The process crashed during the previous execution.",
        description="检测到上次崩溃时传给报告回调的错误描述",
    )

    model_config = {
        "env_prefix": "VOCALOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        # 忽略空字符串环境变量，否则 "" 会被解析成 int/bool 导致启动失败
        "env_ignore_empty": True,
    }

    @property
    def main_log_path(self) -> Path:
        """主日志完整路径"""
        return self.log_folder / self.main_log_file_name

    @property
    def song_log_path(self) -> Path:
        """歌曲信息日志完整路径"""
        return self.log_folder / self.song_log_file_name

    @property
    def crash_marker_path(self) -> Path:
        """崩溃标记完整路径"""
        return self.log_folder / self.crash_marker_file_name
