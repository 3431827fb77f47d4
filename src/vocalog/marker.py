"""
崩溃标记

启动时写入一个只包含版本号的小文件，正常关闭时删除。
下次启动时如果文件还在，说明上一次运行没有走到正常关闭，即发生了崩溃。

标记是一次性的: consume_if_present() 读取后立即删除，同一次崩溃不会在
之后的每次启动中被重复报告。
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class CrashMarker:
    """
    单个崩溃标记文件

    所有文件系统错误都直接抛出: 静默失败的崩溃检测没有意义。
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def write_new(self, version_tag: str) -> None:
        """（覆盖）写入当前版本号，纯文本单行"""
        self.path.write_text(version_tag, encoding="utf-8")

    def peek(self) -> str | None:
        """读取版本号但不删除标记；不存在时返回 None"""
        try:
            # utf-8-sig: 兼容带 BOM 的标记文件
            with open(self.path, encoding="utf-8-sig") as f:
                return f.readline().strip()
        except FileNotFoundError:
            return None

    def consume_if_present(self) -> str | None:
        """
        读取并删除标记

        Returns:
            标记中记录的版本号；标记不存在时返回 None
        """
        version_tag = self.peek()
        if version_tag is None:
            return None

        self.path.unlink()
        logger.info(f"Consumed crash marker {self.path.name} (version {version_tag!r})")
        return version_tag

    def remove(self) -> None:
        """不读取直接删除（正常关闭信号），文件不存在也不报错"""
        self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"CrashMarker({str(self.path)!r})"
