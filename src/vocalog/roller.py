"""
日志文件轮转

启动时把现有日志依次改名为 <name>.1、<name>.2 ...，为新日志腾出位置:

    Main.log.1 -> Main.log.2   (原来的 Main.log.2 被覆盖丢弃)
    Main.log   -> Main.log.1

必须从最高代往最低代处理，否则会在移动之前把文件覆盖掉。
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def generation_path(base_path: Path, index: int) -> Path:
    """第 index 代的文件路径，index 为 0 时就是 base_path 本身"""
    base_path = Path(base_path)
    if index == 0:
        return base_path
    return base_path.with_name(f"{base_path.name}.{index}")


def list_generations(base_path: str | Path) -> list[tuple[int, Path]]:
    """
    列出现存的各代文件

    Returns:
        [(代数, 路径), ...]，按代数升序，0 代表当前日志本身
    """
    base_path = Path(base_path)
    found = []
    if base_path.exists():
        found.append((0, base_path))
    if not base_path.parent.exists():
        return found

    prefix = base_path.name + "."
    for candidate in base_path.parent.glob(f"{base_path.name}.*"):
        suffix = candidate.name[len(prefix):]
        if suffix.isdigit() and int(suffix) > 0:
            found.append((int(suffix), candidate))

    return sorted(found)


def roll_logs(base_path: str | Path, retain: int = 2) -> None:
    """
    轮转日志文件

    源文件不存在时静默跳过；其他文件系统错误（权限等）向上抛出。

    轮转之后，超出 retain 的旧代（例如调低保留代数后遗留的 .3）一并删除。

    Args:
        base_path: 当前日志文件路径
        retain: 保留的历史代数，0 表示直接删除当前日志和所有历史代

    Raises:
        ValueError: retain 为负数
        OSError: 改名/删除失败
    """
    if retain < 0:
        raise ValueError(f"retain must be >= 0, got {retain}")

    base_path = Path(base_path)

    if retain == 0:
        base_path.unlink(missing_ok=True)

    for index in range(retain, 0, -1):
        source = generation_path(base_path, index - 1)
        target = generation_path(base_path, index)
        try:
            # os.replace 会覆盖已存在的 target，最旧的一代就此丢弃
            os.replace(source, target)
        except FileNotFoundError:
            continue
        logger.debug(f"Rolled {source.name} -> {target.name}")

    for generation, path in list_generations(base_path):
        if generation > retain:
            path.unlink(missing_ok=True)
            logger.debug(f"Discarded stale generation {path.name}")
