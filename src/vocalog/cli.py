"""
vocalog 命令行

只做检查和维护，不属于日志核心:
    vocalog status [FOLDER]      查看崩溃标记和各代日志文件（不会消费标记）
    vocalog roll PATH --retain 2 手动轮转一个日志文件
"""

from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import LogSettings
from .marker import CrashMarker
from .roller import list_generations, roll_logs

app = typer.Typer(
    name="vocalog",
    help="vocalog - 崩溃感知日志的检查工具",
    add_completion=False,
)

console = Console()


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


@app.command()
def status(
    folder: Path | None = typer.Argument(None, help="日志目录（默认取 VOCALOG_LOG_FOLDER）"),
):
    """显示崩溃标记和日志文件状态"""
    settings = LogSettings()
    log_folder = folder or settings.log_folder

    if not log_folder.exists():
        console.print(f"[red]日志目录不存在: {log_folder}[/red]")
        raise typer.Exit(1)

    marker = CrashMarker(log_folder / settings.crash_marker_file_name)
    version_tag = marker.peek()
    if version_tag is None:
        console.print("[green]没有崩溃标记: 上一次运行已正常关闭[/green]")
    else:
        console.print(
            f"[yellow]存在崩溃标记 (版本 {version_tag}): 程序正在运行，或上一次运行没有正常关闭[/yellow]"
        )

    table = Table(title=f"日志文件 ({log_folder})")
    table.add_column("文件", style="cyan")
    table.add_column("代", justify="right")
    table.add_column("大小", style="yellow", justify="right")
    table.add_column("修改时间")

    for name in (settings.main_log_file_name, settings.song_log_file_name):
        for generation, path in list_generations(log_folder / name):
            stat = path.stat()
            table.add_row(
                path.name,
                "当前" if generation == 0 else str(generation),
                _format_size(stat.st_size),
                datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
            )

    console.print(table)


@app.command()
def roll(
    path: Path = typer.Argument(..., help="要轮转的日志文件"),
    retain: int = typer.Option(2, "--retain", "-r", min=0, help="保留的历史代数"),
):
    """手动轮转一个日志文件"""
    try:
        roll_logs(path, retain)
    except OSError as e:
        console.print(f"[red]轮转失败: {e}[/red]")
        raise typer.Exit(1)

    kept = [p.name for g, p in list_generations(path) if g > 0]
    console.print(f"[green]已轮转 {path.name}[/green]，现存: {', '.join(kept) or '无'}")


@app.command()
def version():
    """显示版本号"""
    console.print(f"vocalog {__version__}")


def main() -> None:
    app()
