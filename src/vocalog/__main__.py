"""
vocalog 包入口点 - 支持 `python -m vocalog` 调用
"""

from vocalog.cli import app

if __name__ == "__main__":
    app()
