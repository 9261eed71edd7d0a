"""文件系统辅助函数"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def working_directory(path: str | Path) -> Iterator[Path]:
    """临时切换进程工作目录，退出时无论成败都切回原目录"""
    start_dir = os.getcwd()
    os.chdir(path)
    try:
        yield Path.cwd()
    finally:
        os.chdir(start_dir)


def is_writable(path: str | Path) -> bool:
    """目录存在且当前进程可写"""
    p = Path(path)
    return p.is_dir() and os.access(p, os.W_OK)


def make_executable(path: str | Path) -> None:
    """追加 u/g/o 执行权限位"""
    p = Path(path)
    mode = p.stat().st_mode | 0o111
    p.chmod(mode)
    logger.debug("已设置可执行: %s (%o)", p, mode)
