"""安全解压器

把归档条目写入目标目录。两阶段执行:
  1. 预检: 逐条校验路径，任何一条越界则整体失败，不写入任何文件
  2. 写入: 按需创建中间目录，逐条写出字节内容

越界判定:
  - 绝对路径（含 Windows 盘符）
  - 含 ".." 段
  - 解析符号链接后不严格位于规范化目标目录之下
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath, PureWindowsPath

from gemcore.core.exceptions import PathTraversalError
from gemcore.core.models import FileEntry

logger = logging.getLogger(__name__)


def _check_destination(destination: str | Path) -> Path:
    directory = Path(destination)
    if not directory.is_absolute():
        raise ValueError(f"安装目录必须是绝对路径: {str(destination)!r}")
    return directory.resolve()


def safe_target(destination: Path, entry_path: str) -> Path:
    """计算条目的落盘路径，越界时抛 PathTraversalError

    destination 必须已经过 resolve()。
    """
    rel = PurePosixPath(entry_path.replace("\\", "/"))
    if rel.is_absolute() or PureWindowsPath(entry_path).drive:
        raise PathTraversalError(entry_path, str(destination))
    if not rel.parts or ".." in rel.parts:
        raise PathTraversalError(entry_path, str(destination))

    target = (destination / Path(*rel.parts)).resolve()
    if destination not in target.parents:
        raise PathTraversalError(entry_path, str(destination))
    return target


def extract_files(destination: str | Path, entries: Iterable[FileEntry]) -> list[Path]:
    """解压全部条目到 destination，返回写出的文件路径（按条目顺序）"""
    directory = _check_destination(destination)
    entries = list(entries)

    planned = [(safe_target(directory, e.path), e) for e in entries]

    written: list[Path] = []
    for target, entry in planned:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(entry.data)
        if entry.mode:
            # 保留属主写权限，重装同一版本时才能覆盖
            target.chmod(entry.mode | 0o200)
        written.append(target)
    logger.info("已解压 %d 个文件到 %s", len(written), directory)
    return written
