"""运行时与平台探测"""

from __future__ import annotations

import logging
import re
import sysconfig

from gemcore.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

_WINDOWS_ARCH = re.compile(r"dos|win32|mswin|mingw|^win-", re.IGNORECASE)


def default_arch() -> str:
    return sysconfig.get_platform()


def is_windows(arch: str) -> bool:
    """DOS/Windows 类平台：不支持符号链接，需要额外的 .cmd 启动器"""
    return bool(_WINDOWS_ARCH.search(arch))


def detect_runtime_version(
    ruby: str, executor: CommandExecutor | None = None,
) -> str:
    """调用运行时打印自身版本号，失败返回空串"""
    executor = executor or LocalExecutor()
    r = executor.execute([ruby, "-e", "print RUBY_VERSION"])
    if not r.success:
        logger.warning("无法探测运行时版本: %s (rc=%d)", ruby, r.returncode)
        return ""
    return r.stdout.strip()
