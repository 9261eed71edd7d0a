"""领域协议定义

安装编排器依赖的外部协作者都以 Protocol 描述，
调用方可注入任意满足协议的实现（测试时注入内存实现）。
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from gemcore.core.version import Requirement


# =========================================================================
# 用户交互协议
# =========================================================================

class UserInteraction(Protocol):
    """面向用户的输出通道"""

    def say(self, message: str) -> None:
        """普通提示信息"""
        ...

    def alert_warning(self, message: str) -> None:
        """警告信息"""
        ...


# =========================================================================
# 已安装包索引协议
# =========================================================================

class InstalledIndex(Protocol):
    """已安装包索引：返回满足约束的已安装版本数量"""

    def satisfies(self, name: str, requirement: Requirement) -> int:
        ...


# =========================================================================
# 扩展构建器协议
# =========================================================================

class Builder(Protocol):
    """原生扩展构建策略

    在扩展描述文件所在目录中执行，返回追加后的输出行；
    失败时抛 BuildError。
    """

    def build(
        self, extension: str, install_dir: Path, lib_dir: Path,
        results: list[str],
    ) -> list[str]:
        ...
