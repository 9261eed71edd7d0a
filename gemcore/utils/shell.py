"""Shell 命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，扩展构建器依赖注入的
执行器运行外部工具，测试时替换为假实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from gemcore.core.exceptions import BuildError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """合并后的 stdout + stderr"""
        return self.stdout + self.stderr


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）

    不设超时：外部构建工具运行到结束为止，由退出码决定成败。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        try:
            r = subprocess.run(
                args, capture_output=True, cwd=cwd, check=False,
                encoding="utf-8", errors="replace",
            )
        except FileNotFoundError as e:
            # 可执行文件不存在，按 shell 惯例返回 127
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


def run_cmd(
    cmd: list[str], results: list[str], executor: CommandExecutor,
    *, label: str = "cmd",
) -> CommandResult:
    """在当前工作目录执行命令，命令行与输出追加到 results

    失败时抛 BuildError，携带到目前为止采集的全部输出。
    """
    line = shlex.join(cmd)
    logger.info("  %s: %s", label, line)
    results.append(line)
    r = executor.execute(cmd, cwd=os.getcwd())
    output = r.output.rstrip("\n")
    if output:
        results.append(output)
    if not r.success:
        raise BuildError(f"{label}失败 (rc={r.returncode}): {line}", output=results)
    return r
