"""原生扩展构建器 - Strategy Pattern

按扩展描述文件名选择构建器:
  extconf*            ExtConfBuilder     运行时执行 extconf 生成 Makefile，再 make
  configure*          ConfigureBuilder   sh ./configure --prefix=<lib_dir>，再 make
  Rakefile/mkrf_conf  RakeBuilder        rake RUBYARCHDIR=<lib_dir> RUBYLIBDIR=<lib_dir>

构建器在描述文件所在目录中执行（由调度器切换工作目录），
输出逐行追加到 results，外部命令非零退出时抛 BuildError。
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from gemcore.core.exceptions import BuildError
from gemcore.utils.shell import CommandExecutor, LocalExecutor, run_cmd

logger = logging.getLogger(__name__)


class BuilderKind(str, Enum):
    """扩展构建器类型"""
    EXTCONF = "extconf"
    CONFIGURE = "configure"
    TASK_RUNNER = "rake"
    UNKNOWN = "unknown"


def classify(extension: str) -> BuilderKind:
    """按文件名（不区分大小写）识别构建系统，优先级 extconf > configure > rake"""
    name = os.path.basename(extension).lower()
    if "extconf" in name:
        return BuilderKind.EXTCONF
    if "configure" in name:
        return BuilderKind.CONFIGURE
    if "rakefile" in name or "mkrf_conf" in name:
        return BuilderKind.TASK_RUNNER
    return BuilderKind.UNKNOWN


# =========================================================================
# 构建器抽象基类
# =========================================================================


class BaseBuilder(ABC):
    """构建器公共接口与 make 流程"""

    def __init__(
        self,
        *,
        ruby: str = "ruby",
        make: str = "make",
        rake: str = "rake",
        build_args: list[str] | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.ruby = ruby
        self.make_program = make
        self.rake = rake
        self.build_args = list(build_args or [])
        self.executor = executor or LocalExecutor()

    @abstractmethod
    def build(
        self, extension: str, install_dir: Path, lib_dir: Path,
        results: list[str],
    ) -> list[str]:
        """在当前目录构建扩展，返回追加后的输出行"""

    def run(self, cmd: list[str], results: list[str]) -> None:
        run_cmd(cmd, results, self.executor, label=type(self).__name__)

    def make(self, lib_dir: Path, results: list[str]) -> None:
        """把 Makefile 的安装目录指向 lib_dir，然后 make && make install"""
        makefile = Path("Makefile")
        if not makefile.exists():
            raise BuildError("未找到 Makefile", output=results)

        text = makefile.read_text(encoding="utf-8", errors="replace")
        for var in ("RUBYARCHDIR", "RUBYLIBDIR"):
            text = re.sub(
                rf"^{var}\s*=\s*\$[^$]*",
                lambda _m, v=var: f"{v} = {lib_dir}",
                text, flags=re.MULTILINE,
            )
        makefile.write_text(text, encoding="utf-8")

        self.run([self.make_program], results)
        self.run([self.make_program, "install"], results)


# =========================================================================
# 具体构建器
# =========================================================================


class ExtConfBuilder(BaseBuilder):
    """extconf 脚本生成 Makefile 后 make"""

    def build(
        self, extension: str, install_dir: Path, lib_dir: Path,
        results: list[str],
    ) -> list[str]:
        self.run([self.ruby, os.path.basename(extension), *self.build_args], results)
        self.make(lib_dir, results)
        return results


class ConfigureBuilder(BaseBuilder):
    """autoconf 风格 configure 脚本；已有 Makefile 时跳过 configure"""

    def build(
        self, extension: str, install_dir: Path, lib_dir: Path,
        results: list[str],
    ) -> list[str]:
        if not Path("Makefile").exists():
            self.run(["sh", "./configure", f"--prefix={lib_dir}"], results)
        self.make(lib_dir, results)
        return results


class RakeBuilder(BaseBuilder):
    """rake 任务构建；mkrf_conf 描述文件先由运行时执行生成 Rakefile"""

    def build(
        self, extension: str, install_dir: Path, lib_dir: Path,
        results: list[str],
    ) -> list[str]:
        if "mkrf_conf" in os.path.basename(extension).lower():
            self.run([self.ruby, os.path.basename(extension)], results)
        self.run(
            [self.rake, f"RUBYARCHDIR={lib_dir}", f"RUBYLIBDIR={lib_dir}"],
            results,
        )
        return results


# =========================================================================
# 构建器工厂
# =========================================================================

_BUILDERS: dict[BuilderKind, type[BaseBuilder]] = {
    BuilderKind.EXTCONF: ExtConfBuilder,
    BuilderKind.CONFIGURE: ConfigureBuilder,
    BuilderKind.TASK_RUNNER: RakeBuilder,
}


def get_builder(kind: BuilderKind, **kwargs) -> BaseBuilder | None:
    """根据类型获取构建器实例，UNKNOWN 返回 None"""
    cls = _BUILDERS.get(kind)
    if cls is None:
        return None
    return cls(**kwargs)
