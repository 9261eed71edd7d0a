"""可执行入口生成

为包声明的每个可执行文件在共享 bin 目录中生成入口，两种互斥策略:

  wrapper: 生成包装脚本（改写 shebang，可用 _VERSION_ 参数选择版本）；
           Windows 类平台额外生成同名 .cmd 启动器
  symlink: 创建指向包版本目录内可执行文件的符号链接，已有链接指向的
           版本不低于当前版本时保持不动；不支持符号链接的平台自动退回 wrapper

生成入口前总会为包内可执行文件追加执行权限位。
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from gemcore.core.exceptions import FilePermissionError
from gemcore.core.models import Specification
from gemcore.core.protocols import UserInteraction
from gemcore.core.runtime import is_windows
from gemcore.core.version import Version
from gemcore.utils.fs import is_writable, make_executable

logger = logging.getLogger(__name__)

# 解释器段只要含 ruby 即改写，不依赖配置的二进制名
_SHEBANG_RE = re.compile(r"\A#!\s*(?:\S*/env\s+)?\S*ruby\S*")

SCRIPT_TEMPLATE = """\
{shebang}
#
# This file was generated by gemcore.
#
# The application '{name}' is installed as part of a package, and
# this file is here to facilitate running it.
#

require 'rubygems'
version = "> 0"
if ARGV.first =~ /^_(.*)_$/ and Gem::Version.correct? $1 then
  version = $1
  ARGV.shift
end
gem '{name}', version
load '{filename}'
"""


class StubGenerator:
    """可执行入口生成器"""

    def __init__(
        self,
        *,
        ruby: str,
        ui: UserInteraction,
        arch: str,
        wrappers: bool = True,
        env_shebang: bool = False,
    ) -> None:
        self.ruby = ruby
        self.runtime_name = Path(ruby).name or "ruby"
        self.ui = ui
        self.arch = arch
        self.wrappers = wrappers
        self.env_shebang = env_shebang

    def generate(self, spec: Specification, gem_dir: Path, bindir: Path) -> list[Path]:
        """为 spec 的全部可执行文件生成入口，返回生成的入口路径"""
        if not spec.executables:
            return []

        bindir.mkdir(parents=True, exist_ok=True)
        if not is_writable(bindir):
            raise FilePermissionError(str(bindir.resolve()))

        stubs: list[Path] = []
        for filename in spec.executables:
            make_executable(gem_dir / spec.bindir / filename)
            if self.wrappers:
                stubs.extend(self.generate_script(spec, gem_dir, filename, bindir))
            else:
                stubs.extend(self.generate_symlink(spec, gem_dir, filename, bindir))
        logger.info("已生成 %d 个入口: %s -> %s", len(stubs), spec.full_name, bindir)
        return stubs

    # ------------------------------------------------------------------
    # 包装脚本
    # ------------------------------------------------------------------

    def generate_script(
        self, spec: Specification, gem_dir: Path, filename: str, bindir: Path,
    ) -> list[Path]:
        script = bindir / os.path.basename(filename)
        _unlink_symlink(script)
        script.write_text(self.script_text(spec, gem_dir, filename), encoding="utf-8")
        script.chmod(0o755)
        stubs = [script]
        if is_windows(self.arch):
            stubs.append(self.generate_windows_script(bindir, filename))
        return stubs

    def generate_windows_script(self, bindir: Path, filename: str) -> Path:
        """Windows 管道对无扩展名脚本支持不好，额外生成 .cmd 启动器"""
        cmd = bindir / (os.path.basename(filename) + ".cmd")
        target = bindir / os.path.basename(filename)
        _unlink_symlink(cmd)
        cmd.write_text(f'@{self.ruby} "{target}" %*\n', encoding="utf-8")
        return cmd

    def script_text(self, spec: Specification, gem_dir: Path, filename: str) -> str:
        return SCRIPT_TEMPLATE.format(
            shebang=self.shebang(gem_dir / spec.bindir / filename),
            name=spec.name,
            filename=filename,
        )

    def shebang(self, bin_path: Path) -> str:
        if self.env_shebang:
            return f"#!/usr/bin/env {self.runtime_name}"

        with open(bin_path, "rb") as f:
            first_line = f.readline().decode("utf-8", errors="replace")
        if first_line.startswith("#!"):
            # 只替换解释器部分，保留 -w 等尾随参数
            line = _SHEBANG_RE.sub(lambda _: "#!" + self.ruby, first_line, count=1)
        else:
            line = "#!" + self.ruby
        return line.rstrip()

    # ------------------------------------------------------------------
    # 符号链接
    # ------------------------------------------------------------------

    def generate_symlink(
        self, spec: Specification, gem_dir: Path, filename: str, bindir: Path,
    ) -> list[Path]:
        if is_windows(self.arch):
            self.ui.alert_warning("当前平台不支持符号链接，改为生成包装脚本")
            return self.generate_script(spec, gem_dir, filename, bindir)

        src = gem_dir / spec.bindir / filename
        dst = bindir / os.path.basename(filename)

        if dst.is_symlink() or dst.exists():
            if dst.is_symlink():
                current = linked_version(os.readlink(dst), spec.name)
                if current is not None and current >= spec.version:
                    logger.info(
                        "保留已有入口 %s (指向 %s，不低于 %s)",
                        dst, current, spec.version,
                    )
                    return []
            dst.unlink()

        dst.symlink_to(src)
        return [dst]


def _unlink_symlink(path: Path) -> None:
    """切换为包装脚本前移除旧的符号链接入口，避免写穿到链接目标"""
    if path.is_symlink():
        path.unlink()


def linked_version(link_target: str, name: str) -> Version | None:
    """从链接目标中取出 <name>-<version> 目录段的版本号"""
    prefix = f"{name}-"
    for part in reversed(Path(link_target).parts):
        if part.startswith(prefix) and Version.correct(part[len(prefix):]):
            return Version(part[len(prefix):])
    return None
