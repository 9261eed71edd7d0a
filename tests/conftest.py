"""测试共享 fixture：假命令执行器 + 归档工厂

  make_archive(tmp_path, files=..., **spec_fields) → 归档路径
  FakeExecutor: 记录每次调用的命令与当时的工作目录，可按程序名模拟失败
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Callable
from pathlib import Path

import pytest

from gemcore.core.config import Config
from gemcore.core.models import Specification
from gemcore.core.package_format import write_package
from gemcore.utils.shell import CommandResult

RUBY = "/opt/ruby/bin/ruby"


class FakeExecutor:
    """CommandExecutor 的内存实现"""

    def __init__(
        self,
        fail_on: set[str] | None = None,
        on_call: Callable[[list[str]], None] | None = None,
    ) -> None:
        self.calls: list[tuple[list[str], str]] = []
        self.fail_on = fail_on or set()
        self.on_call = on_call

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        self.calls.append((args, os.getcwd()))
        if self.on_call is not None:
            self.on_call(args)
        if Path(args[0]).name in self.fail_on:
            return CommandResult(returncode=2, stdout="", stderr=f"{args[0]}: build failed\n")
        return CommandResult(returncode=0, stdout=f"ran {shlex.join(args)}\n", stderr="")

    @property
    def programs(self) -> list[str]:
        return [Path(args[0]).name for args, _ in self.calls]


def write_makefile(args: list[str]) -> None:
    """模拟 extconf 生成 Makefile"""
    if len(args) > 1 and "extconf" in args[1]:
        Path("Makefile").write_text(
            "RUBYARCHDIR = $(sitearchdir)$(target_prefix)\n"
            "RUBYLIBDIR = $(sitelibdir)$(target_prefix)\n"
            "all:\n",
        )


def spec_for(name: str = "foo", version: str = "1.0.0", **fields) -> Specification:
    return Specification.from_dict({"name": name, "version": version, **fields})


def _make_archive(
    dest: Path,
    files: dict[str, bytes] | None = None,
    name: str = "foo",
    version: str = "1.0.0",
    **fields,
) -> Path:
    spec = spec_for(name, version, **fields)
    if files is None:
        files = {"lib/foo.rb": b"module Foo; end\n"}
    return write_package(dest / f"{spec.full_name}.gem", spec, files)


@pytest.fixture()
def make_archive(tmp_path: Path):
    """归档工厂 fixture

    用法:
        archive = make_archive(files={"bin/foo": b"#!/usr/bin/env ruby\\n"},
                               executables=["foo"])
    """
    src = tmp_path / "src"
    src.mkdir()

    def factory(**kwargs) -> Path:
        return _make_archive(src, **kwargs)

    return factory


@pytest.fixture()
def install_root(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture()
def config(install_root: Path) -> Config:
    return Config(install_dir=str(install_root), ruby=RUBY, arch="x86_64-linux")


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor(on_call=write_makefile)


@pytest.fixture()
def executor_cls() -> type[FakeExecutor]:
    """需要自定义失败程序时使用: executor_cls(fail_on={"make"})"""
    return FakeExecutor


@pytest.fixture()
def makefile_writer() -> Callable[[list[str]], None]:
    return write_makefile
