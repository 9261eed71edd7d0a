"""可执行入口生成测试：shebang 改写、包装脚本、符号链接版本规则"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gemcore.core.exceptions import FilePermissionError
from gemcore.core.models import Specification
from gemcore.services.install.stubs import StubGenerator, linked_version
from gemcore.utils.ui import RecordingUI

RUBY = "/opt/ruby/bin/ruby"


def _spec(version: str = "1.0", **fields) -> Specification:
    return Specification.from_dict({
        "name": "foo", "version": version, "executables": ["foo"], **fields,
    })


def _gem_dir(root: Path, spec: Specification, first_line: bytes = b"#!/usr/bin/env ruby\n") -> Path:
    gem_dir = root / "gems" / spec.full_name
    exe = gem_dir / spec.bindir / "foo"
    exe.parent.mkdir(parents=True, exist_ok=True)
    exe.write_bytes(first_line + b"puts 'hello'\n")
    exe.chmod(0o644)
    return gem_dir


def _generator(arch: str = "x86_64-linux", **kwargs) -> StubGenerator:
    return StubGenerator(ruby=RUBY, ui=RecordingUI(), arch=arch, **kwargs)


class TestShebang:
    @pytest.mark.parametrize("first_line,expected", [
        (b"#!/usr/bin/env ruby -w\n", f"#!{RUBY} -w"),
        (b"#!/usr/bin/ruby\n", f"#!{RUBY}"),
        (b"#!/usr/local/bin/ruby1.8 -w -Ku\n", f"#!{RUBY} -w -Ku"),
        (b"#! ruby\r\n", f"#!{RUBY}"),
        (b"puts 'no shebang'\n", f"#!{RUBY}"),
        (b"", f"#!{RUBY}"),
        (b"#!/bin/sh\n", "#!/bin/sh"),
    ])
    def test_rewrite(self, tmp_path: Path, first_line: bytes, expected: str) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec, first_line)
        assert _generator().shebang(gem_dir / "bin" / "foo") == expected

    @pytest.mark.parametrize("ruby", ["/opt/ruby/bin/ruby3.2", "/opt/jruby/bin/jruby"])
    def test_rewrite_independent_of_binary_name(self, tmp_path: Path, ruby: str) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec, b"#!/usr/bin/env ruby -w\n")
        gen = StubGenerator(ruby=ruby, ui=RecordingUI(), arch="x86_64-linux")
        assert gen.shebang(gem_dir / "bin" / "foo") == f"#!{ruby} -w"

    def test_env_shebang_ignores_existing_line(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec, b"#!/usr/local/bin/ruby -w\n")
        gen = _generator(env_shebang=True)
        assert gen.shebang(gem_dir / "bin" / "foo") == "#!/usr/bin/env ruby"


class TestWrapperScript:
    def test_script_generated(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec, b"#!/usr/bin/env ruby -w\n")
        bindir = tmp_path / "bin"

        stubs = _generator().generate(spec, gem_dir, bindir)

        script = bindir / "foo"
        assert stubs == [script]
        lines = script.read_text().splitlines()
        assert lines[0] == f"#!{RUBY} -w"
        text = script.read_text()
        assert "gem 'foo', version" in text
        assert "load 'foo'" in text
        assert "ARGV.first =~ /^_(.*)_$/" in text
        assert os.access(script, os.X_OK)
        assert not (bindir / "foo.cmd").exists()

    def test_underlying_executable_marked_executable(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec)
        _generator().generate(spec, gem_dir, tmp_path / "bin")
        assert os.access(gem_dir / "bin" / "foo", os.X_OK)

    def test_regenerated_on_every_install(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec)
        bindir = tmp_path / "bin"
        bindir.mkdir()
        (bindir / "foo").write_text("stale\n")
        _generator().generate(spec, gem_dir, bindir)
        assert (bindir / "foo").read_text().startswith("#!")

    def test_replaces_symlink_without_touching_target(self, tmp_path: Path) -> None:
        old = _spec("1.0")
        old_dir = _gem_dir(tmp_path, old)
        bindir = tmp_path / "bin"
        _generator(wrappers=False).generate(old, old_dir, bindir)
        original = (old_dir / "bin" / "foo").read_bytes()

        new = _spec("2.0")
        _generator().generate(new, _gem_dir(tmp_path, new), bindir)

        assert not (bindir / "foo").is_symlink()
        assert "gem 'foo', version" in (bindir / "foo").read_text()
        assert (old_dir / "bin" / "foo").read_bytes() == original

    def test_windows_cmd_shim(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec)
        bindir = tmp_path / "bin"

        stubs = _generator(arch="i386-mswin32").generate(spec, gem_dir, bindir)

        assert stubs == [bindir / "foo", bindir / "foo.cmd"]
        assert (bindir / "foo.cmd").read_text() == f'@{RUBY} "{bindir / "foo"}" %*\n'

    def test_no_executables_is_noop(self, tmp_path: Path) -> None:
        spec = Specification.from_dict({"name": "foo", "version": "1.0"})
        assert _generator().generate(spec, tmp_path / "gem", tmp_path / "bin") == []
        assert not (tmp_path / "bin").exists()

    def test_bindir_not_writable(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("gemcore.services.install.stubs.is_writable", lambda p: False)
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec)
        with pytest.raises(FilePermissionError, match="没有写入权限"):
            _generator().generate(spec, gem_dir, tmp_path / "bin")


class TestSymlink:
    def _install(self, root: Path, version: str) -> Path:
        spec = _spec(version)
        gem_dir = _gem_dir(root, spec)
        _generator(wrappers=False).generate(spec, gem_dir, root / "bin")
        return gem_dir

    def test_link_created(self, tmp_path: Path) -> None:
        gem_dir = self._install(tmp_path, "1.0")
        link = tmp_path / "bin" / "foo"
        assert link.is_symlink()
        assert Path(os.readlink(link)) == gem_dir / "bin" / "foo"
        assert os.access(gem_dir / "bin" / "foo", os.X_OK)

    @pytest.mark.parametrize("existing,new,expected", [
        ("2.0", "1.0", "2.0"),
        ("2.0", "2.0", "2.0"),
        ("2.0", "2.1", "2.1"),
        ("1.9", "1.10", "1.10"),
    ])
    def test_version_rule(self, tmp_path: Path, existing: str, new: str, expected: str) -> None:
        self._install(tmp_path, existing)
        link = tmp_path / "bin" / "foo"
        first_target = os.readlink(link)

        self._install(tmp_path, new)

        assert os.readlink(link) == str(tmp_path / "gems" / f"foo-{expected}" / "bin" / "foo")
        if expected == existing:
            assert os.readlink(link) == first_target

    def test_plain_file_replaced(self, tmp_path: Path) -> None:
        bindir = tmp_path / "bin"
        bindir.mkdir()
        (bindir / "foo").write_text("old wrapper\n")
        self._install(tmp_path, "1.0")
        assert (bindir / "foo").is_symlink()

    def test_dangling_link_replaced(self, tmp_path: Path) -> None:
        bindir = tmp_path / "bin"
        bindir.mkdir()
        (bindir / "foo").symlink_to(tmp_path / "nowhere" / "foo")
        gem_dir = self._install(tmp_path, "1.0")
        assert Path(os.readlink(bindir / "foo")) == gem_dir / "bin" / "foo"

    def test_windows_falls_back_to_wrapper(self, tmp_path: Path) -> None:
        spec = _spec()
        gem_dir = _gem_dir(tmp_path, spec)
        gen = _generator(arch="i386-mswin32", wrappers=False)

        stubs = gen.generate(spec, gem_dir, tmp_path / "bin")

        assert not (tmp_path / "bin" / "foo").is_symlink()
        assert (tmp_path / "bin" / "foo.cmd") in stubs
        assert gen.ui.warnings == ["当前平台不支持符号链接，改为生成包装脚本"]


class TestLinkedVersion:
    def test_extracts_version_segment(self) -> None:
        assert str(linked_version("/r/gems/foo-1.2.3/bin/foo", "foo")) == "1.2.3"

    def test_hyphenated_name(self) -> None:
        assert str(linked_version("/r/gems/foo-bar-0.5/bin/fb", "foo-bar")) == "0.5"

    def test_no_version_segment(self) -> None:
        assert linked_version("/usr/local/bin/foo", "foo") is None
