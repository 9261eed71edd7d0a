"""安装编排器

把一个包归档安装到安装根目录:

    <root>/
        specifications/<name>-<version>.spec   已安装包元数据（YAML）
        gems/<name>-<version>/...               解压后的文件
        cache/<archive>                         原始归档副本
        bin/<executable>                        可执行入口

步骤（任一步失败即中止，已写入的文件不回滚，保留供排查）:
  1. 读取归档 + 签名策略
  2. 版本/依赖闸门（force 时跳过）
  3. 安装根目录可写检查
  4-5. 创建 gems/<full-name> 并安全解压
  6. 生成可执行入口
  7. 构建原生扩展
  8-10. 写入 .spec、缓存归档
  11. 输出安装后提示
  12. 返回带 loaded_from 的安装记录

用法:
    from gemcore.services.install_service import Installer

    record = Installer("foo-1.0.gem", InstallOptions(install_dir="/opt/gems")).install()
"""

from __future__ import annotations

import functools
import logging
import shutil
from pathlib import Path

from gemcore import __version__
from gemcore.core.config import Config
from gemcore.core.exceptions import FilePermissionError, FormatError, InstallError
from gemcore.core.models import InstallRecord, Specification
from gemcore.core.package_format import PackageFormat
from gemcore.core.protocols import InstalledIndex, UserInteraction
from gemcore.core.runtime import default_arch, detect_runtime_version, is_windows
from gemcore.core.source_index import SPEC_DIR, SPEC_SUFFIX, SourceIndex
from gemcore.services.ext import ExtensionBuilder, ExtensionResult, get_builder
from gemcore.services.install import (
    DependencyGate,
    InstallOptions,
    StubGenerator,
    check_security,
    extract_files,
)
from gemcore.utils.fs import is_writable
from gemcore.utils.shell import CommandExecutor, LocalExecutor
from gemcore.utils.ui import ConsoleUI
from gemcore.utils.yaml_io import save_yaml

logger = logging.getLogger(__name__)

GEMS_DIR = "gems"
CACHE_DIR = "cache"


def ensure_subdirectories(install_dir: Path) -> None:
    """确保安装根目录下的 specifications/ 与 cache/ 存在"""
    for name in (SPEC_DIR, CACHE_DIR):
        (install_dir / name).mkdir(parents=True, exist_ok=True)


def write_spec(spec: Specification, spec_dir: Path) -> Path:
    """把元数据写到 spec_dir/<full-name>.spec，返回文件路径"""
    path = spec_dir / f"{spec.full_name}{SPEC_SUFFIX}"
    save_yaml(path, spec.to_dict())
    return path


class Installer:
    """单个包归档的安装器"""

    def __init__(
        self,
        archive_path: str | Path,
        options: InstallOptions | None = None,
        *,
        config: Config | None = None,
        ui: UserInteraction | None = None,
        index: InstalledIndex | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.archive_path = Path(archive_path)
        self.options = options or InstallOptions()
        self.config = config or Config()
        self.ui = ui or ConsoleUI()
        self._index = index
        self.executor = executor or LocalExecutor()
        self.arch = self.config.arch or default_arch()
        self.extension_results: list[ExtensionResult] = []

    # ------------------------------------------------------------------
    # 对外入口
    # ------------------------------------------------------------------

    def install(self) -> InstallRecord:
        """执行完整安装，返回安装记录"""
        opts = self.options
        fmt = self._read_format()
        spec = fmt.spec
        check_security(spec.name, opts.security_policy, force=opts.force)

        install_dir = self.install_dir()
        if not opts.force:
            DependencyGate(self.index(install_dir)).check(
                spec,
                self.runtime_version(spec),
                opts.tool_version or __version__,
                ignore_dependencies=opts.ignore_dependencies,
            )

        if not is_writable(install_dir):
            raise FilePermissionError(str(install_dir))

        gem_dir = install_dir / GEMS_DIR / spec.full_name
        gem_dir.mkdir(parents=True, exist_ok=True)
        logger.info("开始安装 %s -> %s", spec.full_name, gem_dir)

        extract_files(gem_dir, fmt.file_entries)
        self.stub_generator().generate(spec, gem_dir, self.bin_dir(install_dir))
        self.extension_results = self.extension_builder().build_extensions(gem_dir, spec)

        ensure_subdirectories(install_dir)
        spec_path = write_spec(spec, install_dir / SPEC_DIR)
        cached = install_dir / CACHE_DIR / self.archive_path.name
        if not cached.exists():
            shutil.copy2(self.archive_path, cached)

        if spec.post_install_message is not None:
            self.ui.say(spec.post_install_message)

        logger.info("安装完成: %s", spec.full_name)
        return spec.with_loaded_from(str(spec_path))

    def unpack(self, directory: str | Path) -> list[Path]:
        """只解压到指定目录：不检查依赖、不生成入口、不写元数据"""
        fmt = self._read_format()
        check_security(fmt.spec.name, self.options.security_policy)
        return extract_files(Path(directory).expanduser().resolve(), fmt.file_entries)

    # ------------------------------------------------------------------
    # 协作者装配
    # ------------------------------------------------------------------

    def install_dir(self) -> Path:
        if self.options.install_dir:
            return Path(self.options.install_dir).expanduser().resolve()
        return self.config.install_root()

    def bin_dir(self, install_dir: Path) -> Path:
        configured = self.options.bin_dir or self.config.bin_dir
        if configured:
            return Path(configured).expanduser().resolve()
        return install_dir / "bin"

    def index(self, install_dir: Path) -> InstalledIndex:
        if self._index is None:
            roots = [install_dir, *(Path(p).expanduser() for p in self.config.gem_path)]
            self._index = SourceIndex.from_installed(roots)
        return self._index

    def runtime_version(self, spec: Specification) -> str:
        version = self.options.runtime_version or self.config.runtime_version
        if not version and spec.required_runtime_version is not None:
            version = detect_runtime_version(self.config.ruby, self.executor)
        return version

    def stub_generator(self) -> StubGenerator:
        return StubGenerator(
            ruby=self.config.runtime_path(),
            ui=self.ui,
            arch=self.arch,
            wrappers=self.options.wrappers,
            env_shebang=self.options.env_shebang,
        )

    def extension_builder(self) -> ExtensionBuilder:
        make = self.config.make or ("nmake" if is_windows(self.arch) else "make")
        factory = functools.partial(
            get_builder,
            ruby=self.config.runtime_path(),
            make=make,
            rake=self.config.rake,
            build_args=self.options.build_args,
            executor=self.executor,
        )
        return ExtensionBuilder(self.ui, builder_factory=factory)

    def _read_format(self) -> PackageFormat:
        try:
            return PackageFormat.from_path(self.archive_path)
        except FormatError as e:
            raise InstallError(f"无效的包格式: {self.archive_path} ({e})") from e
