"""集中配置管理

安装根目录、运行时路径、构建工具等默认值集中在 Config 中。
支持从 YAML 文件加载 + 编程式覆盖；配置对象由调用方显式传递。
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from gemcore.core.exceptions import ConfigError
from gemcore.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.gemcore/config.yml"


@dataclass
class Config:
    """安装核心全局配置"""

    # 目录
    install_dir: str = "~/.gemcore/root"
    bin_dir: str = ""                  # 为空时使用 <install_dir>/bin
    gem_path: list[str] = field(default_factory=list)  # 额外的已安装包根目录

    # 运行时
    ruby: str = "ruby"                 # 运行时可执行文件名或路径
    runtime_version: str = ""          # 为空时调用运行时探测
    arch: str = ""                     # 为空时取当前平台

    # 构建工具
    make: str = ""                     # 为空时按平台选择 make / nmake
    rake: str = "rake"

    # 可执行入口
    wrappers: bool = True
    env_shebang: bool = False

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        p = Path(path).expanduser()
        try:
            data = load_yaml(p)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效: {p}: {e}") from e
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        logger.info("配置已加载: %s", p)
        return cfg

    def install_root(self) -> Path:
        return Path(self.install_dir).expanduser().resolve()

    def runtime_path(self) -> str:
        """运行时绝对路径（PATH 中找不到时原样返回）"""
        return shutil.which(self.ruby) or self.ruby

    def to_dict(self) -> dict:
        return asdict(self)
