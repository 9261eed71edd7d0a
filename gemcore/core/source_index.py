"""已安装包索引

扫描一个或多个安装根目录下的 specifications/*.spec，
回答 "依赖 D 是否已被满足" 这一类查询。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from gemcore.core.exceptions import FormatError
from gemcore.core.models import Specification
from gemcore.core.version import Requirement
from gemcore.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

SPEC_DIR = "specifications"
SPEC_SUFFIX = ".spec"


class SourceIndex:
    """已安装包索引（只读查询）"""

    def __init__(self, specs: Iterable[Specification] = ()) -> None:
        self._specs: dict[str, Specification] = {}
        for spec in specs:
            self.add_spec(spec)

    @classmethod
    def from_installed(cls, roots: Iterable[str | Path]) -> SourceIndex:
        """从安装根目录加载；损坏的 .spec 记警告后跳过"""
        index = cls()
        for root in roots:
            spec_dir = Path(root) / SPEC_DIR
            if not spec_dir.is_dir():
                continue
            for spec_file in sorted(spec_dir.glob(f"*{SPEC_SUFFIX}")):
                try:
                    spec = Specification.from_dict(load_yaml(spec_file))
                except (FormatError, yaml.YAMLError, ValueError) as e:
                    logger.warning("跳过无效的元数据文件 %s: %s", spec_file, e)
                    continue
                index.add_spec(spec.with_loaded_from(str(spec_file)))
        logger.info("已加载 %d 个已安装包", len(index))
        return index

    def add_spec(self, spec: Specification) -> None:
        self._specs[spec.full_name] = spec

    def find_name(
        self, name: str, requirement: Requirement | str | None = None,
    ) -> list[Specification]:
        """按包名 + 约束查找，按版本升序返回"""
        req = Requirement.parse(requirement)
        found = [
            s for s in self._specs.values()
            if s.name == name and req.satisfied_by(s.version)
        ]
        return sorted(found, key=lambda s: s.version)

    def satisfies(self, name: str, requirement: Requirement | str | None) -> int:
        """满足约束的已安装版本数量"""
        return len(self.find_name(name, requirement))

    def all_specs(self) -> list[Specification]:
        return sorted(self._specs.values(), key=lambda s: (s.name, s.version))

    def __len__(self) -> int:
        return len(self._specs)
