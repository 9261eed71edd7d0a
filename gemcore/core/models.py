"""核心数据模型

Specification 由归档读取器解析产生，解析后不可变；安装完成时通过
with_loaded_from() 得到带 loaded_from 的副本作为安装记录返回。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from gemcore.core.exceptions import FormatError
from gemcore.core.version import Requirement, Version


@dataclass(frozen=True)
class Dependency:
    """依赖声明：包名 + 版本约束"""

    name: str
    requirement: Requirement = field(default_factory=Requirement.default)

    def __str__(self) -> str:
        return f"{self.name} ({self.requirement})"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "requirement": self.requirement.as_list()}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> Dependency:
        # 简写形式: "rake" 或 {"name": "rake", "requirement": ">= 0.7"}
        if isinstance(data, str):
            return cls(name=data)
        return cls(
            name=str(data["name"]),
            requirement=Requirement.parse(data.get("requirement")),
        )


@dataclass(frozen=True)
class FileEntry:
    """归档中的单个文件：相对路径 + 原始字节"""

    path: str
    data: bytes
    mode: int | None = None


@dataclass(frozen=True)
class Specification:
    """软件包元数据"""

    name: str
    version: Version
    summary: str = ""
    dependencies: tuple[Dependency, ...] = ()
    required_runtime_version: Requirement | None = None
    required_tool_version: Requirement | None = None
    executables: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    require_paths: tuple[str, ...] = ("lib",)
    bindir: str = "bin"
    post_install_message: str | None = None
    loaded_from: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def with_loaded_from(self, path: str) -> Specification:
        return replace(self, loaded_from=path)

    # ------------------------------------------------------------------
    # 序列化
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": str(self.version),
            "summary": self.summary,
            "require_paths": list(self.require_paths),
            "bindir": self.bindir,
            "executables": list(self.executables),
            "extensions": list(self.extensions),
            "dependencies": [d.to_dict() for d in self.dependencies],
        }
        if self.required_runtime_version is not None:
            data["required_runtime_version"] = self.required_runtime_version.as_list()
        if self.required_tool_version is not None:
            data["required_tool_version"] = self.required_tool_version.as_list()
        if self.post_install_message is not None:
            data["post_install_message"] = self.post_install_message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Specification:
        """从元数据字典构建，字段缺失或非法时抛 FormatError"""
        try:
            name = str(data["name"]).strip()
            version = Version(str(data["version"]))
            if not name:
                raise ValueError("name 为空")
            rrv = data.get("required_runtime_version")
            rtv = data.get("required_tool_version")
            executables = dict.fromkeys(str(e) for e in data.get("executables") or [])
            return cls(
                name=name,
                version=version,
                summary=str(data.get("summary") or ""),
                dependencies=tuple(
                    Dependency.from_dict(d) for d in data.get("dependencies") or []
                ),
                required_runtime_version=Requirement.parse(rrv) if rrv else None,
                required_tool_version=Requirement.parse(rtv) if rtv else None,
                executables=tuple(executables),
                extensions=tuple(str(e) for e in data.get("extensions") or []),
                require_paths=tuple(
                    str(p) for p in data.get("require_paths") or ["lib"]
                ),
                bindir=str(data.get("bindir") or "bin"),
                post_install_message=data.get("post_install_message"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FormatError(f"包元数据无效: {e}") from e


# 安装成功后返回的记录：loaded_from 指向已写入的 .spec 文件
InstallRecord = Specification
