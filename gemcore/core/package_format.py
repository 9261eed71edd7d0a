"""包归档读写

归档格式（外层为未压缩 tar）:

    metadata.yml    软件包元数据（Specification.to_dict 的 YAML）
    data.tar.gz     文件载荷，成员路径即安装后的相对路径

读取器只产出解析后的结构（Specification + FileEntry 列表），
不做任何落盘操作；路径安全由解压器负责。
"""

from __future__ import annotations

import io
import logging
import tarfile
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from gemcore.core.exceptions import FormatError
from gemcore.core.models import FileEntry, Specification
from gemcore.utils.yaml_io import dump_yaml, parse_yaml

logger = logging.getLogger(__name__)

METADATA_MEMBER = "metadata.yml"
DATA_MEMBER = "data.tar.gz"


@dataclass
class PackageFormat:
    """解析后的归档：元数据 + 文件条目"""

    spec: Specification
    file_entries: list[FileEntry] = field(default_factory=list)
    path: str = ""

    @classmethod
    def from_path(cls, path: str | Path) -> PackageFormat:
        """读取归档文件，任何容器层面的损坏都转换为 FormatError"""
        p = Path(path)
        try:
            with tarfile.open(p, mode="r:") as outer:
                metadata = _read_member(outer, METADATA_MEMBER)
                payload = _read_member(outer, DATA_MEMBER)
            spec = Specification.from_dict(parse_yaml(metadata, source=METADATA_MEMBER))
            entries = _read_payload(payload)
        except FormatError as e:
            raise FormatError(f"{p}: {e}") from e
        except (tarfile.TarError, yaml.YAMLError, EOFError, OSError) as e:
            raise FormatError(f"{p}: 归档损坏: {e}") from e
        logger.debug("已读取归档 %s: %s (%d 个文件)", p, spec.full_name, len(entries))
        return cls(spec=spec, file_entries=entries, path=str(p))


def _read_member(tar: tarfile.TarFile, name: str) -> bytes:
    try:
        member = tar.getmember(name)
    except KeyError:
        raise FormatError(f"缺少归档成员 {name}") from None
    f = tar.extractfile(member)
    if f is None:
        raise FormatError(f"归档成员 {name} 不是普通文件")
    return f.read()


def _read_payload(payload: bytes) -> list[FileEntry]:
    entries: list[FileEntry] = []
    with tarfile.open(fileobj=io.BytesIO(payload), mode="r:gz") as data:
        for member in data.getmembers():
            if member.isdir():
                continue
            if not member.isfile():
                # 链接/设备等无法表示为 (路径, 字节)，直接拒绝
                raise FormatError(f"不支持的条目类型: {member.name}")
            f = data.extractfile(member)
            content = f.read() if f is not None else b""
            entries.append(FileEntry(
                path=member.name, data=content, mode=member.mode & 0o777,
            ))
    return entries


# =========================================================================
# 归档写入（打包）
# =========================================================================


def _add_bytes(tar: tarfile.TarFile, name: str, data: bytes, mode: int = 0o644) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = mode
    info.mtime = int(time.time())
    tar.addfile(info, io.BytesIO(data))


def write_package(
    path: str | Path,
    spec: Specification,
    files: Mapping[str, bytes] | Iterable[FileEntry],
) -> Path:
    """把元数据与文件打成归档，返回归档路径"""
    if isinstance(files, Mapping):
        entries = [FileEntry(path=k, data=v) for k, v in files.items()]
    else:
        entries = list(files)

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as data:
        for entry in entries:
            mode = entry.mode if entry.mode is not None else 0o644
            _add_bytes(data, entry.path, entry.data, mode)

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(p, mode="w:") as outer:
        _add_bytes(outer, METADATA_MEMBER, dump_yaml(spec.to_dict()).encode("utf-8"))
        _add_bytes(outer, DATA_MEMBER, buf.getvalue())
    logger.info("已打包: %s -> %s", spec.full_name, p)
    return p
