"""版本号与版本约束

Version:     点分版本号，数字段按数值比较，字母段视为预发布并排在数字之前
Requirement: 一组 (运算符, 版本) 约束，全部满足才算匹配

支持的运算符: =  !=  >  <  >=  <=  ~>
    "~> 1.2"    等价于 ">= 1.2, < 2"
    "~> 1.2.3"  等价于 ">= 1.2.3, < 1.3"
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import total_ordering
from itertools import zip_longest

_VERSION_PATTERN = re.compile(r"^\s*[0-9]+(\.[0-9a-zA-Z]+)*\s*$")
_SEGMENT_PATTERN = re.compile(r"[0-9]+|[a-zA-Z]+")
_CONSTRAINT_PATTERN = re.compile(
    r"^\s*(!=|>=|<=|~>|=|>|<)?\s*([0-9][0-9a-zA-Z.]*)\s*$",
)


@total_ordering
class Version:
    """可比较的版本号"""

    def __init__(self, text: str) -> None:
        text = str(text).strip()
        if not self.correct(text):
            raise ValueError(f"非法版本号: {text!r}")
        self.text = text
        self.segments: list[int | str] = [
            int(s) if s.isdigit() else s
            for s in _SEGMENT_PATTERN.findall(text)
        ]

    @staticmethod
    def correct(text: str) -> bool:
        """判断字符串是否为合法版本号"""
        return bool(_VERSION_PATTERN.match(str(text)))

    @classmethod
    def create(cls, value: Version | str) -> Version:
        return value if isinstance(value, Version) else cls(value)

    @property
    def prerelease(self) -> bool:
        return any(isinstance(s, str) for s in self.segments)

    def _canonical(self) -> tuple[int | str, ...]:
        segs = list(self.segments)
        while len(segs) > 1 and segs[-1] == 0:
            segs.pop()
        return tuple(segs)

    def bump(self) -> Version:
        """~> 的上界: 去掉预发布段和最后一段，再把末段加一"""
        segs = [s for s in self.segments if isinstance(s, int)]
        if len(segs) > 1:
            segs.pop()
        segs[-1] += 1
        return Version(".".join(str(s) for s in segs))

    def _cmp(self, other: Version) -> int:
        for a, b in zip_longest(self.segments, other.segments, fillvalue=0):
            if a == b:
                continue
            # 字母段（预发布）小于任何数字段
            if isinstance(a, str) and isinstance(b, int):
                return -1
            if isinstance(a, int) and isinstance(b, str):
                return 1
            return -1 if a < b else 1  # type: ignore[operator]
        return 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str) and self.correct(other):
            other = Version(other)
        if not isinstance(other, Version):
            return NotImplemented
        return self._cmp(other) == 0

    def __lt__(self, other: Version | str) -> bool:
        return self._cmp(Version.create(other)) < 0

    def __hash__(self) -> int:
        return hash(self._canonical())

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Version({self.text!r})"


_OPS: dict[str, Callable[[Version, Version], bool]] = {
    "=": lambda v, r: v == r,
    "!=": lambda v, r: v != r,
    ">": lambda v, r: v > r,
    "<": lambda v, r: v < r,
    ">=": lambda v, r: v >= r,
    "<=": lambda v, r: v <= r,
    "~>": lambda v, r: r <= v < r.bump(),
}


class Requirement:
    """版本约束表达式（逗号分隔的多个约束取交集）"""

    def __init__(self, constraints: Iterable[tuple[str, Version]]) -> None:
        self.constraints = list(constraints) or [(">=", Version("0"))]

    @classmethod
    def parse(cls, value: Requirement | str | Iterable[str] | None) -> Requirement:
        """解析 ">= 1.0, < 2" 或 [">= 1.0", "< 2"]；空值表示任意版本"""
        if isinstance(value, Requirement):
            return value
        if value is None:
            return cls([])
        parts = value.split(",") if isinstance(value, str) else list(value)
        constraints = []
        for part in parts:
            if not str(part).strip():
                continue
            m = _CONSTRAINT_PATTERN.match(str(part))
            if m is None:
                raise ValueError(f"非法版本约束: {part!r}")
            constraints.append((m.group(1) or "=", Version(m.group(2))))
        return cls(constraints)

    @classmethod
    def default(cls) -> Requirement:
        return cls([])

    def satisfied_by(self, version: Version | str) -> bool:
        v = Version.create(version)
        return all(_OPS[op](v, req) for op, req in self.constraints)

    def as_list(self) -> list[str]:
        return [f"{op} {ver}" for op, ver in self.constraints]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Requirement):
            return NotImplemented
        return self.as_list() == other.as_list()

    def __str__(self) -> str:
        return ", ".join(self.as_list())

    def __repr__(self) -> str:
        return f"Requirement({str(self)!r})"
