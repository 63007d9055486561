"""语义化版本模型

职责:
- 解析 [v]MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]
- 版本比较（build 元数据不参与排序）
- 约束求值: ^ ~ >= <= > < =（缺省为 =）
- 从候选集中选出满足约束的最高版本

比较规则:
  (major, minor, patch) 字典序；三元组相同时，无预发布标签者更大；
  两者都有标签时按字符串比较。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from zdeps.core.exceptions import (
    InvalidConstraintError,
    InvalidVersionError,
    NoMatchingVersionError,
)

_SEMVER_RE = re.compile(
    r"^v?(\d+)\.(\d+)\.(\d+)"
    r"(?:-([0-9A-Za-z\-.]+))?"
    r"(?:\+([0-9A-Za-z\-.]+))?$"
)

# 前缀匹配顺序: 双字符运算符必须排在单字符之前
OPERATORS = ("^", "~", ">=", "<=", ">", "<", "=")


@dataclass(frozen=True, eq=False)
class Version:
    """不可变版本值"""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def _key(self) -> tuple[int, int, int, str]:
        return (self.major, self.minor, self.patch, self.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) == 0

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: Version) -> bool:
        return compare(self, other) < 0

    def __le__(self, other: Version) -> bool:
        return compare(self, other) <= 0

    def __gt__(self, other: Version) -> bool:
        return compare(self, other) > 0

    def __ge__(self, other: Version) -> bool:
        return compare(self, other) >= 0


@dataclass(frozen=True)
class Constraint:
    """版本约束（无状态）"""

    operator: str
    version: Version

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"

    def satisfies(self, version: Version) -> bool:
        return satisfies(self, version)


def parse_version(text: str) -> Version:
    """解析版本字符串，前导 v 被忽略

    Raises:
        InvalidVersionError: 不符合 MAJOR.MINOR.PATCH 格式
    """
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        raise InvalidVersionError(f"无效的语义化版本: {text!r}")
    return Version(
        major=int(m.group(1)),
        minor=int(m.group(2)),
        patch=int(m.group(3)),
        prerelease=m.group(4) or "",
        build=m.group(5) or "",
    )


def _sign(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def compare(a: Version, b: Version) -> int:
    """比较两个版本，返回 -1 / 0 / 1"""
    for x, y in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        if x != y:
            return _sign(x, y)
    if a.prerelease == b.prerelease:
        return 0
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1
    return _sign(a.prerelease, b.prerelease)


def parse_constraint(text: str) -> Constraint:
    """解析版本约束，如 ^1.2.3、>=0.4.0、1.0.0

    Raises:
        InvalidConstraintError: 约束中的版本部分无效
    """
    raw = text.strip()
    for op in OPERATORS:
        if raw.startswith(op):
            operator, body = op, raw[len(op):]
            break
    else:
        operator, body = "=", raw
    try:
        return Constraint(operator=operator, version=parse_version(body))
    except InvalidVersionError as e:
        raise InvalidConstraintError(f"无效的版本约束 {text!r}: {e.message}") from e


def satisfies(constraint: Constraint, version: Version) -> bool:
    """判断版本是否满足约束"""
    target = constraint.version
    op = constraint.operator
    if op == "^":
        return version.major == target.major and compare(version, target) >= 0
    if op == "~":
        return (
            version.major == target.major
            and version.minor == target.minor
            and compare(version, target) >= 0
        )
    c = compare(version, target)
    if op == ">=":
        return c >= 0
    if op == "<=":
        return c <= 0
    if op == ">":
        return c > 0
    if op == "<":
        return c < 0
    if op == "=":
        return c == 0
    return False


def best_match(constraint: Constraint, candidates: Iterable[Version]) -> Version:
    """返回满足约束的最高版本

    Raises:
        NoMatchingVersionError: 没有任何候选满足约束（附带候选列表）
    """
    pool = list(candidates)
    matched = [v for v in pool if satisfies(constraint, v)]
    if not matched:
        raise NoMatchingVersionError(
            f"没有版本满足约束 {constraint}，候选: "
            f"{', '.join(str(v) for v in pool) or '(空)'}",
            candidates=[str(v) for v in pool],
        )
    best = matched[0]
    for v in matched[1:]:
        if compare(v, best) > 0:
            best = v
    return best
