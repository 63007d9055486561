"""核心数据模型

所有核心数据类集中定义，解析器 / 拉取器 / 缓存 / 检查器统一从此处导入。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

LATEST = "latest"


@dataclass
class DependencySpec:
    """清单中声明的单个依赖

    rev / tag / branch 三者任一存在时优先于 version 约束（约束被忽略并告警）。
    全部缺省表示 "最新 release，没有则默认分支最新提交"。
    """

    git: str
    version: str = ""
    rev: str = ""
    tag: str = ""
    branch: str = ""
    use_latest_commit: bool = False
    root_file: str = ""

    def selector(self) -> tuple[str, str]:
        """返回生效的 (选择器种类, 值)"""
        if self.rev:
            return "rev", self.rev
        if self.tag:
            return "tag", self.tag
        if self.branch:
            return "branch", self.branch
        if self.use_latest_commit:
            return "latest_commit", ""
        if self.version:
            return "version", self.version
        return "latest", ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> DependencySpec:
        # 简写形式: name: "owner/repo"
        if isinstance(data, str):
            return cls(git=data)
        return cls(
            git=str(data.get("git", "")),
            version=str(data.get("version", "") or ""),
            rev=str(data.get("rev", "") or ""),
            tag=str(data.get("tag", "") or ""),
            branch=str(data.get("branch", "") or ""),
            use_latest_commit=bool(data.get("use_latest_commit", False)),
            root_file=str(data.get("root_file", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """序列化，省略空字段"""
        return {k: v for k, v in asdict(self).items() if v}


@dataclass
class ResolvedRef:
    """引用解析结果"""

    ref: str                 # 用于拉取的引用（tag / 分支 / commit）
    version: str             # 对外展示的版本
    commit_sha: str = ""
    fixed: bool = False      # 内容寻址（commit），永不重新解析
    warnings: list[str] = field(default_factory=list)


@dataclass
class CacheEntry:
    """缓存条目，由 FetchCache 独占，外部只拿副本"""

    path: str
    checksum: str
    version: str
    commit_sha: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            path=data.get("path", ""),
            checksum=data.get("checksum", ""),
            version=data.get("version", ""),
            commit_sha=data.get("commit_sha", ""),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class FetchResult:
    """拉取结果"""

    path: str
    checksum: str
    version: str
    commit_sha: str = ""
    cached: bool = False

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> FetchResult:
        return cls(
            path=entry.path, checksum=entry.checksum,
            version=entry.version, commit_sha=entry.commit_sha,
            cached=True,
        )


@dataclass
class LockedPackage:
    """锁文件中的单个包记录"""

    name: str
    version: str
    source: str
    checksum: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedPackage:
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            source=str(data.get("source", "")),
            checksum=str(data.get("checksum", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class Release:
    """远端 release 元信息"""

    tag_name: str
    draft: bool = False
    prerelease: bool = False


@dataclass
class UpdateInfo:
    """可用更新"""

    name: str
    current_version: str
    latest_version: str
    source: str
