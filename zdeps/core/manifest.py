"""清单与锁文件

清单 zdeps.yml:
    package:
      name: myapp
      version: 0.1.0
      zig_version: 0.13.0
    dependencies:
      zap:
        git: zigzap/zap
        version: ^0.8.0
    dev_dependencies: {}
    build_dependencies: {}

锁文件 zdeps.lock:
    metadata:
      version: "1"
    package:
      - name: zap
        version: 0.8.1
        source: zigzap/zap
        checksum: <sha256>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from zdeps.core.exceptions import ManifestError
from zdeps.core.models import DependencySpec, LockedPackage
from zdeps.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

LOCK_FORMAT_VERSION = "1"
LOCK_HEADER = "由 zdeps install 生成，请勿手动编辑"
DEP_SECTIONS = ("dependencies", "dev_dependencies", "build_dependencies")


def _load(path: Path) -> dict[str, Any]:
    try:
        return load_yaml(path)
    except (yaml.YAMLError, ValueError) as e:
        raise ManifestError(f"无法解析 {path}: {e}") from e


@dataclass
class Manifest:
    """项目清单"""

    package: dict[str, Any] = field(default_factory=dict)
    dependencies: dict[str, DependencySpec] = field(default_factory=dict)
    dev_dependencies: dict[str, DependencySpec] = field(default_factory=dict)
    build_dependencies: dict[str, DependencySpec] = field(default_factory=dict)
    path: Path | None = None

    @classmethod
    def load(cls, path: str | Path) -> Manifest:
        p = Path(path)
        if not p.exists():
            raise ManifestError(f"清单文件不存在: {p}")
        data = _load(p)
        sections: dict[str, dict[str, DependencySpec]] = {}
        for section in DEP_SECTIONS:
            raw = data.get(section) or {}
            if not isinstance(raw, dict):
                raise ManifestError(f"{p}: {section} 必须是映射")
            sections[section] = {
                name: DependencySpec.from_dict(info or {})
                for name, info in raw.items()
            }
        return cls(package=data.get("package") or {}, path=p, **sections)

    def save(self, path: str | Path | None = None) -> None:
        target = Path(path) if path else self.path
        if target is None:
            raise ManifestError("未指定清单保存路径")
        data: dict[str, Any] = {"package": self.package}
        for section in DEP_SECTIONS:
            deps: dict[str, DependencySpec] = getattr(self, section)
            if deps:
                data[section] = {n: d.to_dict() for n, d in deps.items()}
        save_yaml(target, data)

    def all_dependencies(self) -> dict[str, DependencySpec]:
        """合并三类依赖（同名时后者覆盖前者）"""
        merged: dict[str, DependencySpec] = {}
        for section in DEP_SECTIONS:
            merged.update(getattr(self, section))
        return merged

    def validate(self) -> None:
        """校验清单必填字段

        Raises:
            ManifestError: 缺少包信息或依赖缺少 git 地址
        """
        for key in ("name", "version"):
            if not self.package.get(key):
                raise ManifestError(f"package.{key} 为必填")
        for name, dep in self.all_dependencies().items():
            if not dep.git:
                raise ManifestError(f"依赖 '{name}' 必须指定 git 地址")

    def remove_dependency(self, name: str) -> list[str]:
        """从所有段中删除依赖，返回被删除的段名"""
        removed = []
        for section in DEP_SECTIONS:
            deps: dict[str, DependencySpec] = getattr(self, section)
            if name in deps:
                del deps[name]
                removed.append(section)
        return removed


@dataclass
class LockFile:
    """锁文件"""

    packages: list[LockedPackage] = field(default_factory=list)
    version: str = LOCK_FORMAT_VERSION

    @classmethod
    def load(cls, path: str | Path) -> LockFile:
        """加载锁文件，文件不存在时返回空锁文件"""
        p = Path(path)
        if not p.exists():
            return cls()
        data = _load(p)
        meta = data.get("metadata") or {}
        raw = data.get("package") or []
        if not isinstance(raw, list):
            raise ManifestError(f"{p}: package 必须是列表")
        return cls(
            packages=[LockedPackage.from_dict(item) for item in raw],
            version=str(meta.get("version", LOCK_FORMAT_VERSION)),
        )

    def save(self, path: str | Path) -> None:
        save_yaml(path, {
            "metadata": {"version": self.version},
            "package": [p.to_dict() for p in self.packages],
        }, header=LOCK_HEADER)
        logger.debug("锁文件已保存: %s (%d 个包)", path, len(self.packages))

    def get(self, name: str) -> LockedPackage | None:
        for pkg in self.packages:
            if pkg.name == name:
                return pkg
        return None

    def upsert(self, pkg: LockedPackage) -> None:
        for i, existing in enumerate(self.packages):
            if existing.name == pkg.name:
                self.packages[i] = pkg
                return
        self.packages.append(pkg)

    def remove(self, name: str) -> bool:
        before = len(self.packages)
        self.packages = [p for p in self.packages if p.name != name]
        return len(self.packages) != before
