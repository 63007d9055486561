"""清单 / 锁文件一致性检查

职责:
- 比对清单与锁文件的依赖名集合（漂移检测）
- 重新校验每个依赖: 仓库地址可解析、仓库可访问、版本约束可解析
  （只查询元数据，不做任何拉取）
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from zdeps.core.exceptions import DriftDetectedError, ZdepsError
from zdeps.core.manifest import LockFile, Manifest
from zdeps.core.models import LATEST, DependencySpec, LockedPackage
from zdeps.core.semver import parse_constraint
from zdeps.remote.github import parse_locator

if TYPE_CHECKING:
    from zdeps.core.config import Config
    from zdeps.remote.github import MetadataClient

logger = logging.getLogger(__name__)


def find_drift(
    manifest_deps: Mapping[str, DependencySpec],
    locked_packages: Iterable[LockedPackage],
) -> list[str]:
    """返回漂移问题列表（清单侧按名称排序，锁文件侧保持原顺序）"""
    locked = list(locked_packages)
    locked_names = {p.name for p in locked}
    issues = [
        f"'{name}' is in manifest but not in lock file"
        for name in sorted(manifest_deps)
        if name not in locked_names
    ]
    issues.extend(
        f"'{p.name}' is in lock file but not in manifest"
        for p in locked
        if p.name not in manifest_deps
    )
    return issues


class ConsistencyChecker:
    """一致性检查器"""

    def __init__(self, client: MetadataClient, config: Config | None = None) -> None:
        self.client = client
        self.config = config

    @staticmethod
    def check_sync(
        manifest_deps: Mapping[str, DependencySpec],
        locked_packages: Iterable[LockedPackage],
    ) -> None:
        """Raises: DriftDetectedError 清单与锁文件依赖集合不一致"""
        issues = find_drift(manifest_deps, locked_packages)
        if issues:
            for issue in issues:
                logger.warning("  - %s", issue)
            raise DriftDetectedError(
                f"依赖未同步（{len(issues)} 处不一致），请重新执行 install",
                issues=issues,
            )

    def validate_dependencies(self, manifest_deps: Mapping[str, DependencySpec]) -> None:
        """逐个校验依赖声明，遇到第一个错误即抛出（标注依赖名）"""
        for name in sorted(manifest_deps):
            dep = manifest_deps[name]
            try:
                owner, repo = parse_locator(dep.git)
                self.client.get_repository(owner, repo)
                if dep.version and dep.version != LATEST:
                    parse_constraint(dep.version)
            except ZdepsError as e:
                e.with_dependency(name)
                raise
            logger.debug("依赖校验通过: %s", name)

    def check_project(self) -> Manifest:
        """按配置加载清单与锁文件，执行清单校验、漂移检测与依赖校验"""
        if self.config is None:
            raise ValueError("check_project 需要注入 Config")
        manifest = Manifest.load(self.config.manifest)
        manifest.validate()
        lock = LockFile.load(self.config.lock_file)
        deps = manifest.all_dependencies()
        self.check_sync(deps, lock.packages)
        self.validate_dependencies(deps)
        logger.info("依赖已同步且全部有效 (%d 个)", len(deps))
        return manifest
