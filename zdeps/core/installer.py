"""安装器 - 按清单逐个拉取依赖并生成锁文件，以及依赖的添加 / 移除"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zdeps.core.exceptions import ChecksumMismatchError, DependencyNotFoundError
from zdeps.core.manifest import DEP_SECTIONS, LockFile, Manifest
from zdeps.core.models import DependencySpec, FetchResult, LockedPackage
from zdeps.remote.git import is_commit_sha
from zdeps.remote.github import parse_locator

if TYPE_CHECKING:
    from zdeps.core.config import Config
    from zdeps.core.fetcher import Fetcher

logger = logging.getLogger(__name__)


def parse_add_target(text: str) -> tuple[str, str, str]:
    """解析 add 目标为 (包名, 仓库地址, 版本)

    支持 owner/repo[@version]、https://github.com/owner/repo[@version]、
    git@github.com:owner/repo.git[@version]。包名取仓库名。

    Raises:
        InvalidLocatorError: 仓库地址不合法
    """
    raw = text.strip()
    locator, version = raw, ""
    head, sep, tail = raw.rpartition("@")
    # SSH 地址中的 @ 之后仍带 host:path
    if sep and head and "/" not in tail and ":" not in tail:
        locator, version = head, tail
    _, repo = parse_locator(locator)
    return repo, locator, version


class Installer:
    """依赖安装 / 添加 / 移除"""

    def __init__(self, config: Config, fetcher: Fetcher) -> None:
        self.config = config
        self.fetcher = fetcher

    def install(
        self, manifest: Manifest, *, frozen: bool = False, refresh: bool = False,
    ) -> LockFile:
        """安装清单中全部依赖（按名称顺序，串行）

        每次安装都从拉取结果重新生成锁文件，清单中已不存在的记录随之丢弃。

        Args:
            frozen: 锁文件中已有同源同版本记录时，要求校验和一致
            refresh: 跳过拉取缓存

        Raises:
            ChecksumMismatchError: frozen 模式下内容与锁文件记录不一致
        """
        previous = LockFile.load(self.config.lock_file)
        lock = LockFile()
        deps = manifest.all_dependencies()
        if not deps:
            logger.info("清单中没有依赖")

        for name in sorted(deps):
            spec = deps[name]
            result = self.fetcher.fetch_dependency(name, spec, refresh=refresh)
            locked = previous.get(name)
            if (
                frozen and locked is not None
                and locked.source == spec.git
                and locked.version == result.version
                and locked.checksum != result.checksum
            ):
                raise ChecksumMismatchError(
                    f"'{name}@{result.version}' 内容与锁文件记录不一致",
                    expected=locked.checksum, actual=result.checksum,
                ).with_dependency(name)

            lock.upsert(LockedPackage(
                name=name, version=result.version,
                source=spec.git, checksum=result.checksum,
            ))
            logger.info("  + %s@%s", name, result.version)

        lock.save(self.config.lock_file)
        logger.info("安装完成: %d 个依赖", len(deps))
        return lock

    def remove(self, name: str) -> None:
        """从清单各段与锁文件中移除依赖

        Raises:
            DependencyNotFoundError: 清单中没有该依赖
        """
        manifest = Manifest.load(self.config.manifest)
        sections = manifest.remove_dependency(name)
        if not sections:
            raise DependencyNotFoundError(f"清单中不存在依赖: {name}")
        manifest.save()

        lock = LockFile.load(self.config.lock_file)
        if lock.remove(name):
            lock.save(self.config.lock_file)
        logger.info("已移除依赖 '%s' (%s)", name, ", ".join(sections))

    def add(
        self,
        target: str,
        *,
        section: str = "dependencies",
        alias: str = "",
        branch: str = "",
        root_file: str = "",
    ) -> tuple[str, DependencySpec, FetchResult]:
        """校验依赖可解析、可拉取后写入清单指定段

        锁文件不在此处更新，写入后需再执行 install。

        Args:
            target: owner/repo[@version] 或仓库 URL，版本为 40 位 SHA 时按 rev 处理
            section: dependencies / dev_dependencies / build_dependencies
            alias: 清单中的依赖名，缺省为仓库名
            branch: 指定分支，优先于版本
            root_file: 依赖的根源文件，缺省取清单 package.root_file

        Raises:
            ManifestError: 清单不存在或无法解析
            ZdepsError: 解析或拉取失败（已标注依赖名），清单保持不变
        """
        if section not in DEP_SECTIONS:
            raise ValueError(f"未知的依赖段: {section}")
        manifest = Manifest.load(self.config.manifest)
        package, locator, version = parse_add_target(target)
        name = alias or package
        if alias:
            logger.info("使用别名 '%s' (仓库 %s)", alias, package)

        spec = DependencySpec(git=locator)
        if branch:
            spec.branch = branch
            if version:
                logger.warning("同时指定了版本 '%s' 与分支，以分支 '%s' 为准", version, branch)
        elif is_commit_sha(version):
            spec.rev = version
        else:
            spec.version = version

        spec.root_file = root_file or str(manifest.package.get("root_file", "") or "")
        if not spec.root_file:
            logger.warning("未指定 root_file，可通过 --root-file 或清单 package.root_file 设置")

        result = self.fetcher.fetch_dependency(name, spec)
        logger.info("依赖 '%s' 校验通过: %s", name, result.version)

        if manifest.remove_dependency(name):
            logger.warning("依赖 '%s' 已存在，将被更新", name)
        getattr(manifest, section)[name] = spec
        manifest.save()
        logger.info("已添加依赖 '%s@%s' -> %s", name, result.version, section)
        return name, spec, result
