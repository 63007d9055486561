"""依赖拉取器

职责:
- 缓存优先，未命中时解析引用并拉取
- 按引用类型选择拉取后端
- 剥离 .git、计算目录树校验和
- 全部成功后才写入缓存

任一步骤失败: 删除本次拉取目录、不写缓存、异常标注依赖名后上抛。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from zdeps.core import checksum
from zdeps.core.cache import FetchCache, make_cache_key
from zdeps.core.exceptions import RetrievalError, ZdepsError
from zdeps.core.models import CacheEntry, DependencySpec, FetchResult, ResolvedRef
from zdeps.core.resolver import ReferenceResolver
from zdeps.remote.git import (
    ExplicitCheckoutBackend,
    GitClient,
    RetrievalBackend,
    ShallowThenFullBackend,
    check_ref,
)
from zdeps.remote.github import parse_locator

if TYPE_CHECKING:
    from zdeps.remote.github import MetadataClient

logger = logging.getLogger(__name__)


class Fetcher:
    """依赖拉取器 - 缓存优先 + git 拉取"""

    def __init__(
        self,
        cache: FetchCache,
        client: MetadataClient,
        git: GitClient,
        resolver: ReferenceResolver | None = None,
    ) -> None:
        self.cache = cache
        self.client = client
        self.git = git
        self.resolver = resolver or ReferenceResolver(client)
        self._shallow = ShallowThenFullBackend(git)
        self._explicit = ExplicitCheckoutBackend(git)

    def fetch_dependency(
        self, name: str, spec: DependencySpec, *, refresh: bool = False,
    ) -> FetchResult:
        """拉取单个依赖

        refresh=True 时跳过缓存命中检查，强制重新解析与拉取。
        """
        logger.info("拉取依赖 '%s'", name, extra={"dependency": name})
        try:
            return self._fetch(name, spec, refresh)
        except ZdepsError as e:
            e.with_dependency(name)
            raise

    def _fetch(self, name: str, spec: DependencySpec, refresh: bool) -> FetchResult:
        owner, repo = parse_locator(spec.git)
        key = make_cache_key(owner, repo, spec)

        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("缓存命中: %s@%s", name, cached.version)
                return FetchResult.from_entry(cached)

        resolved = self.resolver.resolve(owner, repo, spec)
        # 引用即目录名，清空目录前先校验
        check_ref(resolved.ref)
        dest = self.cache.repo_dir(owner, repo, resolved.ref)
        try:
            commit_sha = self._retrieve(owner, repo, resolved, dest)
            digest = checksum.hash_tree(dest)
        except Exception:
            shutil.rmtree(dest, ignore_errors=True)
            raise

        result = FetchResult(
            path=str(dest), checksum=digest,
            version=resolved.version, commit_sha=commit_sha,
        )
        self.cache.set(key, CacheEntry(
            path=result.path, checksum=result.checksum,
            version=result.version, commit_sha=result.commit_sha,
        ))

        if commit_sha:
            logger.info(
                "已拉取 '%s@%s' (commit: %s)", name, result.version, commit_sha[:8],
                extra={"dependency": name, "cache_key": key},
            )
        else:
            logger.info(
                "已拉取 '%s@%s'", name, result.version,
                extra={"dependency": name, "cache_key": key},
            )
        return result

    def backend_for(self, resolved: ResolvedRef) -> RetrievalBackend:
        """commit 类引用无法浅克隆，直接完整克隆 + 检出"""
        return self._explicit if resolved.fixed else self._shallow

    def _retrieve(self, owner: str, repo: str, resolved: ResolvedRef, dest: Path) -> str:
        """拉取到 dest（先清空），剥离 .git，返回 commit SHA"""
        if dest.exists():
            shutil.rmtree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        url = self.git.repo_url(owner, repo)
        logger.debug("克隆 %s@%s -> %s", url, resolved.ref, dest)
        self.backend_for(resolved).retrieve(url, resolved.ref, dest)
        if not dest.is_dir():
            raise RetrievalError(f"拉取完成但目录不存在: {dest}")

        commit_sha = resolved.commit_sha or self.git.rev_parse_head(dest)
        shutil.rmtree(dest / checksum.VCS_DIR, ignore_errors=True)
        return commit_sha

    @staticmethod
    def verify_dependency(path: str | Path, expected: str) -> None:
        """校验已拉取目录的完整性"""
        checksum.verify(path, expected)
