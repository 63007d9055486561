"""引用解析器

将依赖声明的选择器解析为可拉取的具体引用。规则按顺序求值，首个命中即生效:

  1. rev                → 原样作为引用与版本，内容寻址
  2. tag                → 原样
  3. branch             → 原样
  4. use_latest_commit  → 默认分支最新提交
  5. version == latest  → 最新正式 release 的 tag
  6. version 约束       → best_match: 远端 tag 中满足约束的最高版本
                          literal:    去掉 ^ ~ = 后探测 X.Y.Z / vX.Y.Z
  7. 无选择器           → 最新 release，没有则默认分支最新提交

rev / tag / branch / use_latest_commit 与 version 同时存在时忽略 version 并告警。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zdeps.core.exceptions import (
    InvalidVersionError,
    NoMatchingTagError,
    NoMatchingVersionError,
    RemoteError,
    RemoteNotFoundError,
)
from zdeps.core.models import LATEST, DependencySpec, ResolvedRef
from zdeps.core.semver import Version, best_match, parse_constraint, parse_version

if TYPE_CHECKING:
    from zdeps.remote.github import MetadataClient

logger = logging.getLogger(__name__)

_CONSTRAINT_PREFIXES = "^~="


def bare_version(constraint: str) -> str:
    """去掉前导 ^ ~ = 得到裸版本号"""
    return constraint.strip().lstrip(_CONSTRAINT_PREFIXES).strip()


class ReferenceResolver:
    """引用解析器 - 每个依赖独立解析，不做回溯"""

    def __init__(self, client: MetadataClient, constraint_mode: str = "best_match") -> None:
        self.client = client
        self.constraint_mode = constraint_mode

    def resolve(self, owner: str, repo: str, spec: DependencySpec) -> ResolvedRef:
        warnings = self._precedence_warnings(spec)
        for w in warnings:
            logger.warning("%s/%s: %s", owner, repo, w)

        if spec.rev:
            resolved = ResolvedRef(
                ref=spec.rev, version=spec.rev, commit_sha=spec.rev, fixed=True,
            )
        elif spec.tag:
            resolved = ResolvedRef(ref=spec.tag, version=spec.tag)
        elif spec.branch:
            resolved = ResolvedRef(ref=spec.branch, version=spec.branch)
        elif spec.use_latest_commit:
            logger.info("获取 %s/%s 最新提交", owner, repo)
            resolved = self._tip_commit(owner, repo)
        elif spec.version == LATEST:
            tag = self.client.get_latest_release(owner, repo).tag_name
            logger.debug("使用最新 release tag: %s", tag)
            resolved = ResolvedRef(ref=tag, version=tag)
        elif spec.version:
            resolved = self._resolve_constraint(owner, repo, spec.version)
        else:
            resolved = self._resolve_default(owner, repo)

        resolved.warnings = warnings
        logger.debug(
            "解析 %s/%s -> ref=%s version=%s", owner, repo, resolved.ref, resolved.version,
        )
        return resolved

    @staticmethod
    def _precedence_warnings(spec: DependencySpec) -> list[str]:
        if not spec.version:
            return []
        kind, value = spec.selector()
        if kind == "version":
            return []
        label = f"{kind}={value}" if value else kind
        return [f"同时声明了 {label} 与版本约束 '{spec.version}'，忽略版本约束"]

    def _tip_commit(self, owner: str, repo: str) -> ResolvedRef:
        sha = self.client.get_default_branch_tip_commit(owner, repo)
        return ResolvedRef(ref=sha, version=sha, commit_sha=sha, fixed=True)

    def _resolve_default(self, owner: str, repo: str) -> ResolvedRef:
        try:
            tag = self.client.get_latest_release(owner, repo).tag_name
        except RemoteNotFoundError:
            logger.debug("%s/%s 没有 release，使用默认分支最新提交", owner, repo)
            return self._tip_commit(owner, repo)
        logger.debug("使用最新 release tag: %s", tag)
        return ResolvedRef(ref=tag, version=tag)

    def _resolve_constraint(self, owner: str, repo: str, constraint: str) -> ResolvedRef:
        if self.constraint_mode == "literal":
            return self._match_literal_tags(owner, repo, constraint)
        return self._best_matching_tag(owner, repo, constraint)

    def _best_matching_tag(self, owner: str, repo: str, constraint: str) -> ResolvedRef:
        """在远端 tag 中选出满足约束的最高版本，引用保留 tag 原始写法"""
        parsed = parse_constraint(constraint)
        by_version: dict[Version, str] = {}
        for tag in self.client.get_tags(owner, repo):
            try:
                v = parse_version(tag)
            except InvalidVersionError:
                continue
            # 同一版本同时存在 X.Y.Z 与 vX.Y.Z 时保留先出现的
            by_version.setdefault(v, tag)
        if not by_version:
            raise NoMatchingVersionError(
                f"{owner}/{repo} 没有语义化版本 tag，无法满足约束 '{constraint}'",
                candidates=[],
            )
        best = best_match(parsed, by_version)
        tag = by_version[best]
        logger.debug("约束 %s 最佳匹配: %s (tag=%s)", constraint, best, tag)
        return ResolvedRef(ref=tag, version=str(best))

    def _match_literal_tags(self, owner: str, repo: str, constraint: str) -> ResolvedRef:
        """按字面版本号探测 X.Y.Z 与 vX.Y.Z 两种 tag 写法"""
        version = bare_version(constraint)
        candidates = [version, f"v{version}"]
        for tag in candidates:
            try:
                exists = self.client.tag_exists(owner, repo, tag)
            except RemoteError as e:
                logger.debug("探测 tag %s 失败: %s", tag, e)
                continue
            if exists:
                return ResolvedRef(ref=tag, version=constraint)
        raise NoMatchingTagError(
            f"未找到与版本 {constraint} 匹配的 tag (尝试: {', '.join(candidates)})",
            tried=candidates,
        )
