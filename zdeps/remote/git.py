"""git 客户端与拉取后端

职责:
- git 子进程调用（clone / checkout / ls-remote / rev-parse）
- 拉取策略: 浅克隆失败回退完整克隆 / 完整克隆 + 显式检出

所有子进程经由 CommandExecutor 执行，失败以非零返回码 + 输出文本体现，
"浅克隆下引用不存在" 的判断集中在 is_missing_ref_error() 中。
"""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Protocol

from zdeps.core.exceptions import RetrievalError
from zdeps.utils.shell import CommandExecutor, CommandResult, LocalExecutor

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@+\-]+$")
_COMMIT_SHA_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_MISSING_REF_MARKERS = ("does not exist", "not found")
_UNSAFE_REF_PARTS = ("", ".", "..")


def is_commit_sha(ref: str) -> bool:
    """是否为完整的 40 位 commit SHA"""
    return bool(_COMMIT_SHA_RE.match(ref))


def is_missing_ref_error(output: str) -> bool:
    """git 输出是否表示 "引用在浅克隆下不存在"

    部分托管平台 / 协议组合下，tag 或 commit 无法通过 --branch 浅克隆获取，
    此时 git 报告 "Remote branch xxx not found" 或 "does not exist"。
    """
    lowered = output.lower()
    return any(marker in lowered for marker in _MISSING_REF_MARKERS)


def check_ref(ref: str) -> None:
    """拒绝空引用、含非法字符或以 - 开头的引用（防止被当作 git 选项）

    引用同时用作缓存目录名，路径分量不得为空、"." 或 ".."。
    """
    if not ref or ref.startswith("-") or not _SAFE_REF_RE.match(ref):
        raise RetrievalError(f"ref 包含非法字符: {ref!r}")
    if any(part in _UNSAFE_REF_PARTS for part in ref.split("/")):
        raise RetrievalError(f"ref 包含非法路径分量: {ref!r}")


class GitClient:
    """git 子进程客户端"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        host: str = "https://github.com",
        timeout: int | None = None,
    ) -> None:
        self._executor = executor or LocalExecutor()
        self.host = host.rstrip("/")
        self.timeout = timeout

    def repo_url(self, owner: str, repo: str) -> str:
        return f"{self.host}/{owner}/{repo}.git"

    def _run(self, cmd: list[str], cwd: Path | None = None) -> CommandResult:
        return self._executor.execute(
            cmd, cwd=str(cwd) if cwd else None, timeout=self.timeout,
        )

    def clone_shallow(self, url: str, ref: str, dest: Path) -> CommandResult:
        return self._run(
            ["git", "clone", "--depth=1", "--branch", ref, url, str(dest)],
        )

    def clone_full(self, url: str, dest: Path) -> CommandResult:
        return self._run(["git", "clone", url, str(dest)])

    def checkout(self, ref: str, cwd: Path) -> CommandResult:
        return self._run(["git", "checkout", ref], cwd=cwd)

    def ls_remote(self, url: str, *refs: str, tags: bool = False) -> CommandResult:
        cmd = ["git", "ls-remote"]
        if tags:
            cmd.append("--tags")
        cmd.append(url)
        cmd.extend(refs)
        return self._run(cmd)

    def rev_parse_head(self, cwd: Path) -> str:
        """当前 HEAD 的完整 SHA，失败返回空串"""
        r = self._run(["git", "rev-parse", "HEAD"], cwd=cwd)
        return r.stdout.strip() if r.success else ""


# =========================================================================
# 拉取后端
# =========================================================================

class RetrievalBackend(Protocol):
    """拉取后端协议 - 将 url@ref 检出到 dest（dest 事先不存在）"""

    def retrieve(self, url: str, ref: str, dest: Path) -> None:
        ...


class ExplicitCheckoutBackend:
    """完整克隆 + 显式检出（用于 commit 等无法浅克隆的引用）"""

    def __init__(self, git: GitClient) -> None:
        self._git = git

    def retrieve(self, url: str, ref: str, dest: Path) -> None:
        check_ref(ref)
        r = self._git.clone_full(url, dest)
        if not r.success:
            raise RetrievalError(
                f"git clone 失败 (rc={r.returncode}): {r.output[:500]}"
            )
        r = self._git.checkout(ref, dest)
        if not r.success:
            raise RetrievalError(
                f"git checkout '{ref}' 失败 (rc={r.returncode}): {r.output[:500]}"
            )


class ShallowThenFullBackend:
    """先浅克隆单个引用，引用不存在时回退完整克隆 + 检出"""

    def __init__(self, git: GitClient) -> None:
        self._git = git
        self._fallback = ExplicitCheckoutBackend(git)

    def retrieve(self, url: str, ref: str, dest: Path) -> None:
        check_ref(ref)
        r = self._git.clone_shallow(url, ref, dest)
        if r.success:
            return
        if not is_missing_ref_error(r.output):
            raise RetrievalError(
                f"git clone 失败 (rc={r.returncode}): {r.output[:500]}"
            )
        logger.info("浅克隆找不到引用 %s，回退完整克隆", ref)
        logger.debug("浅克隆输出: %s", r.output)
        if dest.exists():
            shutil.rmtree(dest)
        self._fallback.retrieve(url, ref, dest)
