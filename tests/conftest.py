"""测试共享夹具 - 假执行器 / 假元数据客户端，全部离线"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from zdeps.core.exceptions import RemoteNotFoundError
from zdeps.core.models import Release
from zdeps.utils.shell import CommandResult

HEAD_SHA = "0123456789abcdef0123456789abcdef01234567"


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout, stderr="")


def fail(stderr: str, returncode: int = 128) -> CommandResult:
    return CommandResult(returncode=returncode, stdout="", stderr=stderr)


def populate_checkout(dest: Path, files: dict[str, str] | None = None) -> None:
    """模拟 git clone 产物（含 .git 目录）"""
    dest.mkdir(parents=True, exist_ok=True)
    for rel, content in (files or {"build.zig": "// build\n", "src/root.zig": "pub fn x() void {}\n"}).items():
        p = dest / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    (dest / ".git").mkdir(exist_ok=True)
    (dest / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")


class FakeExecutor:
    """按命令返回预置结果的执行器，记录全部调用

    未提供 handler 时: clone 成功并生成检出目录，rev-parse 返回 HEAD_SHA，
    其余命令成功且无输出。
    """

    def __init__(self, handler: Callable[[list[str], str | None], CommandResult] | None = None) -> None:
        self.calls: list[tuple[list[str], str | None]] = []
        self._handler = handler or self.default

    @staticmethod
    def default(cmd: list[str], cwd: str | None) -> CommandResult:
        if cmd[:2] == ["git", "clone"]:
            populate_checkout(Path(cmd[-1]))
            return ok()
        if cmd[:2] == ["git", "rev-parse"]:
            return ok(HEAD_SHA + "\n")
        return ok()

    def execute(
        self, cmd: list[str], *, cwd: str | None = None, timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append((list(cmd), cwd))
        return self._handler(cmd, cwd)

    def commands(self, prefix: tuple[str, ...] = ()) -> list[list[str]]:
        return [c for c, _ in self.calls if tuple(c[:len(prefix)]) == prefix]


class FakeMetadataClient:
    """内存元数据客户端"""

    def __init__(
        self,
        releases: dict[str, str] | None = None,
        tags: dict[str, list[str]] | None = None,
        tips: dict[str, str] | None = None,
        repos: set[str] | None = None,
    ) -> None:
        self.releases = releases or {}
        self.tags = tags or {}
        self.tips = tips or {}
        self.repos = repos
        self.calls: list[tuple[str, str]] = []

    def get_latest_release(self, owner: str, repo: str) -> Release:
        self.calls.append(("get_latest_release", f"{owner}/{repo}"))
        key = f"{owner}/{repo}"
        if key not in self.releases:
            raise RemoteNotFoundError(f"{key} 没有 release")
        return Release(tag_name=self.releases[key])

    def get_tags(self, owner: str, repo: str) -> list[str]:
        self.calls.append(("get_tags", f"{owner}/{repo}"))
        return list(self.tags.get(f"{owner}/{repo}", []))

    def tag_exists(self, owner: str, repo: str, tag: str) -> bool:
        self.calls.append(("tag_exists", f"{owner}/{repo}@{tag}"))
        return tag in self.tags.get(f"{owner}/{repo}", [])

    def get_default_branch_tip_commit(self, owner: str, repo: str) -> str:
        self.calls.append(("get_default_branch_tip_commit", f"{owner}/{repo}"))
        return self.tips[f"{owner}/{repo}"]

    def get_repository(self, owner: str, repo: str) -> dict:
        self.calls.append(("get_repository", f"{owner}/{repo}"))
        key = f"{owner}/{repo}"
        if self.repos is not None and key not in self.repos:
            raise RemoteNotFoundError(f"仓库不存在: {key}")
        return {"full_name": key}


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def client() -> FakeMetadataClient:
    return FakeMetadataClient()
