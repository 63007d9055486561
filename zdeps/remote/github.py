"""GitHub 仓库元数据客户端

职责:
- 解析仓库地址（owner/repo、HTTPS、SSH 三种写法）
- 查询 release / tag / 仓库信息（REST API）
- 探测 tag 是否存在、获取默认分支最新提交（git ls-remote）
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from typing import Any, Protocol
from urllib.parse import urlparse

from zdeps.core.exceptions import InvalidLocatorError, RemoteError, RemoteNotFoundError
from zdeps.core.models import Release
from zdeps.remote.git import GitClient
from zdeps.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)

USER_AGENT = "zdeps-package-manager"
DEFAULT_BRANCHES = ("main", "master")

_SSH_RE = re.compile(r"^git@github\.com:([^/\s]+)/([^/\s]+?)(?:\.git)?$")
_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


class MetadataClient(Protocol):
    """解析器与检查器依赖的元数据能力"""

    def get_latest_release(self, owner: str, repo: str) -> Release: ...

    def get_tags(self, owner: str, repo: str) -> list[str]: ...

    def tag_exists(self, owner: str, repo: str, tag: str) -> bool: ...

    def get_default_branch_tip_commit(self, owner: str, repo: str) -> str: ...

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]: ...


def _checked(owner: str, repo: str, text: str) -> tuple[str, str]:
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not (_NAME_RE.match(owner) and _NAME_RE.match(repo)):
        raise InvalidLocatorError(f"无效的仓库地址: {text}")
    return owner, repo


def parse_locator(text: str) -> tuple[str, str]:
    """解析仓库地址为 (owner, repo)

    支持:
      - owner/repo
      - https://github.com/owner/repo[.git]
      - git@github.com:owner/repo.git

    Raises:
        InvalidLocatorError: 格式不合法或非 GitHub 地址
    """
    raw = text.strip()
    if "/" not in raw:
        raise InvalidLocatorError(f"无效的仓库地址: {text!r}")

    if raw.startswith("git@"):
        m = _SSH_RE.match(raw)
        if m is None:
            raise InvalidLocatorError(f"无效的 SSH 仓库地址: {text!r}")
        return _checked(m.group(1), m.group(2), text)

    if "://" in raw:
        u = urlparse(raw)
        if u.scheme not in ("http", "https"):
            raise InvalidLocatorError(f"不支持的仓库地址协议: {text!r}")
        if u.hostname != "github.com":
            raise InvalidLocatorError(f"仅支持 GitHub 仓库: {text!r}")
        parts = u.path.strip("/").split("/")
        if len(parts) < 2:
            raise InvalidLocatorError(f"无效的仓库 URL: {text!r}")
        return _checked(parts[0], parts[1], text)

    parts = raw.split("/")
    if len(parts) != 2:
        raise InvalidLocatorError(f"无效的仓库地址: {text!r}")
    return _checked(parts[0], parts[1], text)


class GitHubClient:
    """GitHub REST API + git ls-remote 客户端"""

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: str = "",
        timeout: int = 30,
        git: GitClient | None = None,
    ) -> None:
        validate_url_scheme(api_url, context="github api")
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.git = git or GitClient()

    # ------------------------------------------------------------------
    # REST API
    # ------------------------------------------------------------------

    def _request(self, path: str) -> Any:
        url = f"{self.api_url}{path}"
        req = urllib.request.Request(url)
        req.add_header("User-Agent", USER_AGENT)
        req.add_header("Accept", "application/vnd.github.v3+json")
        if self.token:
            req.add_header("Authorization", f"token {self.token}")
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                body = resp.read()
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise RemoteNotFoundError(f"资源不存在: {path}") from e
            raise RemoteError(f"GitHub API 错误 {e.code}: {path}") from e
        except (urllib.error.URLError, OSError) as e:
            raise RemoteError(f"GitHub API 请求失败: {path} - {e}") from e
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise RemoteError(f"GitHub API 响应解析失败: {path}") from e

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        try:
            data = self._request(f"/repos/{owner}/{repo}")
        except RemoteNotFoundError as e:
            raise RemoteNotFoundError(f"仓库不存在: {owner}/{repo}") from e
        return data if isinstance(data, dict) else {}

    def get_latest_release(self, owner: str, repo: str) -> Release:
        """最新的正式 release（排除 draft / prerelease）

        Raises:
            RemoteNotFoundError: 仓库没有正式 release
        """
        try:
            data = self._request(f"/repos/{owner}/{repo}/releases/latest")
        except RemoteNotFoundError as e:
            raise RemoteNotFoundError(f"{owner}/{repo} 没有 release") from e
        release = _to_release(data)
        if not release.draft and not release.prerelease:
            return release

        for item in self._request(f"/repos/{owner}/{repo}/releases") or []:
            candidate = _to_release(item)
            if not candidate.draft and not candidate.prerelease:
                return candidate
        raise RemoteNotFoundError(f"{owner}/{repo} 没有正式 release")

    def get_tags(self, owner: str, repo: str) -> list[str]:
        data = self._request(f"/repos/{owner}/{repo}/tags?per_page=100")
        return [t["name"] for t in data or [] if isinstance(t, dict) and t.get("name")]

    # ------------------------------------------------------------------
    # git ls-remote 探测
    # ------------------------------------------------------------------

    def tag_exists(self, owner: str, repo: str, tag: str) -> bool:
        url = self.git.repo_url(owner, repo)
        r = self.git.ls_remote(url, f"refs/tags/{tag}", tags=True)
        if not r.success:
            raise RemoteError(f"git ls-remote 失败 {url}: {r.output[:300]}")
        wanted = (f"refs/tags/{tag}", f"refs/tags/{tag}^{{}}")
        for line in r.stdout.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] in wanted:
                return True
        return False

    def get_default_branch_tip_commit(self, owner: str, repo: str) -> str:
        """默认分支最新提交 SHA（依次尝试 main / master）"""
        url = self.git.repo_url(owner, repo)
        last_error = ""
        for branch in DEFAULT_BRANCHES:
            r = self.git.ls_remote(url, f"refs/heads/{branch}")
            if not r.success:
                last_error = r.output[:300]
                continue
            parts = r.stdout.split()
            if parts:
                logger.debug("%s/%s %s 最新提交: %s", owner, repo, branch, parts[0])
                return parts[0]
        detail = f": {last_error}" if last_error else ""
        raise RemoteError(
            f"无法获取 {owner}/{repo} 默认分支最新提交 "
            f"(尝试 {', '.join(DEFAULT_BRANCHES)}){detail}"
        )


def _to_release(data: Any) -> Release:
    if not isinstance(data, dict) or not data.get("tag_name"):
        raise RemoteError("release 数据缺少 tag_name")
    return Release(
        tag_name=str(data["tag_name"]),
        draft=bool(data.get("draft", False)),
        prerelease=bool(data.get("prerelease", False)),
    )
