"""服务容器 - 由一个显式 Config 懒加载装配全部组件

依赖关系图（→ 表示依赖）:
  fetcher   → cache, client, git, resolver
  resolver  → client
  client    → git
  checker   → client
  installer → fetcher

同一容器内的实例共享状态（缓存索引、git 客户端）。

用法:
    cfg = Config.from_file("zdeps.config.yml")
    container = ServiceContainer(cfg)
    container.installer.install(manifest)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zdeps.core.cache import FetchCache
    from zdeps.core.config import Config
    from zdeps.core.fetcher import Fetcher
    from zdeps.core.installer import Installer
    from zdeps.core.resolver import ReferenceResolver
    from zdeps.core.sync import ConsistencyChecker
    from zdeps.remote.git import GitClient
    from zdeps.remote.github import GitHubClient
    from zdeps.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器 - 每个实例持有一组共享组件"""

    def __init__(self, config: Config, executor: CommandExecutor | None = None) -> None:
        self._instances: dict[str, object] = {}
        self._config = config
        self._executor = executor

    @property
    def config(self) -> Config:
        return self._config

    @property
    def cache(self) -> FetchCache:
        if "cache" not in self._instances:
            from zdeps.core.cache import FetchCache
            self._instances["cache"] = FetchCache(self._config.cache_root)
        return self._instances["cache"]  # type: ignore[return-value]

    @property
    def git(self) -> GitClient:
        if "git" not in self._instances:
            from zdeps.remote.git import GitClient
            self._instances["git"] = GitClient(
                executor=self._executor,
                host=self._config.git_host,
                timeout=self._config.git_timeout,
            )
        return self._instances["git"]  # type: ignore[return-value]

    @property
    def client(self) -> GitHubClient:
        if "client" not in self._instances:
            from zdeps.remote.github import GitHubClient
            self._instances["client"] = GitHubClient(
                api_url=self._config.github_api_url,
                token=self._config.github_token,
                timeout=self._config.http_timeout,
                git=self.git,
            )
        return self._instances["client"]  # type: ignore[return-value]

    @property
    def resolver(self) -> ReferenceResolver:
        if "resolver" not in self._instances:
            from zdeps.core.resolver import ReferenceResolver
            self._instances["resolver"] = ReferenceResolver(
                self.client,
                constraint_mode=self._config.constraint_resolution,
            )
        return self._instances["resolver"]  # type: ignore[return-value]

    @property
    def fetcher(self) -> Fetcher:
        if "fetcher" not in self._instances:
            from zdeps.core.fetcher import Fetcher
            self._instances["fetcher"] = Fetcher(
                cache=self.cache,
                client=self.client,
                git=self.git,
                resolver=self.resolver,
            )
        return self._instances["fetcher"]  # type: ignore[return-value]

    @property
    def checker(self) -> ConsistencyChecker:
        if "checker" not in self._instances:
            from zdeps.core.sync import ConsistencyChecker
            self._instances["checker"] = ConsistencyChecker(self.client, self._config)
        return self._instances["checker"]  # type: ignore[return-value]

    @property
    def installer(self) -> Installer:
        if "installer" not in self._instances:
            from zdeps.core.installer import Installer
            self._instances["installer"] = Installer(self._config, self.fetcher)
        return self._instances["installer"]  # type: ignore[return-value]
