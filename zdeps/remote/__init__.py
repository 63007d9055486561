"""远端协作者 - 仓库元数据客户端与 git 拉取后端

拆分说明:
- github.py: GitHub 元数据客户端 + 仓库地址解析
- git.py: git 子进程客户端 + 拉取后端（浅克隆回退 / 显式检出）
"""

from zdeps.remote.git import (
    ExplicitCheckoutBackend,
    GitClient,
    RetrievalBackend,
    ShallowThenFullBackend,
)
from zdeps.remote.github import GitHubClient, MetadataClient, parse_locator

__all__ = [
    "GitHubClient",
    "MetadataClient",
    "parse_locator",
    "GitClient",
    "RetrievalBackend",
    "ShallowThenFullBackend",
    "ExplicitCheckoutBackend",
]
