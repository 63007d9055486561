"""集中配置管理

所有组件的目录、远端地址、解析策略统一由 Config 提供。
Config 在入口处（CLI / 测试）显式构造，再注入缓存、检查器与服务容器，
不存在进程级单例，测试可直接指向临时目录。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from zdeps.core.exceptions import ConfigError
from zdeps.utils.net import validate_url_scheme
from zdeps.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

CONSTRAINT_MODES = ("best_match", "literal")


@dataclass
class Config:
    """全局配置"""

    # 目录 / 文件
    cache_dir: str = "~/.zdeps/cache"
    manifest: str = "zdeps.yml"
    lock_file: str = "zdeps.lock"

    # 远端
    github_api_url: str = "https://api.github.com"
    git_host: str = "https://github.com"
    github_token: str = ""
    http_timeout: int = 30
    git_timeout: int | None = None

    # 版本约束解析策略: best_match | literal
    constraint_resolution: str = "best_match"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.github_token:
            self.github_token = (
                os.getenv("GITHUB_TOKEN", "") or os.getenv("GH_TOKEN", "")
            )

    @classmethod
    def from_file(cls, path: str = "zdeps.config.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"无法解析配置文件 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.validate()
        logger.debug("配置已加载: %s", path)
        return cfg

    def validate(self) -> None:
        if self.constraint_resolution not in CONSTRAINT_MODES:
            raise ConfigError(
                f"constraint_resolution 无效: {self.constraint_resolution}，"
                f"可选: {', '.join(CONSTRAINT_MODES)}"
            )
        if self.http_timeout <= 0:
            raise ConfigError(f"http_timeout 必须为正数: {self.http_timeout}")
        validate_url_scheme(self.github_api_url, context="github_api_url")
        validate_url_scheme(self.git_host, context="git_host")

    @property
    def cache_root(self) -> Path:
        return Path(self.cache_dir).expanduser()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["github_token"]:
            data["github_token"] = "***"
        return data
