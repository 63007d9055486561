"""拉取缓存管理

职责:
- 缓存键 → 拉取结果的持久化映射
- 拉取目录布局（按 owner/repo/ref 独占）
- 失效条目自愈清理

磁盘布局:
  <cache_root>/index.json                 整体索引（每次变更立即落盘）
  <cache_root>/repos/<owner>/<repo>/<ref> 拉取目录

缓存策略:
  - 以 (owner, repo, 选择器种类, 选择器值) 为缓存键
  - 条目记录的目录被删除后，下次访问即视为未命中并从索引移除
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from zdeps.core.models import CacheEntry, DependencySpec
from zdeps.utils.yaml_io import load_json, save_json

logger = logging.getLogger(__name__)

INDEX_FILE = "index.json"
REPOS_DIR = "repos"


def make_cache_key(owner: str, repo: str, spec: DependencySpec) -> str:
    """由仓库与生效选择器生成缓存键

    owner/repo 统一小写，同一仓库的不同写法得到相同的键。
    """
    kind, value = spec.selector()
    base = f"{owner.lower()}/{repo.lower()}"
    if kind in ("latest", "latest_commit"):
        return f"{base}#{kind}"
    return f"{base}#{kind}={value}"


def safe_ref_dirname(ref: str) -> str:
    """引用名转目录名（分支名中的 / 不产生嵌套目录）"""
    return ref.replace("/", "_")


class FetchCache:
    """持久化拉取缓存"""

    def __init__(self, cache_root: str | Path) -> None:
        self._root = Path(cache_root).expanduser()
        self._entries: dict[str, CacheEntry] = {}
        self._load()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def index_path(self) -> Path:
        return self._root / INDEX_FILE

    def repo_dir(self, owner: str, repo: str, ref: str) -> Path:
        """(owner, repo, ref) 对应的独占拉取目录"""
        return self._root / REPOS_DIR / owner / repo / safe_ref_dirname(ref)

    # ------------------------------------------------------------------
    # 读写
    # ------------------------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        """获取缓存条目副本；目录已不存在时清除该条目并返回 None"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not Path(entry.path).exists():
            logger.info("缓存条目已失效（目录不存在），移除: %s", key)
            del self._entries[key]
            self._save()
            return None
        return CacheEntry(**entry.to_dict())

    def set(self, key: str, entry: CacheEntry) -> None:
        """写入条目并立即落盘"""
        self._entries[key] = CacheEntry(**entry.to_dict())
        self._save()

    def delete(self, key: str) -> bool:
        if key not in self._entries:
            return False
        del self._entries[key]
        self._save()
        return True

    def clear(self) -> None:
        """清空索引并删除全部拉取目录"""
        self._entries.clear()
        if self._root.exists():
            shutil.rmtree(self._root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._save()
        logger.info("缓存已清空: %s", self._root)

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def entries(self) -> dict[str, CacheEntry]:
        return {k: CacheEntry(**v.to_dict()) for k, v in self._entries.items()}

    def size_bytes(self) -> int:
        """缓存根目录下全部文件的总字节数"""
        total = 0
        if not self._root.exists():
            return 0
        for dirpath, _dirnames, filenames in os.walk(self._root):
            for name in filenames:
                try:
                    total += (Path(dirpath) / name).lstat().st_size
                except OSError:
                    continue
        return total

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def _load(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        try:
            data = load_json(self.index_path)
        except ValueError as e:
            # JSONDecodeError / UnicodeDecodeError / 超过大小上限
            logger.warning("缓存索引损坏，按空缓存处理: %s (%s)", self.index_path, e)
            return
        if not isinstance(data, dict):
            return
        for key, raw in data.items():
            if isinstance(raw, dict):
                self._entries[key] = CacheEntry.from_dict(raw)
        logger.debug("已加载 %d 个缓存条目", len(self._entries))

    def _save(self) -> None:
        save_json(
            self.index_path,
            {k: v.to_dict() for k, v in self._entries.items()},
        )
