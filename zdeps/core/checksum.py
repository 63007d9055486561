"""内容校验和

职责:
- 单文件流式 SHA-256
- 目录树确定性摘要（排除任意层级的 .git）
- 校验和验证

目录摘要算法:
  对每个常规文件（不含符号链接，相对路径统一为 "/" 分隔，按字典序排序）依次写入
  相对路径、\\0、该文件 hash_file 的十六进制摘要、\\0，取最终摘要。
  结果与遍历顺序、宿主路径分隔符无关。
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from zdeps.core.exceptions import ChecksumMismatchError

logger = logging.getLogger(__name__)

VCS_DIR = ".git"
_CHUNK_SIZE = 8192


def hash_file(path: str | Path) -> str:
    """计算文件原始字节的 SHA-256"""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def _tree_files(root: Path) -> list[str]:
    """列出 root 下所有常规文件的相对路径（已排除 .git）"""
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d != VCS_DIR]
        for name in filenames:
            if name == VCS_DIR:
                continue
            full = Path(dirpath) / name
            # 符号链接不计入，避免指向树外的内容影响摘要
            if full.is_symlink() or not full.is_file():
                continue
            files.append(full.relative_to(root).as_posix())
    files.sort()
    return files


def hash_tree(root: str | Path) -> str:
    """计算目录树摘要"""
    root = Path(root)
    sha256 = hashlib.sha256()
    for rel in _tree_files(root):
        sha256.update(rel.encode("utf-8"))
        sha256.update(b"\0")
        sha256.update(hash_file(root / rel).encode("ascii"))
        sha256.update(b"\0")
    return sha256.hexdigest()


def compute(path: str | Path) -> str:
    """按路径类型计算摘要: 目录走 hash_tree，文件走 hash_file"""
    p = Path(path)
    if p.is_dir():
        return hash_tree(p)
    return hash_file(p)


def verify(path: str | Path, expected: str) -> None:
    """重新计算并比对校验和

    Raises:
        FileNotFoundError: 路径不存在
        ChecksumMismatchError: 校验和不一致
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"校验路径不存在: {p}")
    actual = compute(p)
    if actual != expected:
        raise ChecksumMismatchError(
            f"校验和不匹配 {p}: 期望 {expected}, 实际 {actual}",
            expected=expected, actual=actual,
        )
    logger.debug("校验和通过: %s", p)
