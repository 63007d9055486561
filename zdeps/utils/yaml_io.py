"""清单 / 锁文件 (YAML) 与缓存索引 (JSON) 读写

统一 encoding="utf-8"、大小上限、目录自动创建、原子写入。
解析错误原样上抛，由调用方转为 ManifestError / ConfigError 或按空缓存处理。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 单个清单 / 锁文件 / 索引文件的大小上限 (10MB)
MAX_FILE_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """先写同目录临时文件再 rename，写入中断时原文件保持完整

    Raises:
        OSError: 写入或替换失败（临时文件已清理）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _check_size(p: Path) -> None:
    size = p.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValueError(f"文件过大: {p} ({size} 字节)，超过限制 {MAX_FILE_SIZE} 字节")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射；文件不存在、为空或顶层不是映射时返回空字典

    Raises:
        yaml.YAMLError: 格式错误
        ValueError: 文件超过 MAX_FILE_SIZE
    """
    p = Path(path)
    if not p.exists():
        return {}
    _check_size(p)

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 失败: %s (%s)", path, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning("%s 顶层不是映射 (%s)，按空处理", path, type(result).__name__)
        return {}
    return result


def dump_yaml(data: Any, header: str = "") -> str:
    """序列化为 YAML 文本（保持键顺序），header 逐行以 # 注释写在最前"""
    body = yaml.safe_dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False,
    )
    if not header:
        return body
    lines = "".join(f"# {line}\n" for line in header.splitlines())
    return lines + body


def save_yaml(path: str | Path, data: Any, header: str = "") -> None:
    """原子写入 YAML 文件"""
    atomic_write(Path(path), dump_yaml(data, header))


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件，文件不存在返回 None

    Raises:
        json.JSONDecodeError: 内容不是合法 JSON
        ValueError: 文件超过 MAX_FILE_SIZE
    """
    p = Path(path)
    if not p.exists():
        return None
    _check_size(p)
    with open(p, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文件（缩进 2，键排序）"""
    atomic_write(Path(path), json.dumps(data, indent=2, sort_keys=True) + "\n")
