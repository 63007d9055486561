"""CLI - 拉取缓存管理"""

from __future__ import annotations

import click

from zdeps.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(cache_group)


def _human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


@click.group(name="cache")
def cache_group() -> None:
    """拉取缓存管理"""


@cache_group.command(name="info")
def cache_info() -> None:
    """显示缓存位置、条目与占用空间"""
    cache = _svc().cache
    entries = cache.entries()
    click.echo(f"位置: {cache.root}")
    click.echo(f"条目: {len(entries)}")
    click.echo(f"大小: {_human_size(cache.size_bytes())}")
    for key in sorted(entries):
        click.echo(f"  {key:40s} {entries[key].version}")


@cache_group.command(name="clean")
@click.option("--key", "keys", multiple=True, help="只删除指定缓存键（可多次指定）")
@click.option("--yes", is_flag=True, help="跳过确认")
def cache_clean(keys: tuple[str, ...], yes: bool) -> None:
    """清空缓存（或删除指定缓存键）"""
    cache = _svc().cache
    if keys:
        for key in keys:
            if cache.delete(key):
                click.echo(f"已删除: {key}")
            else:
                click.echo(f"缓存键不存在: {key}")
        return
    if not yes:
        click.confirm(f"确认删除 {cache.root} 下的全部缓存?", abort=True)
    cache.clear()
    click.echo("缓存已清空")
