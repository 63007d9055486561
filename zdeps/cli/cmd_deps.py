"""CLI - 依赖添加 / 安装 / 列表 / 同步检查 / 更新 / 移除"""

from __future__ import annotations

import click

from zdeps.cli import _svc
from zdeps.core.exceptions import DriftDetectedError
from zdeps.core.manifest import DEP_SECTIONS, LockFile, Manifest
from zdeps.core.updates import check_for_updates


def register(group: click.Group) -> None:
    group.add_command(add)
    group.add_command(install)
    group.add_command(list_deps)
    group.add_command(sync)
    group.add_command(check)
    group.add_command(outdated)
    group.add_command(remove)


@click.command()
@click.argument("target")
@click.option("--dev", is_flag=True, help="添加为开发依赖")
@click.option("--build", "build_dep", is_flag=True, help="添加为构建依赖")
@click.option("--as", "alias", default="", help="依赖别名（清单中的名称）")
@click.option("--branch", default="", help="使用指定分支（优先于版本）")
@click.option("--root-file", "--root_file", "root_file", default="", help="依赖的根源文件，如 src/clap.zig")
def add(target: str, dev: bool, build_dep: bool, alias: str, branch: str, root_file: str) -> None:
    """校验后将依赖写入清单 (TARGET: owner/repo[@version] 或仓库 URL)"""
    if dev and build_dep:
        raise click.UsageError("--dev 与 --build 不能同时使用")
    section = "dev_dependencies" if dev else "build_dependencies" if build_dep else "dependencies"
    name, spec, result = _svc().installer.add(
        target, section=section, alias=alias, branch=branch, root_file=root_file,
    )
    click.echo(f"已添加 {name}@{result.version} ({spec.git}) -> {section}")
    if spec.root_file:
        click.echo(f"  root_file: {spec.root_file}")
    click.echo("执行 zdeps install 安装并写入锁文件")


@click.command()
@click.option("--frozen", is_flag=True, help="要求内容与锁文件校验和一致")
@click.option("--refresh", is_flag=True, help="忽略拉取缓存，重新解析并拉取")
def install(frozen: bool, refresh: bool) -> None:
    """安装清单中的全部依赖并写入锁文件"""
    svc = _svc()
    manifest = Manifest.load(svc.config.manifest)
    manifest.validate()
    lock = svc.installer.install(manifest, frozen=frozen, refresh=refresh)
    for pkg in lock.packages:
        click.echo(f"  {pkg.name:20s} {pkg.version:16s} {pkg.source}")
    click.echo(f"已锁定 {len(lock.packages)} 个依赖 -> {svc.config.lock_file}")


@click.command()
def sync() -> None:
    """检查清单与锁文件是否同步"""
    svc = _svc()
    manifest = Manifest.load(svc.config.manifest)
    lock = LockFile.load(svc.config.lock_file)
    try:
        svc.checker.check_sync(manifest.all_dependencies(), lock.packages)
    except DriftDetectedError as e:
        for issue in e.issues:
            click.echo(f"  - {issue}", err=True)
        raise
    click.echo("清单与锁文件已同步")


@click.command()
def check() -> None:
    """检查同步状态并校验每个依赖（仓库可访问、版本约束合法）"""
    manifest = _svc().checker.check_project()
    click.echo(f"全部 {len(manifest.all_dependencies())} 个依赖有效")


@click.command()
def outdated() -> None:
    """列出有新 release 的依赖"""
    svc = _svc()
    lock = LockFile.load(svc.config.lock_file)
    updates = check_for_updates(svc.client, lock)
    if not updates:
        click.echo("所有依赖均为最新")
        return
    for u in updates:
        click.echo(f"  {u.name:20s} {u.current_version:12s} -> {u.latest_version}")


@click.command()
@click.argument("name")
def remove(name: str) -> None:
    """从清单与锁文件中移除依赖"""
    _svc().installer.remove(name)
    click.echo(f"已移除: {name}")


@click.command("list")
def list_deps() -> None:
    """按清单分段列出依赖及其已锁定版本"""
    svc = _svc()
    manifest = Manifest.load(svc.config.manifest)
    lock = LockFile.load(svc.config.lock_file)
    if not manifest.all_dependencies():
        click.echo("清单中没有依赖")
        return
    for section in DEP_SECTIONS:
        deps = getattr(manifest, section)
        if not deps:
            continue
        click.echo(f"{section}:")
        for name in sorted(deps):
            spec = deps[name]
            kind, value = spec.selector()
            wanted = value or kind
            locked = lock.get(name)
            installed = locked.version if locked else "未安装"
            click.echo(f"  {name:20s} {wanted:16s} {installed:16s} {spec.git}")
