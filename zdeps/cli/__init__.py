"""zdeps 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
业务异常 (ZdepsError) 统一转为一行错误提示 + 退出码 1。
"""

from __future__ import annotations

from typing import Any

import click

from zdeps import __version__
from zdeps.core.config import Config
from zdeps.core.exceptions import ZdepsError
from zdeps.services.container import ServiceContainer
from zdeps.utils.logger import setup_from_env


def _svc() -> ServiceContainer:
    """当前命令所用服务容器的快捷方式"""
    return click.get_current_context().find_root().obj


class ZdepsGroup(click.Group):
    """将 ZdepsError 转为 ClickException 的命令组"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except ZdepsError as e:
            raise click.ClickException(str(e)) from e


@click.group(cls=ZdepsGroup)
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", default="zdeps.config.yml",
    envvar="ZDEPS_CONFIG", help="配置文件路径",
)
@click.option("--cache-dir", default=None, help="覆盖配置中的缓存目录")
@click.pass_context
def main(ctx: click.Context, config_path: str, cache_dir: str | None) -> None:
    """zdeps - Zig 依赖管理器"""
    setup_from_env()
    if ctx.obj is None:
        cfg = Config.from_file(config_path)
        if cache_dir:
            cfg.cache_dir = cache_dir
        ctx.obj = ServiceContainer(cfg)


# 注册各领域子命令
from zdeps.cli.cmd_deps import register as _reg_deps  # noqa: E402
from zdeps.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_deps(main)
_reg_cache(main)
