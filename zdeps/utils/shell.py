"""Shell 命令执行工具 - 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，git 客户端只依赖该协议，
测试时注入返回预置输出的假执行器即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout + stderr 合并文本，用于错误诊断"""
        return f"{self.stdout}\n{self.stderr}".strip()


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 - 抽象子进程调用"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）

    命令不存在（如未安装 git）时返回 rc=127，与 shell 行为一致，
    由调用方按普通失败处理。
    """

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(cmd), cwd or ".")
        try:
            r = subprocess.run(
                cmd, capture_output=True, text=True,
                cwd=cwd, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                returncode=124, stdout="",
                stderr=f"命令超时 ({timeout}s): {e}",
            )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )
