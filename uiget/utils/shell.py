"""Shell 命令执行工具: 运行包管理器安装 npm 依赖

通过 CommandExecutor 协议抽象子进程执行，测试时可注入 mock 实现。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from uiget.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(self, cmd: list[str], *, cwd: str = ".") -> CommandResult:
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(self, cmd: list[str], *, cwd: str = ".") -> CommandResult:
        try:
            r = subprocess.run(
                cmd, capture_output=True, text=True, cwd=cwd, check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(returncode=r.returncode, stdout=r.stdout, stderr=r.stderr)


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_cmd(cmd: list[str], *, cwd: str = ".", label: str = "cmd") -> CommandResult:
    """执行命令，失败抛 ExecutionError

    Args:
        cmd: 参数列表
        cwd: 工作目录
        label: 日志标签
    """
    logger.info("  %s: %s (cwd=%s)", label, shlex.join(cmd), cwd)
    r = get_executor().execute(cmd, cwd=cwd)
    if not r.success:
        raise ExecutionError(f"{label}失败 (rc={r.returncode}): {r.stderr[:500]}")
    return r
