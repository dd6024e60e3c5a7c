"""uiget 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
核心层抛出的 UigetError 在 group 层统一转换为 ClickException（退出码 1）。
"""

import logging
import os
from typing import Any

import click

from uiget import __version__
from uiget.core.component.models import ComponentRef, normalize_registry_id
from uiget.core.exceptions import UigetError, ValidationError, error_context
from uiget.services.container import get_container, init_container
from uiget.utils.logger import LOG_JSON_ENV, resolve_level, setup_logging

logger = logging.getLogger(__name__)


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _parse_kv_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    """解析 key=value 参数对"""
    result: dict[str, str] = {}
    for p in pairs:
        if "=" not in p:
            raise ValidationError(f"参数格式应为 KEY=VALUE: '{p}'")
        k, v = p.split("=", 1)
        result[k.strip()] = v.strip()
    return result


def _to_ref(text: str, registry: str | None) -> ComponentRef:
    """命令行参数转组件引用；显式 --registry 优先于 @ns/ 前缀"""
    ref = ComponentRef.parse(text, _svc().config.default_registry)
    if registry:
        return ComponentRef(registry_id=normalize_registry_id(registry), name=ref.name)
    return ref


class UigetGroup(click.Group):
    """把 UigetError 转为带可读信息的 ClickException"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except UigetError as e:
            logger.debug("命令失败: %s", error_context(e))
            raise click.ClickException(str(e)) from e


@click.group(cls=UigetGroup)
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="配置文件路径（默认 uiget.json / components.json）")
@click.option("--verbose", "-v", is_flag=True, help="输出调试日志")
def main(config_path: str | None, verbose: bool) -> None:
    """uiget - UI 组件注册表客户端"""
    setup_logging(
        level=resolve_level(verbose),
        json_output=os.getenv(LOG_JSON_ENV, "") == "1",
    )
    if config_path:
        init_container(config_path)


# 注册各领域子命令
from uiget.cli.cmd_add import register as _reg_add  # noqa: E402
from uiget.cli.cmd_browse import register as _reg_browse  # noqa: E402
from uiget.cli.cmd_outdated import register as _reg_outdated  # noqa: E402
from uiget.cli.cmd_registry import register as _reg_registry  # noqa: E402
from uiget.cli.cmd_project import register as _reg_project  # noqa: E402

_reg_add(main)
_reg_browse(main)
_reg_outdated(main)
_reg_registry(main)
_reg_project(main)
