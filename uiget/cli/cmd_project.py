"""CLI 项目初始化与注册表构建命令"""

from __future__ import annotations

import click

from uiget.cli import _svc
from uiget.core.component.builder import RegistryBuilder
from uiget.core.config import ProjectConfig
from uiget.core.exceptions import ConfigError


def register(group: click.Group) -> None:
    group.add_command(init)
    group.add_command(build)


@click.command()
@click.option("--force", is_flag=True, help="覆盖已有配置文件")
@click.option("--base-color", default=None, help="Tailwind 基础色（默认 slate）")
@click.option("--css", default=None, help="Tailwind CSS 入口文件（默认 src/app.css）")
@click.option("--components", default=None, help="components 别名（默认 $lib/components）")
@click.option("--utils", default=None, help="utils 别名（默认 $lib/utils）")
def init(
    force: bool, base_color: str | None, css: str | None,
    components: str | None, utils: str | None,
) -> None:
    """生成默认配置文件"""
    path = _svc().config_path
    if path.exists() and not force:
        raise ConfigError(f"配置文件已存在: {path}，使用 --force 覆盖")
    cfg = ProjectConfig.default()
    if base_color:
        cfg.tailwind.base_color = base_color
    if css:
        cfg.tailwind.css = css
    if components:
        cfg.aliases.components = components
    if utils:
        cfg.aliases.utils = utils
    cfg.save(path)
    click.echo(f"配置已写入: {path}")


@click.command()
@click.option("--registry", "registry_file", default="registry.json", help="注册表源文件")
@click.option("--output", "-o", default="public/r", help="输出目录")
def build(registry_file: str, output: str) -> None:
    """从注册表源文件生成静态注册表"""
    builder = RegistryBuilder(registry_file, output)
    written = builder.build()
    click.echo(f"注册表 {builder.name} 已构建: {len(written)} 个文件 -> {output}")
