"""CLI 注册表管理命令"""

from __future__ import annotations

import click

from uiget.cli import _parse_kv_pairs, _svc
from uiget.core.component.models import RegistryDescriptor, normalize_registry_id
from uiget.core.exceptions import ConfigError


def register(group: click.Group) -> None:
    group.add_command(registry_group)


@click.group(name="registry")
def registry_group() -> None:
    """注册表管理"""


@registry_group.command(name="add")
@click.argument("registry_id")
@click.argument("url")
@click.option("--header", multiple=True, help="请求头 KEY=VALUE（可多次）")
@click.option("--param", multiple=True, help="查询参数 KEY=VALUE（可多次）")
def registry_add(registry_id: str, url: str, header: tuple[str, ...], param: tuple[str, ...]) -> None:
    """添加或更新注册表"""
    svc = _svc()
    descriptor = RegistryDescriptor.from_config(registry_id, {
        "url": url,
        "headers": _parse_kv_pairs(header),
        "params": _parse_kv_pairs(param),
    })
    existed = descriptor.id in svc.config.registries
    svc.config.registries[descriptor.id] = descriptor
    svc.save_config()
    click.echo(f"注册表已{'更新' if existed else '添加'}: @{descriptor.id} -> {url}")


@registry_group.command(name="list")
def registry_list() -> None:
    """列出已配置的注册表"""
    svc = _svc()
    cfg = svc.config
    for rid, descriptor in cfg.registries.items():
        marks = []
        if rid == cfg.default_registry:
            marks.append("默认")
        if descriptor.headers:
            marks.append(f"headers={','.join(descriptor.headers)}")
        if descriptor.params:
            marks.append(f"params={','.join(descriptor.params)}")
        suffix = f" ({'; '.join(marks)})" if marks else ""
        click.echo(f"  @{rid:20s} {descriptor.url_template}{suffix}")


@registry_group.command(name="test")
@click.argument("registry_id")
def registry_test(registry_id: str) -> None:
    """测试注册表连通性（拉取索引）"""
    svc = _svc()
    entries = svc.client.fetch_index(registry_id, svc.style)
    click.echo(f"@{normalize_registry_id(registry_id)} 可用: {len(entries)} 个组件")


@registry_group.command(name="remove")
@click.argument("registry_id")
def registry_remove(registry_id: str) -> None:
    """移除注册表"""
    svc = _svc()
    cfg = svc.config
    rid = normalize_registry_id(registry_id)
    if rid not in cfg.registries:
        raise ConfigError(f"注册表 '{rid}' 未配置")
    if rid == cfg.default_registry:
        raise ConfigError(f"不能移除默认注册表 '{rid}'")
    del cfg.registries[rid]
    svc.save_config()
    click.echo(f"注册表已移除: @{rid}")
