"""CLI 组件浏览命令（list / search / info）"""

from __future__ import annotations

import click

from uiget.cli import _svc, _to_ref
from uiget.core.component.models import CATEGORIES, IndexEntry, categorize, type_tag


def register(group: click.Group) -> None:
    group.add_command(list_components)
    group.add_command(search)
    group.add_command(info)


def _target_registries(registry: str | None) -> list[str]:
    svc = _svc()
    if registry:
        return [svc.client.get(registry).id]
    return svc.client.namespaces()


def _echo_entries(entries: list[IndexEntry]) -> None:
    for entry in entries:
        desc = f"  {entry.description}" if entry.description else ""
        click.echo(f"  {entry.name:28s} [{type_tag(entry.type) or '-'}]{desc}")


@click.command(name="list")
@click.option("--registry", "-r", default=None, help="只列出指定注册表")
@click.option("--category", type=click.Choice(CATEGORIES), default=None, help="只列出指定类别")
def list_components(registry: str | None, category: str | None) -> None:
    """列出注册表中的组件"""
    svc = _svc()
    for registry_id in _target_registries(registry):
        entries = svc.client.fetch_index(registry_id, svc.style)
        groups = categorize(entries)
        if category:
            groups = {category: groups.get(category, [])}
        click.echo(click.style(f"@{registry_id}", bold=True) + f" ({len(entries)} 个组件)")
        for name, items in groups.items():
            if not items:
                continue
            click.echo(f" {name}:")
            _echo_entries(items)


@click.command()
@click.argument("query")
@click.option("--registry", "-r", default=None, help="只搜索指定注册表")
def search(query: str, registry: str | None) -> None:
    """按名称或类型搜索组件"""
    svc = _svc()
    found = 0
    for registry_id in _target_registries(registry):
        matches = svc.client.search(query, registry_id, svc.style)
        if not matches:
            continue
        found += len(matches)
        click.echo(click.style(f"@{registry_id}", bold=True))
        _echo_entries(matches)
    if not found:
        click.echo(f"没有匹配 '{query}' 的组件。")


@click.command()
@click.argument("component")
@click.option("--registry", "-r", default=None, help="注册表 id")
def info(component: str, registry: str | None) -> None:
    """显示组件详情与落盘路径"""
    svc = _svc()
    ref = _to_ref(component, registry)
    manifest = svc.client.fetch(ref, svc.style)
    click.echo(f"名称:   {manifest.name}")
    click.echo(f"注册表: @{manifest.registry_id}")
    click.echo(f"类型:   {type_tag(manifest.type) or '-'}")
    if manifest.description:
        click.echo(f"描述:   {manifest.description}")
    if manifest.registry_dependencies:
        click.echo("组件依赖: " + ", ".join(str(r) for r in manifest.registry_dependencies))
    if manifest.dependencies:
        click.echo("npm 依赖: " + ", ".join(manifest.dependencies))
    if manifest.dev_dependencies:
        click.echo("npm 开发依赖: " + ", ".join(manifest.dev_dependencies))
    click.echo("文件:")
    for entry in manifest.files:
        click.echo(f"  {entry.target} -> {svc.path_resolver.resolve_target(entry, manifest.type)}")
