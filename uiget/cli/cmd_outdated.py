"""CLI 过期检测命令"""

from __future__ import annotations

import click

from uiget.cli import _svc
from uiget.core.component.models import ComponentRef, ComponentStatus, normalize_registry_id
from uiget.core.component.outdated import discover_installed


def register(group: click.Group) -> None:
    group.add_command(outdated)


@click.command()
@click.option("--registry", "-r", default=None, help="用于比对的注册表 id")
def outdated(registry: str | None) -> None:
    """检查已安装组件是否与注册表当前版本一致"""
    svc = _svc()
    directory = svc.components_directory()
    names = discover_installed(directory)
    if not names:
        click.echo(f"{directory} 下没有已安装的组件。")
        return

    registry_id = normalize_registry_id(registry or svc.config.default_registry)
    svc.client.get(registry_id)
    refs = [ComponentRef(registry_id=registry_id, name=n) for n in names]
    reports = svc.outdated.check(refs, style=svc.style)

    stale = [r for r in reports if r.status != ComponentStatus.CURRENT]
    if not stale:
        click.echo(f"全部 {len(reports)} 个组件均为最新。")
        return
    for report in stale:
        click.echo(f"  {report.ref.name:24s} {report.status.value}")
        for path in report.diff_paths:
            click.echo(f"      {path}")
        if report.error:
            click.echo(f"      {report.error}")
    click.echo(f"{len(stale)}/{len(reports)} 个组件需要关注，使用 `uiget add <组件> --force` 更新。")
