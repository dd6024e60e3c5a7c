"""CLI 组件安装命令"""

from __future__ import annotations

import re

import click

from uiget.cli import _svc, _to_ref
from uiget.core.component.models import (
    ComponentRef,
    FileStatus,
    InstallationPlan,
    InstallReport,
    categorize,
    normalize_registry_id,
    type_tag,
)
from uiget.core.exceptions import InstallIncompleteError, ValidationError
from uiget.utils.shell import run_cmd

_STATUS_MARKS = {
    FileStatus.CREATED: ("+", "green"),
    FileStatus.OVERWRITTEN: ("~", "yellow"),
    FileStatus.UNCHANGED: ("=", None),
    FileStatus.SKIPPED_CONFLICT: ("!", "yellow"),
    FileStatus.FAILED: ("x", "red"),
}

_SELECTION_RE = re.compile(r"^(\d+)(?:-(\d+))?$")


def register(group: click.Group) -> None:
    group.add_command(add)


def parse_selection(text: str, total: int) -> list[int]:
    """解析 "1,3,5-7" 形式的编号选择，返回去重后的 0 基索引"""
    picked: dict[int, None] = {}
    for part in re.split(r"[,\s]+", text.strip()):
        if not part:
            continue
        m = _SELECTION_RE.match(part)
        if not m:
            raise ValidationError(f"无效的选择: '{part}'")
        start = int(m.group(1))
        end = int(m.group(2) or start)
        if start < 1 or end > total or start > end:
            raise ValidationError(f"选择超出范围 1-{total}: '{part}'")
        picked.update(dict.fromkeys(range(start - 1, end)))
    return list(picked)


def _interactive_select(registry: str | None) -> list[ComponentRef]:
    """按类别列出注册表组件，读取编号选择"""
    svc = _svc()
    registry_id = normalize_registry_id(registry or svc.config.default_registry)
    entries = svc.client.fetch_index(registry_id, svc.style)
    if not entries:
        click.echo(f"注册表 {registry_id} 中没有组件。")
        return []

    ordered = []
    for category, items in categorize(entries).items():
        click.echo(click.style(f"\n[{category}]", bold=True))
        for entry in items:
            ordered.append(entry)
            desc = f"  {entry.description}" if entry.description else ""
            click.echo(f"  {len(ordered):3d}) {entry.name}{desc}")

    answer = click.prompt("\n选择要安装的组件编号（如 1,3,5-7）", default="", show_default=False)
    return [
        ComponentRef(registry_id=registry_id, name=ordered[i].name)
        for i in parse_selection(answer, len(ordered))
    ]


def _show_plan(plan: InstallationPlan, requested: list[ComponentRef]) -> None:
    requested_keys = {r.key for r in requested}
    click.echo(f"将安装 {len(plan.manifests)} 个组件:")
    for manifest in plan.manifests:
        tag = "" if manifest.ref.key in requested_keys else "（依赖）"
        kind = type_tag(manifest.type) or "-"
        click.echo(f"  {str(manifest.ref):30s} [{kind}] {len(manifest.files)} 个文件{tag}")


def _show_report(report: InstallReport) -> None:
    for outcome in report.outcomes:
        mark, color = _STATUS_MARKS[outcome.status]
        line = f"  {mark} {outcome.path} ({outcome.status.value})"
        if outcome.error:
            line += f" - {outcome.error}"
        click.echo(click.style(line, fg=color) if color else line)
    counts = report.summary()
    click.echo("完成: " + ", ".join(f"{k}={v}" for k, v in counts.items() if v))
    if counts[FileStatus.SKIPPED_CONFLICT.value]:
        click.echo("存在内容不同的已有文件，使用 --force 覆盖。")


def _handle_packages(plan: InstallationPlan, install_packages: bool) -> None:
    deps, dev_deps = plan.npm_dependencies()
    if not deps and not dev_deps:
        return
    if deps:
        click.echo(f"npm 依赖: {' '.join(deps)}")
    if dev_deps:
        click.echo(f"npm 开发依赖: {' '.join(dev_deps)}")

    detection = _svc().package_manager
    if detection is None:
        click.echo("未找到 package.json，请手动安装以上依赖。")
        return
    commands = []
    if deps:
        commands.append(detection.manager.install_command(deps))
    if dev_deps:
        commands.append(detection.manager.install_command(dev_deps, dev=True))
    if not install_packages:
        for cmd in commands:
            click.echo(f"  可运行: {' '.join(cmd)}")
        click.echo("使用 --install-packages 自动安装。")
        return
    for cmd in commands:
        run_cmd(cmd, cwd=str(detection.project_root), label=detection.manager.label)
    click.echo(f"已通过 {detection.manager.label} 安装依赖。")


@click.command()
@click.argument("components", nargs=-1)
@click.option("--registry", "-r", default=None, help="注册表 id（优先于 @ns/ 前缀）")
@click.option("--force", "-f", is_flag=True, help="覆盖内容不同的已有文件")
@click.option("--skip-deps", is_flag=True, help="不展开 registryDependencies")
@click.option("--yes", "-y", is_flag=True, help="跳过确认")
@click.option("--install-packages", is_flag=True, help="用检测到的包管理器安装 npm 依赖")
def add(
    components: tuple[str, ...], registry: str | None, force: bool,
    skip_deps: bool, yes: bool, install_packages: bool,
) -> None:
    """安装组件及其依赖"""
    svc = _svc()
    if components:
        requested = [_to_ref(c, registry) for c in components]
    else:
        requested = _interactive_select(registry)
    if not requested:
        click.echo("未选择任何组件。")
        return

    plan = svc.resolver.resolve(requested, style=svc.style, skip_deps=skip_deps)
    svc.installer.prepare(plan)
    _show_plan(plan, requested)
    if not yes and not click.confirm("继续安装?", default=True):
        click.echo("已取消。")
        return

    try:
        report = svc.installer.install(plan, force=force)
    except InstallIncompleteError as e:
        if e.report is not None:
            _show_report(e.report)
        raise
    _show_report(report)
    _handle_packages(plan, install_packages)
