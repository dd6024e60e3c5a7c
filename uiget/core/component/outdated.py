"""过期检测

对每个已安装组件重新拉取清单并解析路径，逐文件与磁盘内容做字节比对:
- 任一期望文件不存在 -> missing
- 任一文件内容不同 -> outdated（列出全部差异路径）
- 全部存在且一致 -> current

只读，不写任何文件；单个组件拉取失败记为 error，不影响其他组件。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from uiget.core.component.installer import read_existing
from uiget.core.component.models import (
    COMPONENT_NAME_RE,
    ComponentRef,
    ComponentStatus,
    OutdatedReport,
)
from uiget.core.exceptions import UigetError

if TYPE_CHECKING:
    from uiget.core.component.client import RegistryClient
    from uiget.core.component.placeholders import PathResolver

logger = logging.getLogger(__name__)

_SKIPPED_FILES = frozenset(("index.ts", "index.js"))


def discover_installed(directory: str | Path) -> list[str]:
    """扫描组件目录，返回已安装组件名（排序去重）

    子目录名与文件名（去掉扩展名）都视为组件；隐藏文件、index.*、*.d.ts、*.map 跳过。
    """
    root = Path(directory)
    if not root.is_dir():
        return []
    names: set[str] = set()
    for entry in root.iterdir():
        name = entry.name
        if name.startswith(".") or name in _SKIPPED_FILES:
            continue
        if entry.is_file():
            if name.endswith((".d.ts", ".map")):
                continue
            name = name.split(".", 1)[0]
        if name and COMPONENT_NAME_RE.match(name):
            names.add(name)
    return sorted(names)


class OutdatedDetector:
    """已安装组件与注册表当前版本的比对"""

    def __init__(
        self,
        client: RegistryClient,
        path_resolver: PathResolver,
        *,
        max_workers: int = 8,
    ) -> None:
        self.client = client
        self.path_resolver = path_resolver
        self.max_workers = max(1, max_workers)

    def check(
        self, installed: list[ComponentRef], *, style: str | None = None,
    ) -> list[OutdatedReport]:
        """检测每个组件，返回顺序与输入一致"""
        if self.max_workers == 1 or len(installed) <= 1:
            reports = [self.check_one(ref, style=style) for ref in installed]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(installed))) as executor:
                futures = [executor.submit(self.check_one, ref, style=style) for ref in installed]
                reports = [f.result() for f in futures]
        counts: dict[str, int] = {}
        for r in reports:
            counts[r.status.value] = counts.get(r.status.value, 0) + 1
        logger.info("过期检测完成: %s", counts)
        return reports

    def check_one(self, ref: ComponentRef, *, style: str | None = None) -> OutdatedReport:
        try:
            manifest = self.client.fetch(ref, style)
            expected = self.path_resolver.resolve_manifest(manifest)
        except UigetError as e:
            logger.warning("检测组件 %s 失败: %s", ref, e, extra={"component": str(ref)})
            return OutdatedReport(ref=ref, status=ComponentStatus.ERROR, error=str(e))

        missing: list[str] = []
        differing: list[str] = []
        for resolved in expected:
            try:
                existing = read_existing(resolved.path)
            except OSError as e:
                logger.warning("读取 %s 失败: %s", resolved.relative_path, e)
                return OutdatedReport(ref=ref, status=ComponentStatus.ERROR, error=str(e))
            if existing is None:
                missing.append(resolved.relative_path)
            elif existing != resolved.content.encode("utf-8"):
                differing.append(resolved.relative_path)

        if missing:
            return OutdatedReport(ref=ref, status=ComponentStatus.MISSING, diff_paths=missing)
        if differing:
            return OutdatedReport(ref=ref, status=ComponentStatus.OUTDATED, diff_paths=differing)
        return OutdatedReport(ref=ref, status=ComponentStatus.CURRENT)
