"""组件安装器

把安装计划中的 ResolvedFile 写入磁盘并逐文件报告结果:
- 目标不存在 -> created
- 已存在且字节一致 -> unchanged
- 已存在且不同、未 force -> skipped-conflict（不写入）
- 已存在且不同、force -> overwritten

同一路径串行写入，不同路径并发；写入失败不回滚已写文件，
存在非冲突原因的失败时抛 InstallIncompleteError。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from uiget.core.component.models import (
    FileOutcome,
    FileStatus,
    InstallationPlan,
    InstallReport,
    ResolvedFile,
)
from uiget.core.exceptions import InstallIncompleteError
from uiget.utils.file_io import atomic_write

if TYPE_CHECKING:
    from uiget.core.component.placeholders import PathResolver

logger = logging.getLogger(__name__)


def read_existing(path: Path) -> bytes | None:
    """读取已存在文件的字节，不存在返回 None"""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


class ComponentInstaller:
    """按冲突策略落盘组件文件"""

    def __init__(
        self,
        path_resolver: PathResolver,
        *,
        max_workers: int = 8,
    ) -> None:
        self.path_resolver = path_resolver
        self.max_workers = max(1, max_workers)

    def prepare(self, plan: InstallationPlan) -> InstallationPlan:
        """对计划中每个清单运行路径解析，填充 plan.files"""
        plan.files = [
            resolved
            for manifest in plan.manifests
            for resolved in self.path_resolver.resolve_manifest(manifest)
        ]
        return plan

    def install(self, plan: InstallationPlan, *, force: bool = False) -> InstallReport:
        """执行写入，返回与计划文件顺序一致的报告

        Raises:
            InstallIncompleteError: 至少一个文件因冲突以外的原因写入失败
        """
        if not plan.files and plan.manifests:
            self.prepare(plan)

        # 同一路径的文件归入同一组串行处理
        groups: dict[Path, list[int]] = {}
        for idx, f in enumerate(plan.files):
            groups.setdefault(f.path, []).append(idx)

        outcomes: dict[int, FileOutcome] = {}

        def _run_group(indices: list[int]) -> None:
            for idx in indices:
                outcomes[idx] = self._install_file(plan.files[idx], force)

        if self.max_workers == 1 or len(groups) <= 1:
            for indices in groups.values():
                _run_group(indices)
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(groups))) as executor:
                futures = [executor.submit(_run_group, indices) for indices in groups.values()]
                for future in futures:
                    future.result()

        report = InstallReport(outcomes=[outcomes[i] for i in range(len(plan.files))])
        logger.info("安装完成: %s", report.summary())

        if not report.success:
            paths = report.failed_paths
            raise InstallIncompleteError(
                f"{len(paths)} 个文件写入失败: {', '.join(paths)}",
                paths=paths, report=report,
            )
        return report

    def _install_file(self, resolved: ResolvedFile, force: bool) -> FileOutcome:
        component = str(resolved.component)
        rel = resolved.relative_path
        try:
            existing = read_existing(resolved.path)
            new_bytes = resolved.content.encode("utf-8")
            if existing is None:
                atomic_write(resolved.path, resolved.content)
                status = FileStatus.CREATED
            elif existing == new_bytes:
                status = FileStatus.UNCHANGED
            elif not force:
                logger.info("文件已存在且内容不同，跳过: %s", rel)
                status = FileStatus.SKIPPED_CONFLICT
            else:
                atomic_write(resolved.path, resolved.content)
                status = FileStatus.OVERWRITTEN
        except OSError as e:
            logger.error("写入失败: %s - %s", rel, e, extra={"component": component, "path": rel})
            return FileOutcome(path=rel, status=FileStatus.FAILED, component=component, error=str(e))
        logger.debug("%s: %s", status.value, rel)
        return FileOutcome(path=rel, status=status, component=component)
