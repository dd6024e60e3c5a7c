"""依赖解析器

从请求的组件出发做广度优先遍历，产出去重、按首次发现顺序排列的清单序列:
- visited 以 (registry_id, name) 为键，入队前即标记，依赖环自然收敛
- 同层的清单并发拉取，结果按入队顺序合并，计划顺序与完成顺序无关
- 裸依赖名归属父组件的注册表，@ns/name 归属指定注册表
- 多个请求按顺序逐个展开，共享 visited
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from uiget.core.component.models import ComponentManifest, ComponentRef, InstallationPlan
from uiget.core.exceptions import ComponentNotFoundError, RegistryUnknownError

if TYPE_CHECKING:
    from uiget.core.component.client import RegistryClient

logger = logging.getLogger(__name__)

Key = tuple[str, str]


class DependencyResolver:
    """组件依赖图展开"""

    def __init__(self, client: RegistryClient, *, max_workers: int = 8) -> None:
        self.client = client
        self.max_workers = max(1, max_workers)

    def resolve(
        self,
        requested: list[ComponentRef],
        *,
        style: str | None = None,
        skip_deps: bool = False,
    ) -> InstallationPlan:
        """计算安装计划

        Raises:
            ComponentNotFoundError: 某个组件不存在（chain 为从请求到该组件的路径）
            RegistryUnknownError: 依赖引用了未配置的注册表
        """
        parents: dict[Key, ComponentRef | None] = {}
        plan = InstallationPlan()

        if skip_deps:
            roots = []
            for ref in requested:
                if ref.key not in parents:
                    parents[ref.key] = None
                    roots.append(ref)
            plan.manifests.extend(self._fetch_level(roots, style, parents))
            logger.info("跳过依赖展开: %d 个组件", len(plan.manifests))
            return plan

        for root in requested:
            if root.key in parents:
                continue
            parents[root.key] = None
            level = [root]
            while level:
                manifests = self._fetch_level(level, style, parents)
                next_level: list[ComponentRef] = []
                for ref, manifest in zip(level, manifests):
                    plan.manifests.append(manifest)
                    for dep in manifest.registry_dependencies:
                        if dep.key in parents:
                            continue
                        if dep.registry_id not in self.client.registries:
                            chain = [*self._chain(ref, parents), dep]
                            raise RegistryUnknownError(
                                f"组件 {ref} 依赖的 {dep} 引用了未配置的注册表 "
                                f"'{dep.registry_id}'（路径: {' -> '.join(map(str, chain))}）",
                                registry_id=dep.registry_id, chain=chain,
                            )
                        parents[dep.key] = ref
                        next_level.append(dep)
                level = next_level

        logger.info(
            "依赖解析完成: 请求 %d 个，共 %d 个组件",
            len(requested), len(plan.manifests),
        )
        return plan

    # ------------------------------------------------------------------

    @staticmethod
    def _chain(ref: ComponentRef, parents: dict[Key, ComponentRef | None]) -> list[ComponentRef]:
        """从顶层请求到 ref 的依赖路径"""
        chain = [ref]
        parent = parents.get(ref.key)
        while parent is not None:
            chain.append(parent)
            parent = parents.get(parent.key)
        chain.reverse()
        return chain

    def _fetch_one(
        self, ref: ComponentRef, style: str | None, parents: dict[Key, ComponentRef | None],
    ) -> ComponentManifest:
        try:
            return self.client.fetch(ref, style)
        except (ComponentNotFoundError, RegistryUnknownError) as e:
            e.chain = self._chain(ref, parents)
            if len(e.chain) > 1:
                e.args = (f"{e}（依赖路径: {' -> '.join(map(str, e.chain))}）",)
            raise

    def _fetch_level(
        self,
        refs: list[ComponentRef],
        style: str | None,
        parents: dict[Key, ComponentRef | None],
    ) -> list[ComponentManifest]:
        """拉取一层清单，返回顺序与 refs 一致"""
        if self.max_workers == 1 or len(refs) <= 1:
            return [self._fetch_one(ref, style, parents) for ref in refs]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(refs))) as executor:
            futures = [executor.submit(self._fetch_one, ref, style, parents) for ref in refs]
            return [future.result() for future in futures]
