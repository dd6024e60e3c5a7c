"""服务容器: 统一依赖注入，CLI 通过容器获取核心组件而非直接构造

依赖关系图（→ 表示依赖）:
  client        → config
  path_resolver → config, ts_paths
  resolver      → client
  installer     → path_resolver
  outdated      → client, path_resolver

配置在首次访问时才加载，init 等不需要配置的命令不会因配置缺失而失败。

用法:
    container = ServiceContainer(config_path="uiget.json")
    plan = container.resolver.resolve([...])

    # 测试中注入配置与传输层
    container = ServiceContainer(config=cfg, transport=fake, project_root=tmp_path)
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from uiget.core.config import find_config_path

if TYPE_CHECKING:
    from uiget.core.component.client import RegistryClient, Transport
    from uiget.core.component.installer import ComponentInstaller
    from uiget.core.component.outdated import OutdatedDetector
    from uiget.core.component.placeholders import PathResolver
    from uiget.core.component.resolver import DependencyResolver
    from uiget.core.config import ProjectConfig
    from uiget.core.package_manager import Detection
    from uiget.core.tsconfig import TypeScriptPathMap

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器，每个实例持有一组共享的核心组件"""

    def __init__(
        self,
        config_path: str | Path | None = None,
        *,
        project_root: str | Path = ".",
        config: ProjectConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.config_path = find_config_path(self.project_root, config_path)
        self._config = config
        self._transport = transport
        self._instances: dict[str, object] = {}

    @property
    def config(self) -> ProjectConfig:
        if self._config is None:
            from uiget.core.config import ProjectConfig
            self._config = ProjectConfig.from_file(self.config_path)
        return self._config

    def save_config(self) -> None:
        """写回配置并丢弃依赖配置的实例"""
        self.config.save(self.config_path)
        self._instances.clear()

    @property
    def style(self) -> str | None:
        return self.config.style or None

    # ---- 核心组件 ----

    @property
    def client(self) -> RegistryClient:
        if "client" not in self._instances:
            from uiget.core.component.client import RegistryClient
            cfg = self.config
            self._instances["client"] = RegistryClient(
                cfg.registries.values(),
                default_registry=cfg.default_registry,
                transport=self._transport,
                timeout=cfg.timeout,
            )
        return self._instances["client"]  # type: ignore[return-value]

    @property
    def ts_paths(self) -> TypeScriptPathMap | None:
        if "ts_paths" not in self._instances:
            self._instances["ts_paths"] = self.config.load_ts_paths(self.project_root)
        return self._instances["ts_paths"]  # type: ignore[return-value]

    @property
    def path_resolver(self) -> PathResolver:
        if "path_resolver" not in self._instances:
            from uiget.core.component.placeholders import PathResolver
            cfg = self.config
            self._instances["path_resolver"] = PathResolver(
                cfg.aliases.as_mapping(),
                ts_paths=self.ts_paths,
                typescript=cfg.typescript_enabled,
                style=self.style,
                project_root=self.project_root,
            )
        return self._instances["path_resolver"]  # type: ignore[return-value]

    @property
    def resolver(self) -> DependencyResolver:
        if "resolver" not in self._instances:
            from uiget.core.component.resolver import DependencyResolver
            self._instances["resolver"] = DependencyResolver(
                self.client, max_workers=self.config.max_workers,
            )
        return self._instances["resolver"]  # type: ignore[return-value]

    @property
    def installer(self) -> ComponentInstaller:
        if "installer" not in self._instances:
            from uiget.core.component.installer import ComponentInstaller
            self._instances["installer"] = ComponentInstaller(
                self.path_resolver, max_workers=self.config.max_workers,
            )
        return self._instances["installer"]  # type: ignore[return-value]

    @property
    def outdated(self) -> OutdatedDetector:
        if "outdated" not in self._instances:
            from uiget.core.component.outdated import OutdatedDetector
            self._instances["outdated"] = OutdatedDetector(
                self.client, self.path_resolver, max_workers=self.config.max_workers,
            )
        return self._instances["outdated"]  # type: ignore[return-value]

    @property
    def package_manager(self) -> Detection | None:
        if "package_manager" not in self._instances:
            from uiget.core.package_manager import detect_package_manager
            self._instances["package_manager"] = detect_package_manager(self.project_root)
        return self._instances["package_manager"]  # type: ignore[return-value]

    def components_directory(self) -> Path:
        """已安装 UI 组件所在目录（ui 别名，未配置时为 components）"""
        from uiget.core.component.placeholders import alias_to_directory
        aliases = self.config.aliases
        alias = aliases.ui or aliases.components
        return self.project_root / alias_to_directory(alias, aliases.as_mapping(), self.ts_paths)


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def init_container(config_path: str | Path | None = None, **kwargs: object) -> ServiceContainer:
    """按 CLI 参数初始化全局容器"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = ServiceContainer(config_path, **kwargs)  # type: ignore[arg-type]
        return _global


def set_container(container: ServiceContainer) -> None:
    """替换全局容器（用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = container


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
