"""项目配置

uiget.json（或 shadcn 默认的 components.json）的加载、默认值与保存。
.json 按 JSON 读取，.yml / .yaml 按 YAML 读取；registries 在加载时即归一化为
RegistryDescriptor，下游代码不再区分简单 / 结构化两种写法。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from uiget.core.component.models import DEFAULT_REGISTRY, RegistryDescriptor, normalize_registry_id
from uiget.core.exceptions import ConfigError
from uiget.core.tsconfig import TypeScriptPathMap, load_typescript_paths
from uiget.utils.file_io import load_document, save_document

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("uiget.json", "components.json")
DEFAULT_SCHEMA = "https://shadcn-svelte.com/schema.json"
DEFAULT_REGISTRY_URL = "https://shadcn-svelte.com/registry/{name}.json"
DEFAULT_TSCONFIG = "tsconfig.json"

# 配置文件键名 -> 字段名（其余键名与字段名一致）
_KEY_ALIASES = {
    "$schema": "schema",
    "defaultRegistry": "default_registry",
    "maxWorkers": "max_workers",
}


def find_config_path(cwd: str | Path = ".", explicit: str | Path | None = None) -> Path:
    """定位配置文件: 显式路径 > uiget.json > components.json

    都不存在时返回 <cwd>/uiget.json（init 的写入目标）。
    """
    if explicit:
        return Path(explicit)
    base = Path(cwd)
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return base / CONFIG_FILENAMES[0]


@dataclass
class TailwindConfig:
    css: str = "src/app.css"
    base_color: str = "slate"
    config: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TailwindConfig:
        return cls(
            css=data.get("css", "src/app.css"),
            base_color=data.get("baseColor", "slate"),
            config=data.get("config") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"css": self.css, "baseColor": self.base_color}
        if self.config:
            data["config"] = self.config
        return data


@dataclass
class Aliases:
    """逻辑角色 -> 导入路径前缀"""

    components: str = ""
    utils: str = ""
    ui: str = ""
    hooks: str = ""
    lib: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Aliases:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("忽略未知的别名角色: %s", sorted(unknown))
        return cls(**{k: str(v) for k, v in data.items() if k in known and v})

    def get(self, role: str) -> str:
        return getattr(self, role, "") or ""

    def as_mapping(self) -> dict[str, str]:
        """仅包含已配置的角色"""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}

    def to_dict(self) -> dict[str, str]:
        return self.as_mapping()


@dataclass
class ProjectConfig:
    """一次命令内不可变的项目配置快照"""

    schema: str = ""
    style: str = ""
    tailwind: TailwindConfig = field(default_factory=TailwindConfig)
    aliases: Aliases = field(default_factory=Aliases)
    registries: dict[str, RegistryDescriptor] = field(default_factory=dict)
    typescript: bool | dict[str, Any] = False
    default_registry: str = DEFAULT_REGISTRY
    max_workers: int = 8
    timeout: float = 30.0

    # 自定义扩展 (原样写回)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls) -> ProjectConfig:
        """init 生成的默认配置（shadcn-svelte 约定）"""
        return cls(
            schema=DEFAULT_SCHEMA,
            aliases=Aliases(
                components="$lib/components",
                utils="$lib/utils",
                ui="$lib/components/ui",
                hooks="$lib/hooks",
                lib="$lib",
            ),
            registries={
                DEFAULT_REGISTRY: RegistryDescriptor(DEFAULT_REGISTRY, DEFAULT_REGISTRY_URL),
            },
            typescript=True,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        known = {f.name for f in fields(cls)} - {"extra"}
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name in known:
                values[name] = value
            else:
                extra[key] = value

        raw_registries = values.pop("registries", None) or {}
        if not isinstance(raw_registries, dict):
            raise ConfigError("registries 必须是 id -> url 或 {url, headers, params} 的映射")
        registries: dict[str, RegistryDescriptor] = {}
        for rid, raw in raw_registries.items():
            descriptor = RegistryDescriptor.from_config(str(rid), raw)
            if descriptor.id in registries:
                raise ConfigError(f"注册表 id 重复: '{descriptor.id}'")
            registries[descriptor.id] = descriptor
        if not registries:
            registries[DEFAULT_REGISTRY] = RegistryDescriptor(DEFAULT_REGISTRY, DEFAULT_REGISTRY_URL)

        tailwind = values.pop("tailwind", None) or {}
        aliases = values.pop("aliases", None) or {}
        if not isinstance(tailwind, dict) or not isinstance(aliases, dict):
            raise ConfigError("tailwind / aliases 必须是映射")
        typescript = values.pop("typescript", False)
        if not isinstance(typescript, (bool, dict)):
            raise ConfigError("typescript 必须是 true/false 或 {config: 路径}")

        try:
            max_workers = int(values.pop("max_workers", 8))
            timeout = float(values.pop("timeout", 30.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"maxWorkers / timeout 必须是数字: {e}") from e

        return cls(
            schema=values.pop("schema", "") or "",
            style=values.pop("style", "") or "",
            tailwind=TailwindConfig.from_dict(tailwind),
            aliases=Aliases.from_dict(aliases),
            registries=registries,
            typescript=typescript,
            default_registry=normalize_registry_id(
                values.pop("default_registry", DEFAULT_REGISTRY) or DEFAULT_REGISTRY
            ),
            max_workers=max_workers,
            timeout=timeout,
            extra=extra,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ProjectConfig:
        """从文件加载配置

        Raises:
            ConfigError: 文件不存在或内容无效
        """
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"配置文件不存在: {p}，请先运行 `uiget init`")
        try:
            data = load_document(p)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件解析失败: {p} - {e}") from e
        cfg = cls.from_dict(data)
        logger.info("配置已加载: %s (%d 个注册表)", p, len(cfg.registries))
        return cfg

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.schema:
            data["$schema"] = self.schema
        if self.style:
            data["style"] = self.style
        data["tailwind"] = self.tailwind.to_dict()
        data["aliases"] = self.aliases.to_dict()
        data["registries"] = {rid: r.to_config() for rid, r in self.registries.items()}
        if self.typescript:
            data["typescript"] = self.typescript
        if self.default_registry != DEFAULT_REGISTRY:
            data["defaultRegistry"] = self.default_registry
        if self.max_workers != 8:
            data["maxWorkers"] = self.max_workers
        if self.timeout != 30.0:
            data["timeout"] = self.timeout
        data.update(self.extra)
        return data

    def save(self, path: str | Path) -> None:
        save_document(path, self.to_dict())
        logger.info("配置已保存: %s", path)

    # ---- TypeScript ----

    @property
    def typescript_enabled(self) -> bool:
        return bool(self.typescript)

    @property
    def tsconfig_path(self) -> str:
        if isinstance(self.typescript, dict):
            return str(self.typescript.get("config") or DEFAULT_TSCONFIG)
        return DEFAULT_TSCONFIG

    def load_ts_paths(self, project_root: str | Path) -> TypeScriptPathMap | None:
        """TypeScript 启用且 tsconfig 存在时加载路径映射"""
        if not self.typescript_enabled:
            return None
        root = Path(project_root)
        path = root / self.tsconfig_path
        if not path.is_file():
            logger.info("未找到 %s，跳过 TypeScript 路径映射", path)
            return None
        return load_typescript_paths(path, root)
