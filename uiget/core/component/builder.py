"""注册表构建器

读取注册表源文件（registry.json），生成可被 uiget 客户端直接消费的静态文件:
- <output>/index.json: 名称 -> 摘要 的映射形式索引
- <output>/<name>.json: default 风格的组件清单
- <output>/<style>/<name>.json: 其他风格的组件清单

每个文件条目内嵌源文件内容；external 组件只进索引不生成清单。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from uiget.core.component.models import COMPONENT_NAME_RE
from uiget.core.exceptions import ConfigError
from uiget.utils.file_io import load_document, save_json

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA = "https://ui.shadcn.com/schema.json"
DEFAULT_STYLE = "default"


@dataclass
class ComponentDefinition:
    """注册表源文件中的组件定义"""

    name: str
    type: str = ""
    description: str = ""
    registry_dependencies: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    files: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    default_files: list[dict[str, Any]] = field(default_factory=list)
    external: bool = False

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> ComponentDefinition:
        if not COMPONENT_NAME_RE.match(name):
            raise ConfigError(f"组件名不合法: '{name}'")
        files = data.get("files") or {}
        if not isinstance(files, dict):
            raise ConfigError(f"组件 '{name}' 的 files 必须是 风格 -> 文件列表 的映射")
        return cls(
            name=name,
            type=data.get("type") or "",
            description=data.get("description") or "",
            registry_dependencies=list(data.get("registryDependencies") or []),
            dependencies=list(data.get("dependencies") or []),
            dev_dependencies=list(data.get("devDependencies") or []),
            files=files,
            default_files=list(data.get("default_files") or []),
            external=bool(data.get("external", False)),
        )

    def files_for(self, style: str) -> list[dict[str, Any]]:
        """风格专属文件 > default 风格文件 > default_files"""
        sources = self.files.get(style) or self.files.get(DEFAULT_STYLE) or self.default_files
        if not sources:
            raise ConfigError(f"组件 '{self.name}' 未定义风格 '{style}' 的文件")
        return sources

    def index_entry(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"name": self.name}
        if self.type:
            entry["type"] = self.type
        if self.description:
            entry["description"] = self.description
        if self.registry_dependencies:
            entry["registryDependencies"] = self.registry_dependencies
        if self.dev_dependencies:
            entry["devDependencies"] = self.dev_dependencies
        return entry


class RegistryBuilder:
    """注册表静态文件生成器"""

    def __init__(self, config_path: str | Path, output_dir: str | Path) -> None:
        self.config_path = Path(config_path)
        self.base_path = self.config_path.parent
        self.output_dir = Path(output_dir)
        self.name = ""
        self.styles: list[str] = [DEFAULT_STYLE]
        self.components: dict[str, ComponentDefinition] = {}
        self._load()

    def _load(self) -> None:
        if not self.config_path.is_file():
            raise ConfigError(f"注册表源文件不存在: {self.config_path}")
        try:
            data = load_document(self.config_path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"注册表源文件解析失败: {self.config_path} - {e}") from e
        self.name = data.get("name") or ""
        if not self.name:
            raise ConfigError(f"注册表源文件缺少 name: {self.config_path}")
        self.styles = list(data.get("styles") or [DEFAULT_STYLE])
        components = data.get("components") or {}
        if not isinstance(components, dict):
            raise ConfigError("components 必须是 组件名 -> 定义 的映射")
        self.components = {
            name: ComponentDefinition.from_dict(name, definition or {})
            for name, definition in components.items()
        }

    def build(self) -> list[Path]:
        """生成索引与全部组件清单，返回写入的文件列表"""
        written = [self.build_index()]
        for definition in self.components.values():
            if definition.external:
                logger.debug("跳过外部组件: %s", definition.name)
                continue
            for style in self.styles:
                written.append(self.build_component(definition, style))
        logger.info("注册表 %s 构建完成: %d 个文件 -> %s", self.name, len(written), self.output_dir)
        return written

    def build_index(self) -> Path:
        index = {
            name: d.index_entry()
            for name, d in sorted(self.components.items())
        }
        path = self.output_dir / "index.json"
        save_json(path, index)
        return path

    def build_component(self, definition: ComponentDefinition, style: str) -> Path:
        files = []
        for source in definition.files_for(style):
            src = source.get("source") or ""
            target = source.get("target") or ""
            if not src or not target:
                raise ConfigError(
                    f"组件 '{definition.name}' 的文件条目需要 source 和 target 字段"
                )
            source_path = self.base_path / src
            if not source_path.is_file():
                raise ConfigError(
                    f"组件 '{definition.name}' 的源文件不存在: {src}"
                )
            entry: dict[str, Any] = {
                "content": source_path.read_text(encoding="utf-8"),
                "target": target,
            }
            if source.get("type"):
                entry["type"] = source["type"]
            files.append(entry)

        manifest: dict[str, Any] = {
            "$schema": MANIFEST_SCHEMA,
            "name": definition.name,
            "type": definition.type,
        }
        if definition.description:
            manifest["description"] = definition.description
        manifest["dependencies"] = definition.dependencies
        manifest["devDependencies"] = definition.dev_dependencies
        manifest["registryDependencies"] = definition.registry_dependencies
        manifest["files"] = files

        out_dir = self.output_dir if style == DEFAULT_STYLE else self.output_dir / style
        path = out_dir / f"{definition.name}.json"
        save_json(path, manifest)
        logger.debug("已生成组件清单: %s", path)
        return path
