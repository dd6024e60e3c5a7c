"""组件引擎数据模型

数据类:
- RegistryDescriptor: 注册表描述（简单 URL 形式 / 带鉴权的结构化形式，加载后统一）
- ComponentRef: 组件引用 (registry_id, name)，相等性即去重依据
- IndexEntry / ComponentManifest / FileEntry: 注册表响应的解析结果
- ResolvedFile / InstallationPlan: 一次 add 调用内的瞬态产物
- FileOutcome / InstallReport / OutdatedReport: 安装与过期检测的结果
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from uiget.core.exceptions import ConfigError, RegistryMalformedError, ValidationError

DEFAULT_REGISTRY = "default"

COMPONENT_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

# 分类顺序即交互菜单 / list 命令的展示顺序
CATEGORIES = ("ui", "block", "hook", "lib", "other")


def normalize_registry_id(registry_id: str) -> str:
    """去掉命名空间前导 @，使 "@acme" 与 "acme" 指向同一注册表"""
    return registry_id.strip().lstrip("@")


def type_tag(raw: str | None) -> str:
    """去掉 "registry:" 前缀: "registry:ui" -> "ui" """
    if not raw:
        return ""
    return raw.split(":", 1)[1] if raw.startswith("registry:") else raw


# =========================================================================
# 注册表 / 组件引用
# =========================================================================


@dataclass
class RegistryDescriptor:
    """单个注册表的统一描述

    url_template 含 {name}，可选 {style}；简单形式的注册表 headers/params 为空。
    """

    id: str
    url_template: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, registry_id: str, raw: Any) -> RegistryDescriptor:
        """把配置中的 str | {url, headers, params} 归一化为同一结构"""
        rid = normalize_registry_id(registry_id)
        if not rid:
            raise ConfigError("注册表 id 不能为空")
        if isinstance(raw, str):
            url, headers, params = raw, {}, {}
        elif isinstance(raw, dict):
            url = raw.get("url", "")
            headers = raw.get("headers") or {}
            params = raw.get("params") or {}
            if not isinstance(headers, dict) or not isinstance(params, dict):
                raise ConfigError(f"注册表 '{rid}' 的 headers/params 必须是映射")
        else:
            raise ConfigError(
                f"注册表 '{rid}' 配置类型无效: {type(raw).__name__}"
            )
        if not url:
            raise ConfigError(f"注册表 '{rid}' 未定义 url")
        return cls(
            id=rid,
            url_template=url,
            headers={str(k): str(v) for k, v in headers.items()},
            params={str(k): str(v) for k, v in params.items()},
        )

    @property
    def is_simple(self) -> bool:
        return not self.headers and not self.params

    def to_config(self) -> str | dict[str, Any]:
        """写回配置文件时使用的形式（无鉴权时保持简单字符串）"""
        if self.is_simple:
            return self.url_template
        data: dict[str, Any] = {"url": self.url_template}
        if self.headers:
            data["headers"] = dict(self.headers)
        if self.params:
            data["params"] = dict(self.params)
        return data


@dataclass(frozen=True)
class ComponentRef:
    """组件引用，registry_id 在解析时即补全为具体注册表"""

    registry_id: str
    name: str

    def __post_init__(self) -> None:
        if not self.name or not COMPONENT_NAME_RE.match(self.name):
            raise ValidationError(
                f"组件名不合法: '{self.name}'，仅允许字母、数字、_ 和 -"
            )

    @classmethod
    def parse(cls, text: str, default_registry: str = DEFAULT_REGISTRY) -> ComponentRef:
        """解析 "name" 或 "@namespace/name" """
        raw = text.strip()
        if raw.startswith("@") and "/" in raw:
            namespace, _, name = raw.partition("/")
            registry_id = normalize_registry_id(namespace)
            if not registry_id:
                raise ValidationError(f"组件引用缺少命名空间: '{text}'")
            return cls(registry_id=registry_id, name=name)
        return cls(registry_id=normalize_registry_id(default_registry), name=raw)

    @property
    def key(self) -> tuple[str, str]:
        return (self.registry_id, self.name)

    def __str__(self) -> str:
        return f"@{self.registry_id}/{self.name}"


# =========================================================================
# 注册表响应
# =========================================================================


@dataclass
class IndexEntry:
    """索引中的一条组件摘要"""

    name: str
    type: str = ""
    description: str = ""
    registry_dependencies: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, name: str = "") -> IndexEntry:
        if not isinstance(data, dict):
            raise RegistryMalformedError(
                f"索引条目不是对象: {name or data!r}"
            )
        entry_name = name or data.get("name")
        if not isinstance(entry_name, str) or not entry_name:
            raise RegistryMalformedError(f"索引条目缺少 name: {data!r}")
        return cls(
            name=entry_name,
            type=data.get("type") or "",
            description=data.get("description") or "",
            registry_dependencies=list(data.get("registryDependencies") or []),
        )

    @property
    def category(self) -> str:
        tag = type_tag(self.type)
        return tag if tag in CATEGORIES else "other"


def categorize(entries: list[IndexEntry]) -> dict[str, list[IndexEntry]]:
    """按类别分组，类别顺序固定，空类别不出现"""
    groups: dict[str, list[IndexEntry]] = {c: [] for c in CATEGORIES}
    for entry in entries:
        groups[entry.category].append(entry)
    return {c: items for c, items in groups.items() if items}


@dataclass(frozen=True)
class FileEntry:
    """清单中的单个文件"""

    target: str
    content: str
    file_type: str = ""

    @classmethod
    def from_dict(cls, data: Any, component: str = "") -> FileEntry:
        if not isinstance(data, dict):
            raise RegistryMalformedError(f"组件 '{component}' 的 files 条目不是对象")
        content = data.get("content")
        if not isinstance(content, str):
            raise RegistryMalformedError(
                f"组件 '{component}' 的文件缺少 content 字段"
            )
        # target 为空时回退到 path 字段
        target = data.get("target") or data.get("path") or ""
        if not target:
            raise RegistryMalformedError(
                f"组件 '{component}' 的文件缺少 target/path 字段"
            )
        return cls(target=target, content=content, file_type=data.get("type") or "")


@dataclass(frozen=True)
class ComponentManifest:
    """组件清单，解析后不可变"""

    name: str
    type: str
    registry_id: str
    registry_dependencies: tuple[ComponentRef, ...] = ()
    files: tuple[FileEntry, ...] = ()
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any, registry_id: str) -> ComponentManifest:
        """解析清单 JSON；裸依赖名归属同一注册表，@ns/name 归属指定注册表"""
        if not isinstance(data, dict):
            raise RegistryMalformedError(
                "组件清单不是 JSON 对象", registry_id=registry_id,
            )
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise RegistryMalformedError("组件清单缺少 name", registry_id=registry_id)
        files = data.get("files") or []
        if not isinstance(files, list):
            raise RegistryMalformedError(
                f"组件 '{name}' 的 files 不是数组", registry_id=registry_id,
            )
        try:
            deps = tuple(
                ComponentRef.parse(d, default_registry=registry_id)
                for d in data.get("registryDependencies") or []
            )
        except (ValidationError, AttributeError) as e:
            raise RegistryMalformedError(
                f"组件 '{name}' 的 registryDependencies 无效: {e}",
                registry_id=registry_id,
            ) from e
        return cls(
            name=name,
            type=data.get("type") or "",
            registry_id=registry_id,
            registry_dependencies=deps,
            files=tuple(FileEntry.from_dict(f, name) for f in files),
            dependencies=tuple(data.get("dependencies") or ()),
            dev_dependencies=tuple(data.get("devDependencies") or ()),
            description=data.get("description") or "",
        )

    @property
    def ref(self) -> ComponentRef:
        return ComponentRef(registry_id=self.registry_id, name=self.name)


# =========================================================================
# 安装计划与结果
# =========================================================================


@dataclass(frozen=True)
class ResolvedFile:
    """FileEntry 结合别名解析后的落盘目标"""

    path: Path
    content: str
    relative_path: str
    component: ComponentRef


@dataclass
class InstallationPlan:
    """有序去重的清单序列 + 展开后的文件列表"""

    manifests: list[ComponentManifest] = field(default_factory=list)
    files: list[ResolvedFile] = field(default_factory=list)

    @property
    def refs(self) -> list[ComponentRef]:
        return [m.ref for m in self.manifests]

    def npm_dependencies(self) -> tuple[list[str], list[str]]:
        """汇总 (dependencies, devDependencies)，保持首次出现顺序"""
        deps: dict[str, None] = {}
        dev: dict[str, None] = {}
        for m in self.manifests:
            deps.update(dict.fromkeys(m.dependencies))
            dev.update(dict.fromkeys(m.dev_dependencies))
        return list(deps), list(dev)


class FileStatus(str, Enum):
    """单个文件的安装结果"""

    CREATED = "created"
    UNCHANGED = "unchanged"
    SKIPPED_CONFLICT = "skipped-conflict"
    OVERWRITTEN = "overwritten"
    FAILED = "failed"


@dataclass
class FileOutcome:
    path: str
    status: FileStatus
    component: str = ""
    error: str = ""


@dataclass
class InstallReport:
    """安装报告，outcomes 顺序与计划中的文件顺序一致"""

    outcomes: list[FileOutcome] = field(default_factory=list)

    def by_status(self, status: FileStatus) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def failed_paths(self) -> list[str]:
        return [o.path for o in self.by_status(FileStatus.FAILED)]

    @property
    def success(self) -> bool:
        return not self.failed_paths

    def summary(self) -> dict[str, int]:
        counts = {s.value: 0 for s in FileStatus}
        for o in self.outcomes:
            counts[o.status.value] += 1
        return counts


class ComponentStatus(str, Enum):
    """已安装组件与注册表当前版本的比对状态"""

    CURRENT = "current"
    OUTDATED = "outdated"
    MISSING = "missing"
    ERROR = "error"


@dataclass
class OutdatedReport:
    ref: ComponentRef
    status: ComponentStatus
    diff_paths: list[str] = field(default_factory=list)
    error: str = ""
