"""TypeScript 路径映射

加载 tsconfig（JSON5 语法）并沿 extends 链一次性合并为 TypeScriptPathMap:
- 子配置覆盖父配置中同名的 paths 条目，baseUrl 未声明时继承父配置
- 别名与目标去掉尾部 "/*"；目标先按声明它的 tsconfig 解析，最后转为相对项目根目录的路径
- extends 出现环时报 ConfigError；包形式的 extends（如 "@tsconfig/svelte"）跳过
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import json5

from uiget.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

MAX_TSCONFIG_SIZE = 1 * 1024 * 1024  # 1 MB


def _strip_wildcard(value: str) -> str:
    value = value.strip()
    if value.endswith("/*"):
        value = value[:-2]
    elif value.endswith("*"):
        value = value[:-1]
    return value.rstrip("/") if value not in ("", "/") else value


def _has_prefix(path: str, prefix: str) -> bool:
    """前缀匹配需落在路径边界上: "$lib" 匹配 "$lib/utils" 但不匹配 "$library" """
    if not prefix:
        return False
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


@dataclass
class TypeScriptPathMap:
    """别名 -> 项目相对目录列表（已去除通配符，保持声明顺序）"""

    entries: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_paths(cls, paths: dict[str, list[str]]) -> TypeScriptPathMap:
        entries: dict[str, list[str]] = {}
        for alias, targets in paths.items():
            key = _strip_wildcard(alias)
            # "$lib" 与 "$lib/*" 归并为同一条目，先声明者优先
            if key and key not in entries:
                entries[key] = [_strip_wildcard(t) for t in targets]
        return cls(entries=entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def match(self, specifier: str) -> tuple[str, list[str]] | None:
        """最长前缀匹配的别名；等长时按声明顺序取先者"""
        best: tuple[str, list[str]] | None = None
        for alias, targets in self.entries.items():
            if _has_prefix(specifier, alias) and (best is None or len(alias) > len(best[0])):
                best = (alias, targets)
        return best

    def to_directory(self, import_path: str) -> str | None:
        """把别名形式的导入路径映射为项目相对目录，无匹配返回 None"""
        hit = self.match(import_path)
        if hit is None or not hit[1]:
            return None
        alias, targets = hit
        rest = import_path[len(alias):].lstrip("/")
        base = targets[0]
        if not rest:
            return base
        return f"{base}/{rest}" if base not in ("", ".") else rest

    def to_alias(self, path: str) -> str | None:
        """把项目相对路径还原为别名形式，无匹配返回 None"""
        normalized = path[2:] if path.startswith("./") else path
        best: tuple[str, str] | None = None
        for alias, targets in self.entries.items():
            for target in targets:
                if target in ("", ".") or not _has_prefix(normalized, target):
                    continue
                if best is None or len(target) > len(best[1]):
                    best = (alias, target)
        if best is None:
            return None
        alias, target = best
        rest = normalized[len(target):].lstrip("/")
        return f"{alias}/{rest}" if rest else alias


# =========================================================================
# tsconfig 加载
# =========================================================================


def _read_tsconfig(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"tsconfig 不存在: {path}")
    if path.stat().st_size > MAX_TSCONFIG_SIZE:
        raise ConfigError(f"tsconfig 文件过大: {path}")
    try:
        data = json5.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ConfigError(f"tsconfig 解析失败: {path} - {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"tsconfig 顶层必须是对象: {path}")
    return data


def _extends_targets(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list):
        return [str(x) for x in raw]
    raise ConfigError(f"tsconfig extends 类型无效: {type(raw).__name__}")


def _locate_parent(base_dir: Path, value: str) -> Path | None:
    if not value.startswith((".", "/")):
        logger.warning("跳过包形式的 tsconfig extends: %s", value)
        return None
    candidate = (base_dir / value).resolve()
    if not candidate.exists() and candidate.suffix != ".json":
        candidate = candidate.with_name(candidate.name + ".json")
    return candidate


def _merged_options(path: Path, stack: tuple[Path, ...] = ()) -> dict[str, Any]:
    """沿 extends 链合并 compilerOptions 中的 paths / baseUrl

    每个 tsconfig 的 paths 目标在合并前即按声明它的文件解析为绝对路径:
    有 baseUrl（自身声明或继承）时相对 baseUrl，否则相对该文件所在目录。
    返回的 baseUrl 同样是绝对路径。
    """
    resolved = path.resolve()
    if resolved in stack:
        chain = " -> ".join(str(p) for p in (*stack, resolved))
        raise ConfigError(f"tsconfig extends 出现循环: {chain}")
    data = _read_tsconfig(resolved)

    merged: dict[str, Any] = {"paths": {}, "baseUrl": None}
    for value in _extends_targets(data.get("extends")):
        parent = _locate_parent(resolved.parent, value)
        if parent is None:
            continue
        inherited = _merged_options(parent, (*stack, resolved))
        merged["paths"].update(inherited["paths"])
        if inherited["baseUrl"] is not None:
            merged["baseUrl"] = inherited["baseUrl"]

    options = data.get("compilerOptions") or {}
    if not isinstance(options, dict):
        raise ConfigError(f"tsconfig compilerOptions 必须是对象: {resolved}")
    if options.get("baseUrl") is not None:
        merged["baseUrl"] = os.path.normpath(resolved.parent / str(options["baseUrl"]))
    paths = options.get("paths") or {}
    if not isinstance(paths, dict):
        raise ConfigError(f"tsconfig paths 必须是对象: {resolved}")

    base_dir = Path(merged["baseUrl"]) if merged["baseUrl"] is not None else resolved.parent
    for alias, targets in paths.items():
        if isinstance(targets, str):
            targets = [targets]
        merged["paths"][str(alias)] = [
            os.path.normpath(base_dir / _strip_wildcard(str(t))) for t in targets
        ]
    return merged


def load_typescript_paths(path: str | Path, project_root: str | Path) -> TypeScriptPathMap:
    """加载 tsconfig 并返回合并后的路径映射（目标为相对 project_root 的 posix 路径）"""
    entry = Path(path)
    root = Path(project_root).resolve()
    merged = _merged_options(entry)

    paths: dict[str, list[str]] = {}
    for alias, targets in merged["paths"].items():
        paths[alias] = [Path(os.path.relpath(t, root)).as_posix() for t in targets]

    path_map = TypeScriptPathMap.from_paths(paths)
    logger.info("已加载 TypeScript 路径映射: %d 个别名 (%s)", len(path_map.entries), entry)
    return path_map
