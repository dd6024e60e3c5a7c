"""占位符与路径解析

纯字符串 / 路径变换，不做任何网络或磁盘 I/O:
- resolve_placeholders: $UTILS$ / $COMPONENTS$ / $HOOKS$ / $LIB$ 替换为别名
- strip_js_extensions: TypeScript 模式下去掉导入语句中的 .js 后缀
- rewrite_path_aliases: 按 tsconfig paths 把项目路径形式的导入改写为别名
- resolve_target_path: 清单中的 target 映射为项目相对落盘路径
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Mapping
from pathlib import Path

from uiget.core.component.models import ComponentManifest, FileEntry, ResolvedFile, type_tag
from uiget.core.exceptions import UnresolvedAliasError, ValidationError
from uiget.core.tsconfig import TypeScriptPathMap

logger = logging.getLogger(__name__)

# 占位符 -> 别名角色
PLACEHOLDERS: dict[str, str] = {
    "$UTILS$": "utils",
    "$COMPONENTS$": "components",
    "$HOOKS$": "hooks",
    "$LIB$": "lib",
}

# 类型标签 -> 别名角色，未列出的类型落到 components
_ROLE_BY_TAG: dict[str, str] = {
    "ui": "ui",
    "hook": "hooks",
    "hooks": "hooks",
    "lib": "lib",
    "util": "utils",
    "utils": "utils",
}

# 只处理相对路径（./ ../）与占位符开头的说明符，"highlight.js" 这类包名保持原样
_PLACEHOLDER_JS_RE = re.compile(r"""(\$[A-Z_]+\$(?:/[^"'\s]*)?)\.js(?=["'])""")
_JS_IMPORT_PATTERNS = (
    re.compile(r"""(import\s+[^"']*["'])(\.{1,2}/[^"']*)\.js(["'])"""),
    re.compile(r"""(export\s+[^"']*["'])(\.{1,2}/[^"']*)\.js(["'])"""),
    re.compile(r"""(import\s*\(\s*["'])(\.{1,2}/[^"']*)\.js(["']\s*\))"""),
)
_IMPORT_SPECIFIER_RE = re.compile(
    r"""((?:import|export)\s+[^"';]*?from\s*["']|import\s*\(\s*["']|import\s+["'])([^"']+)(["'])"""
)


def role_for(type_name: str | None) -> str:
    """类型标签（可带 registry: 前缀）对应的别名角色"""
    return _ROLE_BY_TAG.get(type_tag(type_name), "components")


def resolve_placeholders(text: str, aliases: Mapping[str, str | None]) -> str:
    """替换四种占位符；被引用的占位符对应别名未配置时抛 UnresolvedAliasError"""
    for token, role in PLACEHOLDERS.items():
        if token not in text:
            continue
        value = aliases.get(role)
        if not value:
            raise UnresolvedAliasError(
                f"占位符 {token} 需要别名 '{role}'，但配置中未定义 aliases.{role}",
                role=role, token=token,
            )
        text = text.replace(token, value)
    return text


def strip_js_extensions(text: str) -> str:
    """去掉 import / export / 动态 import 中相对路径与占位符说明符的 .js 后缀"""
    text = _PLACEHOLDER_JS_RE.sub(r"\1", text)
    for pattern in _JS_IMPORT_PATTERNS:
        text = pattern.sub(r"\1\2\3", text)
    return text


def rewrite_path_aliases(text: str, ts_paths: TypeScriptPathMap | None) -> str:
    """项目路径形式的导入说明符（如 "src/lib/utils"）改写为对应别名（"$lib/utils"）"""
    if not ts_paths:
        return text

    def _replace(m: re.Match[str]) -> str:
        specifier = m.group(2)
        if specifier.startswith("."):
            return m.group(0)
        alias = ts_paths.to_alias(specifier)
        return m.group(0) if alias is None else f"{m.group(1)}{alias}{m.group(3)}"

    return _IMPORT_SPECIFIER_RE.sub(_replace, text)


def alias_to_directory(
    alias: str,
    aliases: Mapping[str, str | None],
    ts_paths: TypeScriptPathMap | None = None,
) -> str:
    """别名（导入路径）转为项目相对目录

    优先 tsconfig paths；其次把 $lib 替换为 lib 别名（未配置时为 src/lib）；否则原样使用。
    """
    if ts_paths:
        mapped = ts_paths.to_directory(alias)
        if mapped is not None:
            return mapped
    if "$lib" in alias:
        lib = aliases.get("lib")
        if lib and "$lib" not in lib:
            return alias.replace("$lib", lib)
        return alias.replace("$lib", "src/lib")
    return alias[2:] if alias.startswith("./") else alias


def _check_inside_project(path: str, original: str) -> str:
    normalized = posixpath.normpath(path)
    if posixpath.isabs(normalized) or normalized == ".." or normalized.startswith("../"):
        raise ValidationError(f"目标路径越出项目目录: {original} -> {normalized}")
    return normalized


def resolve_target_path(
    entry: FileEntry,
    aliases: Mapping[str, str | None],
    style: str | None = None,
    ts_paths: TypeScriptPathMap | None = None,
    component_type: str = "",
) -> str:
    """把清单 target 映射为项目相对路径（posix 形式）

    目录由文件类型选择的别名决定，文件类型未知时参考组件类型；
    角色别名未配置时回退 components。target 首段与目录末段重复时去掉首段。
    """
    target = entry.target.replace("\\", "/")
    if style:
        target = target.replace("{style}", style)

    for token, role in PLACEHOLDERS.items():
        if target.startswith(token):
            value = aliases.get(role)
            if not value:
                raise UnresolvedAliasError(
                    f"文件目标 {entry.target} 需要别名 '{role}'，但未配置",
                    role=role, token=token,
                )
            path = alias_to_directory(value + target[len(token):], aliases, ts_paths)
            return _check_inside_project(path, entry.target)

    tag = type_tag(entry.file_type)
    role = role_for(entry.file_type) if tag in _ROLE_BY_TAG else role_for(component_type)
    alias = aliases.get(role) or aliases.get("components")
    if not alias:
        raise UnresolvedAliasError(
            f"文件 {entry.target} 需要别名 '{role}'（或 components），但未配置",
            role=role,
        )
    directory = alias_to_directory(alias, aliases, ts_paths).rstrip("/")

    relative = target.lstrip("/")
    head, sep, rest = relative.partition("/")
    if sep and directory and head == directory.rsplit("/", 1)[-1]:
        relative = rest

    path = f"{directory}/{relative}" if directory not in ("", ".") else relative
    return _check_inside_project(path, entry.target)


class PathResolver:
    """绑定一次命令内不变的别名 / tsconfig / style 快照"""

    def __init__(
        self,
        aliases: Mapping[str, str | None],
        *,
        ts_paths: TypeScriptPathMap | None = None,
        typescript: bool = False,
        style: str | None = None,
        project_root: str | Path = ".",
    ) -> None:
        self.aliases = dict(aliases)
        self.ts_paths = ts_paths
        self.typescript = typescript
        self.style = style
        self.project_root = Path(project_root)

    def resolve_content(self, text: str) -> str:
        if self.typescript:
            text = _PLACEHOLDER_JS_RE.sub(r"\1", text)
        text = resolve_placeholders(text, self.aliases)
        if self.typescript:
            text = strip_js_extensions(text)
            text = rewrite_path_aliases(text, self.ts_paths)
        return text

    def resolve_target(self, entry: FileEntry, component_type: str = "") -> str:
        return resolve_target_path(
            entry, self.aliases, self.style, self.ts_paths, component_type,
        )

    def resolve_file(self, entry: FileEntry, manifest: ComponentManifest) -> ResolvedFile:
        relative = self.resolve_target(entry, manifest.type)
        return ResolvedFile(
            path=self.project_root / relative,
            content=self.resolve_content(entry.content),
            relative_path=relative,
            component=manifest.ref,
        )

    def resolve_manifest(self, manifest: ComponentManifest) -> list[ResolvedFile]:
        files = [self.resolve_file(entry, manifest) for entry in manifest.files]
        logger.debug("组件 %s 解析出 %d 个文件", manifest.ref, len(files))
        return files
