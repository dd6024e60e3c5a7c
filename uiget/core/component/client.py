"""注册表客户端

职责:
- 按注册表 URL 模板构造索引 / 组件清单地址（{name}、{style} 替换）
- 附带注册表配置的 headers 与 query params 发起请求
- 把数组 / 映射两种索引格式归一化为按名称排序的 IndexEntry 列表
- 把传输层错误映射为 RegistryUnreachable / ComponentNotFound 等异常

除出站网络请求外没有任何本地副作用。
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from uiget import __version__
from uiget.core.component.models import (
    DEFAULT_REGISTRY,
    ComponentManifest,
    ComponentRef,
    IndexEntry,
    RegistryDescriptor,
    normalize_registry_id,
    type_tag,
)
from uiget.core.exceptions import (
    ComponentNotFoundError,
    ConfigError,
    RegistryMalformedError,
    RegistryUnknownError,
    RegistryUnreachableError,
)
from uiget.utils.net import DEFAULT_TIMEOUT, http_get

logger = logging.getLogger(__name__)

USER_AGENT = f"uiget/{__version__}"

# fetch(url, headers, params) -> bytes
Transport = Callable[[str, Mapping[str, str], Mapping[str, str]], bytes]

_TOKEN_RE = re.compile(r"\{[a-zA-Z_]+\}")
_NOT_FOUND_CODES = frozenset((404, 410))


class _NotFound(Exception):
    """内部信号: 服务端返回 not found"""


class RegistryClient:
    """多注册表客户端 - 每个注册表由 RegistryDescriptor 描述"""

    def __init__(
        self,
        registries: Iterable[RegistryDescriptor],
        *,
        default_registry: str = DEFAULT_REGISTRY,
        transport: Transport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.registries: dict[str, RegistryDescriptor] = {r.id: r for r in registries}
        self.default_registry = normalize_registry_id(default_registry)
        self.timeout = timeout
        self._transport = transport or self._http_transport

    def _http_transport(
        self, url: str, headers: Mapping[str, str], params: Mapping[str, str],
    ) -> bytes:
        return http_get(url, headers, params, timeout=self.timeout)

    # ------------------------------------------------------------------
    # 注册表查找
    # ------------------------------------------------------------------

    def get(self, registry_id: str) -> RegistryDescriptor:
        """按 id 获取注册表，不存在时抛 RegistryUnknownError"""
        rid = normalize_registry_id(registry_id) or self.default_registry
        registry = self.registries.get(rid)
        if registry is None:
            raise RegistryUnknownError(
                f"注册表 '{rid}' 未配置。已配置: {sorted(self.registries)}",
                registry_id=rid,
            )
        return registry

    def namespaces(self) -> list[str]:
        return list(self.registries)

    # ------------------------------------------------------------------
    # URL 构造
    # ------------------------------------------------------------------

    @staticmethod
    def _substitute(template: str, registry: RegistryDescriptor, style: str | None, **tokens: str) -> str:
        url = template
        for key, value in tokens.items():
            url = url.replace("{" + key + "}", value)
        if style:
            url = url.replace("{style}", style)
        leftover = _TOKEN_RE.findall(url)
        if leftover:
            hint = "（未配置 style）" if "{style}" in leftover else ""
            raise ConfigError(
                f"注册表 '{registry.id}' 的 URL 存在未解析的占位符 "
                f"{', '.join(leftover)}{hint}: {template}"
            )
        return url

    def manifest_url(
        self, registry: RegistryDescriptor, name: str, style: str | None = None,
    ) -> str:
        """组件清单地址；模板不含 {name} 时视为基础 URL: <base>/<name>.json"""
        template = registry.url_template
        if "{name}" not in template:
            template = template.rstrip("/") + "/{name}.json"
        return self._substitute(template, registry, style, name=name)

    def index_urls(self, registry: RegistryDescriptor, style: str | None = None) -> list[str]:
        """索引候选地址（按顺序尝试）"""
        template = registry.url_template
        if "{name}" in template:
            candidates = [template.replace("{name}", "index")]
        else:
            base = template.rstrip("/")
            candidates = [f"{base}/index.json", f"{base}/registry/index.json"]
        urls: list[str] = []
        for c in candidates:
            url = self._substitute(c, registry, style)
            if url not in urls:
                urls.append(url)
        return urls

    # ------------------------------------------------------------------
    # 请求
    # ------------------------------------------------------------------

    def _request(self, registry: RegistryDescriptor, url: str) -> bytes:
        headers = {"User-Agent": USER_AGENT, **registry.headers}
        logger.debug(
            "请求注册表 %s: %s", registry.id, url,
            extra={"registry_id": registry.id, "url": url},
        )
        try:
            return self._transport(url, headers, dict(registry.params))
        except urllib.error.HTTPError as e:
            if e.code in _NOT_FOUND_CODES:
                raise _NotFound(url) from e
            raise RegistryUnreachableError(
                f"注册表 '{registry.id}' 返回 HTTP {e.code}: {url}",
                registry_id=registry.id, url=url,
            ) from e
        except (urllib.error.URLError, OSError) as e:
            # TimeoutError 是 OSError 子类，超时与不可达同等处理
            raise RegistryUnreachableError(
                f"注册表 '{registry.id}' 不可达: {url} - {e}",
                registry_id=registry.id, url=url,
            ) from e

    @staticmethod
    def _decode(registry: RegistryDescriptor, url: str, body: bytes) -> Any:
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RegistryMalformedError(
                f"注册表 '{registry.id}' 返回的不是合法 JSON: {url}",
                registry_id=registry.id, url=url,
            ) from e

    # ------------------------------------------------------------------
    # 索引
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_index(data: Any, registry_id: str = "") -> list[IndexEntry]:
        """数组 / 映射两种索引格式归一化为按名称排序的列表"""
        if isinstance(data, list):
            entries = [IndexEntry.from_dict(item) for item in data]
        elif isinstance(data, dict):
            entries = [IndexEntry.from_dict(item, name=str(key)) for key, item in data.items()]
        else:
            raise RegistryMalformedError(
                f"索引格式无效（需要数组或对象）: {type(data).__name__}",
                registry_id=registry_id,
            )
        return sorted(entries, key=lambda e: e.name)

    def fetch_index(
        self, registry: RegistryDescriptor | str, style: str | None = None,
    ) -> list[IndexEntry]:
        """拉取组件索引，依次尝试候选地址，not found 时换下一个"""
        reg = self.get(registry) if isinstance(registry, str) else registry
        urls = self.index_urls(reg, style)
        for url in urls:
            try:
                body = self._request(reg, url)
            except _NotFound:
                logger.debug("索引地址不存在，尝试下一个: %s", url)
                continue
            try:
                entries = self.normalize_index(self._decode(reg, url, body), reg.id)
            except RegistryMalformedError as e:
                e.url = e.url or url
                raise
            logger.info("注册表 %s 索引: %d 个组件", reg.id, len(entries))
            return entries
        raise RegistryUnreachableError(
            f"注册表 '{reg.id}' 没有可用的索引地址: {', '.join(urls)}",
            registry_id=reg.id, url=urls[-1] if urls else "",
        )

    def search(
        self, query: str, registry: RegistryDescriptor | str, style: str | None = None,
    ) -> list[IndexEntry]:
        """按名称或类型做大小写不敏感的子串匹配"""
        q = query.lower()
        return [
            e for e in self.fetch_index(registry, style)
            if q in e.name.lower() or (e.type and q in type_tag(e.type).lower())
        ]

    # ------------------------------------------------------------------
    # 组件清单
    # ------------------------------------------------------------------

    def fetch_manifest(
        self,
        registry: RegistryDescriptor | str,
        ref: ComponentRef,
        style: str | None = None,
    ) -> ComponentManifest:
        """拉取单个组件清单"""
        reg = self.get(registry) if isinstance(registry, str) else registry
        url = self.manifest_url(reg, ref.name, style)
        try:
            body = self._request(reg, url)
        except _NotFound as e:
            raise ComponentNotFoundError(
                f"组件 '{ref}' 在注册表 '{reg.id}' 中不存在: {url}",
                ref=ref, chain=[ref], url=url,
            ) from e
        data = self._decode(reg, url, body)
        try:
            manifest = ComponentManifest.from_dict(data, reg.id)
        except RegistryMalformedError as e:
            e.url = url
            raise
        logger.info(
            "已拉取组件清单: %s (%d 个文件, 依赖 %d 个)",
            ref, len(manifest.files), len(manifest.registry_dependencies),
            extra={"registry_id": reg.id, "component": ref.name, "url": url},
        )
        return manifest

    def fetch(self, ref: ComponentRef, style: str | None = None) -> ComponentManifest:
        """按引用中的 registry_id 拉取清单"""
        return self.fetch_manifest(self.get(ref.registry_id), ref, style)
