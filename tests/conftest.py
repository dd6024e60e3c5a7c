"""测试公共夹具: 假传输层 + 清单构造工具，测试不访问网络"""

from __future__ import annotations

import json
import threading
import urllib.error
from typing import Any

import pytest

from uiget.core.component.client import RegistryClient
from uiget.core.component.models import RegistryDescriptor
from uiget.core.component.placeholders import PathResolver

REGISTRY_URL = "https://reg.example.com/r/{name}.json"
ACME_URL = "https://acme.example.com/{style}/{name}.json"

ALIASES = {
    "components": "src/lib/components",
    "utils": "src/lib/utils",
    "ui": "src/lib/components/ui",
    "hooks": "src/lib/hooks",
    "lib": "src/lib",
}


class FakeTransport:
    """URL -> 响应 的映射；未登记的 URL 返回 HTTP 404，记录每次调用"""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, dict[str, str], dict[str, str]]] = []
        self._lock = threading.Lock()

    def add(self, url: str, payload: Any) -> None:
        self.responses[url] = payload

    @property
    def urls(self) -> list[str]:
        return [c[0] for c in self.calls]

    def __call__(self, url: str, headers: Any, params: Any) -> bytes:
        with self._lock:
            self.calls.append((url, dict(headers), dict(params)))
        if url not in self.responses:
            raise urllib.error.HTTPError(url, 404, "Not Found", None, None)  # type: ignore[arg-type]
        payload = self.responses[url]
        if isinstance(payload, BaseException):
            raise payload
        if isinstance(payload, bytes):
            return payload
        if isinstance(payload, str):
            return payload.encode("utf-8")
        return json.dumps(payload).encode("utf-8")


def manifest(
    name: str,
    deps: tuple[str, ...] = (),
    files: list[dict[str, Any]] | None = None,
    type_: str = "registry:ui",
    **extra: Any,
) -> dict[str, Any]:
    """构造组件清单 JSON"""
    if files is None:
        files = [{
            "target": f"ui/{name}/{name}.svelte",
            "content": f"<script>import {{ cn }} from \"$UTILS$\";</script>\n<div>{name}</div>\n",
            "type": "registry:ui",
        }]
    data = {
        "name": name,
        "type": type_,
        "registryDependencies": list(deps),
        "files": files,
    }
    data.update(extra)
    return data


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def registries() -> list[RegistryDescriptor]:
    return [
        RegistryDescriptor("default", REGISTRY_URL),
        RegistryDescriptor(
            "acme", ACME_URL,
            headers={"Authorization": "Bearer token"},
            params={"v": "2"},
        ),
    ]


@pytest.fixture
def client(registries: list[RegistryDescriptor], transport: FakeTransport) -> RegistryClient:
    return RegistryClient(registries, transport=transport)


@pytest.fixture
def aliases() -> dict[str, str]:
    return dict(ALIASES)


@pytest.fixture
def path_resolver(tmp_path, aliases: dict[str, str]) -> PathResolver:
    return PathResolver(aliases, typescript=True, project_root=tmp_path)
