"""网络工具: URL 安全校验 + HTTP GET 传输

http_get 即注册表客户端默认使用的 fetch(url, headers, params) -> bytes 能力。
重试、代理等传输策略不在此处处理，失败直接向上抛出。
"""

from __future__ import annotations

import logging
import urllib.request
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from uiget.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

DEFAULT_TIMEOUT = 30.0


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def with_query_params(url: str, params: Mapping[str, str] | None) -> str:
    """把查询参数追加到 URL，保留 URL 中已有的参数"""
    if not params:
        return url
    parsed = urlparse(url)
    query = parse_qsl(parsed.query, keep_blank_values=True)
    query.extend((k, str(v)) for k, v in params.items())
    return urlunparse(parsed._replace(query=urlencode(query)))


def http_get(
    url: str,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """执行 GET 请求并返回响应体

    Raises:
        ValidationError: URL 协议不合法
        urllib.error.HTTPError: 服务端返回非 2xx
        urllib.error.URLError / OSError / TimeoutError: 传输失败
    """
    validate_url_scheme(url, context="registry fetch")
    full_url = with_query_params(url, params)
    req = urllib.request.Request(full_url, headers=dict(headers or {}))
    logger.debug("GET %s", full_url)
    with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
        body: bytes = resp.read()
    return body
