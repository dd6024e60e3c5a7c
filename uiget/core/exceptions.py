"""统一异常体系

所有业务异常继承 UigetError，携带结构化上下文（注册表、组件、路径等），
核心层只抛出异常不负责输出，CLI 层据此生成可操作的错误提示和退出码。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uiget.core.component.models import ComponentRef, InstallReport


class UigetError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(UigetError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(UigetError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ExecutionError(UigetError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


# =========================================================================
# 注册表相关
# =========================================================================


class RegistryError(UigetError):
    """注册表异常基类"""

    code = "REGISTRY_ERROR"

    def __init__(self, message: str, *, registry_id: str = "", url: str = "") -> None:
        super().__init__(message)
        self.registry_id = registry_id
        self.url = url


class RegistryUnreachableError(RegistryError):
    """网络传输失败或超时"""

    code = "REGISTRY_UNREACHABLE"


class RegistryMalformedError(RegistryError):
    """响应不是合法 JSON，或结构不符合索引/清单格式"""

    code = "REGISTRY_MALFORMED"


class RegistryUnknownError(RegistryError):
    """引用了配置中不存在的注册表命名空间"""

    code = "REGISTRY_UNKNOWN"

    def __init__(
        self, message: str, *, registry_id: str = "",
        chain: list[ComponentRef] | None = None,
    ) -> None:
        super().__init__(message, registry_id=registry_id)
        self.chain = chain or []


class ComponentNotFoundError(UigetError):
    """注册表对组件清单返回 "not found"

    chain 记录从顶层请求到缺失组件的依赖路径，便于诊断多跳失败。
    """

    code = "COMPONENT_NOT_FOUND"

    def __init__(
        self, message: str, *,
        ref: ComponentRef | None = None,
        chain: list[ComponentRef] | None = None,
        url: str = "",
    ) -> None:
        super().__init__(message)
        self.ref = ref
        self.chain = chain or []
        self.url = url


# =========================================================================
# 路径解析 / 安装
# =========================================================================


class UnresolvedAliasError(UigetError):
    """占位符引用了未配置的别名"""

    code = "UNRESOLVED_ALIAS"

    def __init__(self, message: str, *, role: str = "", token: str = "") -> None:
        super().__init__(message)
        self.role = role
        self.token = token


class InstallIncompleteError(UigetError):
    """存在非冲突原因（如权限）导致的写入失败"""

    code = "INSTALL_INCOMPLETE"

    def __init__(
        self, message: str, *,
        paths: list[str] | None = None,
        report: InstallReport | None = None,
    ) -> None:
        super().__init__(message)
        self.paths = paths or []
        self.report = report


def error_context(exc: UigetError) -> dict[str, Any]:
    """提取异常的结构化上下文（用于日志 / JSON 输出）"""
    ctx: dict[str, Any] = {"code": exc.code, "message": str(exc)}
    for attr in ("registry_id", "url", "role", "token", "paths", "details"):
        value = getattr(exc, attr, None)
        if value:
            ctx[attr] = value
    ref = getattr(exc, "ref", None)
    if ref is not None:
        ctx["ref"] = str(ref)
    chain = getattr(exc, "chain", None)
    if chain:
        ctx["chain"] = [str(r) for r in chain]
    return ctx
