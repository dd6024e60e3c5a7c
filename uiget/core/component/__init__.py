"""组件解析与安装引擎

拆分说明:
- models.py: 数据模型
- client.py: 注册表客户端（索引 / 清单拉取）
- placeholders.py: 占位符与落盘路径解析
- resolver.py: 依赖图展开
- installer.py: 冲突策略下的文件写入
- outdated.py: 过期检测
- builder.py: 注册表静态文件生成
"""

from uiget.core.component.client import RegistryClient
from uiget.core.component.installer import ComponentInstaller
from uiget.core.component.models import ComponentManifest, ComponentRef, RegistryDescriptor
from uiget.core.component.outdated import OutdatedDetector
from uiget.core.component.placeholders import PathResolver
from uiget.core.component.resolver import DependencyResolver

__all__ = [
    "ComponentInstaller",
    "ComponentManifest",
    "ComponentRef",
    "DependencyResolver",
    "OutdatedDetector",
    "PathResolver",
    "RegistryClient",
    "RegistryDescriptor",
]
