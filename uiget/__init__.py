"""uiget - 从多个组件注册表拉取 shadcn 风格 UI 组件源码"""

__version__ = "0.3.0"
