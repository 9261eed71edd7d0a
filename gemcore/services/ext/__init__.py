"""原生扩展构建

- builders.py: 构建器策略与按文件名分类
- dispatcher.py: 逐个扩展调度构建、失败日志
"""

from gemcore.services.ext.builders import (
    BaseBuilder,
    BuilderKind,
    ConfigureBuilder,
    ExtConfBuilder,
    RakeBuilder,
    classify,
    get_builder,
)
from gemcore.services.ext.dispatcher import ExtensionBuilder, ExtensionResult

__all__ = [
    "BaseBuilder",
    "BuilderKind",
    "ConfigureBuilder",
    "ExtConfBuilder",
    "RakeBuilder",
    "classify",
    "get_builder",
    "ExtensionBuilder",
    "ExtensionResult",
]
