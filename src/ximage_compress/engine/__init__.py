"""批量处理引擎模块。

包含批量编排、并发执行和配置构建。
"""

from .batch import BatchOrchestrator, decode_payload
from .concurrent_executor import ConcurrentExecutor
from .config import ConfigBuilder, build_config


__all__ = [
    "BatchOrchestrator",
    "ConcurrentExecutor",
    "ConfigBuilder",
    "build_config",
    "decode_payload",
]
