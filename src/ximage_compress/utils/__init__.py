"""工具模块包。

提供日志与消息格式化等基础工具；依赖异常模块的助手
（naming_helpers / file_helpers / cleanup_helpers）按模块路径导入。
"""

from .logging_helpers import configure_logging, get_logger
from .message_formatter import MessageFormatter


__all__ = [
    "MessageFormatter",
    "configure_logging",
    "get_logger",
]
