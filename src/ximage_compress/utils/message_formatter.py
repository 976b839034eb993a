"""消息格式化工具模块。

提供统一的错误消息、压缩摘要格式化功能。
"""

from pathlib import Path
from typing import Any

from humanize import naturalsize


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def unsupported_format(value: str) -> str:
        """不支持的格式错误消息"""
        return f"不支持的格式: {value}"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def validation_error(field: str, value: Any, reason: str | None = None) -> str:
        """参数验证错误消息"""
        msg = f"参数验证失败 - {field}: {value}"
        if reason:
            msg += f" ({reason})"
        return msg

    @staticmethod
    def format_error(operation: str, path: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{path}]: {error}"

    @staticmethod
    def compression_summary(original_size: int, compressed_size: int) -> str:
        """压缩结果摘要，节省比例向下取整"""
        saved = max(0, original_size - compressed_size)
        ratio = int(saved / original_size * 100) if original_size > 0 else 0
        return (
            f"{naturalsize(original_size, binary=True)} -> "
            f"{naturalsize(compressed_size, binary=True)} (节省 {ratio}%)"
        )
