"""文件工具模块。

提供文件大小查询、字节读写等与存储相关的小工具，统一转换为 StorageError。
"""

import shutil
from pathlib import Path

from ..exceptions import StorageError
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def stat_path(path: str | Path) -> int:
    """获取文件字节大小

    Raises:
        StorageError: 读取元数据失败，消息为底层错误信息
    """
    try:
        return Path(path).stat().st_size
    except OSError as e:
        raise StorageError(str(e), Path(path)) from e


def read_bytes(path: Path) -> bytes:
    """读取整个文件"""
    try:
        return path.read_bytes()
    except OSError as e:
        raise StorageError(MessageFormatter.operation_failed("读取文件", path, e), path) from e


def write_bytes(path: Path, data: bytes) -> None:
    """写入整个文件"""
    try:
        path.write_bytes(data)
    except OSError as e:
        raise StorageError(MessageFormatter.operation_failed("写入文件", path, e), path) from e


def copy_to_destination(source: Path, destination: Path) -> int:
    """复制到最终位置（必要时创建父目录），返回写入后的大小"""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        return destination.stat().st_size
    except OSError as e:
        raise StorageError(
            MessageFormatter.operation_failed("写入目标文件", destination, e), destination
        ) from e
