"""图像压缩异常处理模块。

定义统一的异常类型（每种带有机器可读的标记）和错误处理机制。
"""

from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import ClassVar, TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.compression_result import ERROR_STATUS_PREFIX, CompressionResult
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


class CompressionError(Exception):
    """压缩相关错误基类"""

    tag: ClassVar[str] = "compress_failed"

    def __init__(self, message: str, input_path: Path | None = None):
        super().__init__(message)
        self.message = message
        self.input_path = input_path


class ValidationError(CompressionError):
    """参数验证错误"""

    tag = "invalid_argument"


class UnsupportedFormatError(CompressionError):
    """扩展名缺失/无法识别，或声明的格式不在白名单"""

    tag = "unsupported_format"


class DecodeError(CompressionError):
    """传输负载解码失败"""

    tag = "decode_failed"


class PayloadTooLargeError(CompressionError):
    """负载超过大小上限"""

    tag = "file_too_large"


class StorageError(CompressionError):
    """读写、创建或删除文件失败"""

    tag = "save_failed"


class EncodeError(CompressionError):
    """编解码器或量化器错误"""

    tag = "compress_failed"


class MissingDestinationError(CompressionError):
    """无法确定输出位置"""

    tag = "missing_source_path"


def handle_codec_errors(operation_name: str = "图像编码"):
    """编解码异常转换装饰器

    将 Pillow 及编码库的异常统一转换为 EncodeError / StorageError。

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except CompressionError:
                raise
            except UnidentifiedImageError as e:
                logger.error(f"{operation_name} - 无法识别图像内容: {e}")
                raise EncodeError(f"无法识别图像内容: {e}") from e
            except DecompressionBombError as e:
                logger.error(f"{operation_name} - 图像过大: {e}")
                raise EncodeError(f"图像像素过多，可能存在安全风险: {e}") from e
            except OSError as e:
                logger.error(f"{operation_name} - 文件操作失败: {e}")
                raise StorageError(f"文件操作失败: {e}") from e
            except (ValueError, TypeError, RuntimeError) as e:
                logger.error(f"{operation_name} - 编码失败: {e}")
                raise EncodeError(f"编码失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    在批量编排边界把异常转换为结果行，不影响其他条目。
    """

    @staticmethod
    def _log_error(
        operation: str, target: str | Path, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录"""
        log_msg = MessageFormatter.format_error(operation, target, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def path_error_result(
        path: str, error: Exception, operation: str = "图像压缩"
    ) -> CompressionResult:
        """路径批量的错误行：status 为 "error: <消息>" """
        match error:
            case UnsupportedFormatError() | FileNotFoundError():
                level = "warning"
            case _:
                level = "error"
        ErrorHandler._log_error(operation, path, error, level)
        message = error.message if isinstance(error, CompressionError) else str(error)
        return CompressionResult(
            identifier=path,
            original_size=0,
            compressed_size=0,
            status=f"{ERROR_STATUS_PREFIX}{message}",
        )

    @staticmethod
    def upload_error_result(
        name: str, source_index: int, error: CompressionError, operation: str
    ) -> CompressionResult:
        """上传批量的错误行：status 为异常携带的标记"""
        ErrorHandler._log_error(operation, name, error, "warning")
        return CompressionResult(
            identifier=name,
            original_size=0,
            compressed_size=0,
            status=error.tag,
            source_index=source_index,
        )
