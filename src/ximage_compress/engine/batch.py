"""批量编排模块。

处理路径批量和上传批量两类请求：每个条目独立执行，
失败转换为结果行，不影响其他条目，结果顺序与输入一致。
"""

import base64
import binascii
from pathlib import Path

from ..config import get_config
from ..core.compression_engine import compress_file
from ..exceptions import (
    CompressionError,
    DecodeError,
    EncodeError,
    ErrorHandler,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from ..models.compression_config import CompressionConfig, UploadItem
from ..models.compression_result import SUCCESS_STATUS, BatchResult, CompressionResult
from ..models.constants import is_allowed_upload_format
from ..utils.cleanup_helpers import ScratchRegistry
from ..utils.file_helpers import write_bytes
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import PathResolver, sanitize_filename
from .concurrent_executor import ConcurrentExecutor, raise_if_abandoned


logger = get_logger()


def decode_payload(data: str) -> bytes:
    """严格解码标准 base64 负载

    Raises:
        DecodeError: 含非法字符或填充错误
    """
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"base64 解码失败: {e}") from e


class BatchOrchestrator:
    """批量压缩编排器

    持有临时目录登记表和并发执行器；除登记表外，各条目之间不共享可变状态。
    """

    def __init__(
        self,
        registry: ScratchRegistry | None = None,
        max_workers: int | None = None,
        item_timeout: float | None = None,
        max_payload_bytes: int | None = None,
    ):
        """初始化批量编排器

        Args:
            registry: 临时目录登记表
            max_workers: 最大并发数，默认取全局配置
            item_timeout: 单项超时（秒），默认取全局配置
            max_payload_bytes: 上传负载上限，默认取全局配置
        """
        app_config = get_config()
        self.registry = registry or ScratchRegistry()
        self.max_payload_bytes = (
            max_payload_bytes
            if max_payload_bytes is not None
            else app_config.compression.MAX_PAYLOAD_BYTES
        )
        self.executor: ConcurrentExecutor = ConcurrentExecutor(
            max_workers=max_workers or app_config.processing.MAX_WORKERS,
            item_timeout=(
                item_timeout
                if item_timeout is not None
                else app_config.processing.ITEM_TIMEOUT
            ),
        )

    def compress_paths(
        self, paths: list[str], config: CompressionConfig
    ) -> BatchResult:
        """原地压缩一组受信任的文件路径

        Returns:
            BatchResult: 每个路径一行，status 为 "success" 或 "error: <消息>"
        """
        logger.info(f"开始路径批量压缩: {len(paths)} 个文件")

        def task(path: str) -> CompressionResult:
            stats = compress_file(
                path, config, registry=self.registry, before_commit=raise_if_abandoned
            )
            return CompressionResult(
                identifier=path,
                original_size=stats.original_size,
                compressed_size=stats.compressed_size,
                status=SUCCESS_STATUS,
            )

        def on_error(path: str, error: Exception) -> CompressionResult:
            return ErrorHandler.path_error_result(path, error, "图像压缩")

        batch = BatchResult(results=self.executor.run_ordered(paths, task, on_error))
        logger.info(batch.get_summary())
        return batch

    def compress_uploads(
        self,
        items: list[UploadItem],
        config: CompressionConfig,
        maintain_aspect_ratio: bool = False,
        output_dir: str | Path | None = None,
    ) -> BatchResult:
        """压缩前端上传的文件

        每个条目在自己的临时目录中保存和处理，条目结束时无论成败都会删除；
        超时被放弃的条目也由它自己清理，不会影响其他条目。

        Args:
            items: 上传条目
            config: 压缩配置
            maintain_aspect_ratio: 缩放时是否保持宽高比
            output_dir: 输出目录，None 时覆盖各条目的原文件

        Returns:
            BatchResult: 每个条目一行，携带前端传入的索引
        """
        logger.info(f"开始上传批量压缩: {len(items)} 个文件")
        output_dir = Path(output_dir) if output_dir is not None else None

        def task(item: UploadItem) -> CompressionResult:
            return self._compress_upload(item, config, maintain_aspect_ratio, output_dir)

        def on_error(item: UploadItem, error: Exception) -> CompressionResult:
            if not isinstance(error, CompressionError):
                error = EncodeError(str(error))
            return ErrorHandler.upload_error_result(
                item.name, item.source_index, error, "上传文件压缩"
            )

        batch = BatchResult(results=self.executor.run_ordered(items, task, on_error))
        logger.info(batch.get_summary())
        return batch

    def _compress_upload(
        self,
        item: UploadItem,
        config: CompressionConfig,
        maintain_aspect_ratio: bool,
        output_dir: Path | None,
    ) -> CompressionResult:
        """单个上传条目：白名单 -> 解码 -> 大小 -> 保存 -> 目标解析 -> 压缩"""
        logger.info(f"处理上传文件: {item.name}")

        if not is_allowed_upload_format(item.format):
            raise UnsupportedFormatError(MessageFormatter.unsupported_format(item.format))

        payload = decode_payload(item.data)
        logger.debug(f"base64 解码成功: {len(payload)} 字节")
        if len(payload) > self.max_payload_bytes:
            raise PayloadTooLargeError(
                f"文件过大: {len(payload)} 字节（上限 {self.max_payload_bytes} 字节）"
            )

        safe_name = sanitize_filename(item.name)
        with self.registry.scratch_space(get_config().processing.UPLOAD_PREFIX) as scratch:
            scratch_copy = scratch / safe_name
            write_bytes(scratch_copy, payload)
            logger.debug(f"临时文件已保存: {scratch_copy}")

            output_path = PathResolver.resolve_output_path(output_dir, safe_name)
            source = PathResolver.resolve_source(scratch_copy, item.source_path, output_path)

            try:
                stats = compress_file(
                    source,
                    config,
                    output_path,
                    maintain_aspect_ratio,
                    self.registry,
                    before_commit=raise_if_abandoned,
                )
            except Exception as e:
                raise EncodeError(str(e), source) from e

        return CompressionResult(
            identifier=item.name,
            original_size=stats.original_size,
            compressed_size=stats.compressed_size,
            status=SUCCESS_STATUS,
            source_index=item.source_index,
        )
