"""图像压缩器接口。

面向桌面前端的三个操作：路径批量压缩、上传批量压缩和文件大小查询，
返回值保持前端约定的元组格式。
"""

from collections.abc import Mapping, Sequence
from datetime import timedelta
from pathlib import Path
from typing import Any

from .config import get_config
from .engine.batch import BatchOrchestrator
from .engine.config import ConfigBuilder
from .exceptions import ValidationError
from .models import CompressionConfig, UploadItem
from .utils import file_helpers
from .utils.cleanup_helpers import ScratchRegistry
from .utils.logging_helpers import get_logger


logger = get_logger()

PathRow = tuple[str, int, int, str]
UploadRow = tuple[str, int, int, str, int]


class ImageCompressor:
    """图像压缩器

    持有一个临时目录登记表；每次调用都是无状态的，登记表只用于清扫遗留目录。
    """

    def __init__(
        self,
        max_workers: int | None = None,
        item_timeout: float | None = None,
        scratch_root: str | Path | None = None,
        max_payload_bytes: int | None = None,
    ):
        """初始化压缩器

        Args:
            max_workers: 批量处理时的最大并发数，默认取全局配置
            item_timeout: 单项超时（秒），默认取全局配置
            scratch_root: 临时目录根，默认取全局配置
            max_payload_bytes: 上传负载上限，默认取全局配置
        """
        if max_workers is not None and max_workers <= 0:
            raise ValidationError("max_workers 必须大于 0")
        if item_timeout is not None and item_timeout <= 0:
            raise ValidationError("item_timeout 必须大于 0")

        self.config_builder = ConfigBuilder()
        self.registry = ScratchRegistry(Path(scratch_root) if scratch_root else None)
        self.orchestrator = BatchOrchestrator(
            registry=self.registry,
            max_workers=max_workers,
            item_timeout=item_timeout,
            max_payload_bytes=max_payload_bytes,
        )

        logger.debug(f"初始化图像压缩器，临时目录根: {self.registry.root}")

    def compress_images(
        self, paths: Sequence[str | Path], config: CompressionConfig
    ) -> list[PathRow]:
        """原地压缩一组文件

        Returns:
            list[PathRow]: (路径, 原始大小, 压缩后大小, 状态)

        Examples:
            >>> compressor = ImageCompressor()
            >>> rows = compressor.compress_images(["photo.jpg"], CompressionConfig())
        """
        batch = self.orchestrator.compress_paths([str(p) for p in paths], config)
        return [result.as_path_row() for result in batch.results]

    def compress_uploaded_files(
        self,
        items: Sequence[UploadItem | Mapping[str, Any]],
        config: CompressionConfig,
        maintain_aspect_ratio: bool | None = None,
        output_path: str | Path | None = None,
    ) -> list[UploadRow]:
        """压缩前端上传的文件

        Args:
            items: 上传条目（UploadItem 或前端的 camelCase 字典）
            config: 压缩配置
            maintain_aspect_ratio: 缩放时是否保持宽高比，None 视为 False
            output_path: 输出目录，None 时覆盖原文件

        Returns:
            list[UploadRow]: (文件名, 原始大小, 压缩后大小, 状态, 前端索引)
        """
        upload_items = self.config_builder.build_upload_items(items)
        batch = self.orchestrator.compress_uploads(
            upload_items,
            config,
            maintain_aspect_ratio=bool(maintain_aspect_ratio),
            output_dir=output_path,
        )
        return [result.as_upload_row() for result in batch.results]

    def stat_path(self, path: str | Path) -> int:
        """文件字节大小

        Raises:
            StorageError: 读取元数据失败，消息为系统错误信息
        """
        return file_helpers.stat_path(path)

    def sweep_scratch(self, older_than: timedelta | None = None) -> list[Path]:
        """清扫早于 older_than 创建、仍在登记表中的临时目录"""
        if older_than is None:
            older_than = timedelta(seconds=get_config().processing.SWEEP_AGE_SECONDS)
        return self.registry.sweep(older_than)
