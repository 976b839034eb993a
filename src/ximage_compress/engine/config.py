"""配置构建器模块。

把前端传来的扁平参数组装为 CompressionConfig / UploadItem，
pydantic 校验错误统一转换为 ValidationError。
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..config import get_config
from ..exceptions import ValidationError as CustomValidationError
from ..models.compression_config import CompressionConfig, UploadItem
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter


logger = get_logger()


class ConfigBuilder:
    """压缩配置构建器

    未传入的质量使用全局默认值。
    """

    def build(
        self,
        lossless: bool = False,
        quality_jpg: int | None = None,
        quality_webp: int | None = None,
        quality_png: int | None = None,
        preserve_exif: bool = False,
        resize_width: int | None = None,
        resize_height: int | None = None,
    ) -> CompressionConfig:
        """构建压缩配置

        Raises:
            CustomValidationError: 质量越界或尺寸非法
        """
        defaults = get_config().compression
        try:
            return CompressionConfig(
                lossless=lossless,
                quality_jpg=defaults.JPEG_QUALITY if quality_jpg is None else quality_jpg,
                quality_webp=defaults.WEBP_QUALITY if quality_webp is None else quality_webp,
                quality_png=defaults.PNG_QUALITY if quality_png is None else quality_png,
                preserve_exif=preserve_exif,
                resize_width=resize_width,
                resize_height=resize_height,
            )
        except PydanticValidationError as e:
            raise CustomValidationError(self._format_validation_error(e)) from e

    def build_upload_items(
        self, raw_items: Sequence[UploadItem | Mapping[str, Any]]
    ) -> list[UploadItem]:
        """校验上传条目（接受 camelCase 或 snake_case 字段）

        Raises:
            CustomValidationError: 任一条目结构不合法
        """
        items = []
        for position, raw in enumerate(raw_items):
            if isinstance(raw, UploadItem):
                items.append(raw)
                continue
            try:
                items.append(UploadItem.model_validate(raw))
            except PydanticValidationError as e:
                raise CustomValidationError(
                    MessageFormatter.validation_error(
                        f"上传条目[{position}]",
                        raw.get("name"),
                        self._format_validation_error(e),
                    )
                ) from e

        logger.debug(f"上传条目校验通过: {len(items)} 个")
        return items

    def _format_validation_error(self, error: PydanticValidationError) -> str:
        """格式化验证错误"""
        messages = []
        for err in error.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            msg = err["msg"]
            if field:
                messages.append(f"{field}: {msg}")
            else:
                messages.append(msg)
        return "; ".join(messages)


# 全局配置构建器实例
_default_builder = ConfigBuilder()


def build_config(**kwargs: Any) -> CompressionConfig:
    """使用全局构建器实例构建配置"""
    return _default_builder.build(**kwargs)
