"""压缩配置模型。

定义一次压缩操作的策略参数，以及前端上传的文件条目。
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import ValidationLimits


class CompressionConfig(BaseModel):
    """压缩配置（不可变）

    质量字段仅在有损模式下生效；宽高同时提供时才缩放，只给其一时忽略。
    """

    model_config = ConfigDict(frozen=True)

    lossless: bool = Field(False, description="无损模式")
    quality_jpg: int = Field(
        80,
        ge=ValidationLimits.MIN_QUALITY,
        le=ValidationLimits.MAX_QUALITY,
        description="JPEG 质量",
    )
    quality_webp: int = Field(
        80,
        ge=ValidationLimits.MIN_QUALITY,
        le=ValidationLimits.MAX_QUALITY,
        description="WebP 质量",
    )
    quality_png: int = Field(
        80,
        ge=ValidationLimits.MIN_QUALITY,
        le=ValidationLimits.MAX_QUALITY,
        description="PNG 量化质量",
    )
    preserve_exif: bool = Field(False, description="保留 EXIF（仅 JPEG）")
    resize_width: int | None = Field(
        None, ge=ValidationLimits.MIN_DIMENSION, description="目标宽度"
    )
    resize_height: int | None = Field(
        None, ge=ValidationLimits.MIN_DIMENSION, description="目标高度"
    )

    @property
    def resize_target(self) -> tuple[int, int] | None:
        """请求的目标尺寸，未请求时为 None"""
        if self.resize_width is None or self.resize_height is None:
            return None
        return (self.resize_width, self.resize_height)


class UploadItem(BaseModel):
    """前端上传的单个文件

    字段名与前端保持一致（camelCase），同时接受 snake_case。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(description="原始文件名（不可信）")
    data: str = Field(repr=False, description="base64 编码的文件内容")
    format: str = Field(description="前端声明的格式")
    source_index: int = Field(ge=0, description="前端列表中的索引")
    source_path: Path | None = Field(None, description="需要覆盖的原文件路径")

    @field_validator("source_path", mode="before")
    @classmethod
    def blank_path_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v
