"""图像压缩 MCP 服务器。

把压缩器的三个操作注册为 MCP 工具，参数与桌面前端发送的扁平参数一致。
"""

from typing import Any

from fastmcp import FastMCP

from .compressor import ImageCompressor
from .engine.config import ConfigBuilder
from .exceptions import CompressionError, ValidationError
from .utils.logging_helpers import configure_logging, get_logger
from .utils.message_formatter import MessageFormatter


# MCP 服务器响应类型定义
MCPResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> MCPResponse:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result: MCPResponse = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str) -> MCPResponse:
        """参数验证失败"""
        return MCPResponseBuilder.error(message=message, error_type="validation")

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> MCPResponse:
        """文件相关错误"""
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="file",
            details=details,
        )

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> MCPResponse:
        """处理过程中的意外错误"""
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="processing",
            details=details,
        )

    @staticmethod
    def rows(rows: list[tuple], fields: tuple[str, ...]) -> MCPResponse:
        """批量结果：保留前端约定的行格式，并附带逐字段的字典形式"""
        success_count = sum(1 for row in rows if row[3] == "success")
        return {
            "success": True,
            "results": [list(row) for row in rows],
            "items": [dict(zip(fields, row, strict=True)) for row in rows],
            "summary": f"处理 {success_count}/{len(rows)} 个文件",
        }


PATH_ROW_FIELDS = ("path", "original_size", "compressed_size", "status")
UPLOAD_ROW_FIELDS = (
    "name",
    "original_size",
    "compressed_size",
    "status",
    "source_index",
)

logger = get_logger()

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("Ximage 图像压缩服务")

# 全局压缩器实例
compressor = ImageCompressor()
config_builder = ConfigBuilder()


@mcp.tool()
def compress_images(
    paths: list[str],
    lossless: bool = False,
    quality_jpg: int | None = None,
    quality_webp: int | None = None,
    quality_png: int | None = None,
    preserve_exif: bool = False,
    resize_width: int | None = None,
    resize_height: int | None = None,
) -> MCPResponse:
    """原地压缩一组图片文件（PNG / JPEG / WebP，按扩展名识别格式）

    Args:
        paths: 文件路径列表，压缩结果覆盖原文件
        lossless: 无损模式
        quality_jpg: JPEG 质量 0-100
        quality_webp: WebP 质量 0-100
        quality_png: PNG 量化质量 0-100
        preserve_exif: 是否保留 JPEG 的 EXIF
        resize_width: 目标宽度（与 resize_height 同时提供时才缩放）
        resize_height: 目标高度

    Returns:
        dict: results 中每行为 [路径, 原始大小, 压缩后大小, 状态]
    """
    try:
        config = config_builder.build(
            lossless=lossless,
            quality_jpg=quality_jpg,
            quality_webp=quality_webp,
            quality_png=quality_png,
            preserve_exif=preserve_exif,
            resize_width=resize_width,
            resize_height=resize_height,
        )
        rows = compressor.compress_images(paths, config)
        return MCPResponseBuilder.rows(rows, PATH_ROW_FIELDS)
    except ValidationError as e:
        return MCPResponseBuilder.validation_error(e.message)
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("路径批量压缩", f"{len(paths)} 个文件", e))
        return MCPResponseBuilder.processing_error(str(e), "路径批量压缩")


@mcp.tool()
def compress_uploaded_files(
    file_data: list[dict[str, Any]],
    lossless: bool = False,
    quality_jpg: int | None = None,
    quality_webp: int | None = None,
    quality_png: int | None = None,
    preserve_exif: bool = False,
    resize_width: int | None = None,
    resize_height: int | None = None,
    maintain_aspect_ratio: bool | None = None,
    output_path: str | None = None,
) -> MCPResponse:
    """压缩前端上传的 base64 文件

    Args:
        file_data: 上传条目，字段为 name / data / format / sourceIndex / sourcePath
        lossless: 无损模式
        quality_jpg: JPEG 质量 0-100
        quality_webp: WebP 质量 0-100
        quality_png: PNG 量化质量 0-100
        preserve_exif: 是否保留 JPEG 的 EXIF
        resize_width: 目标宽度（与 resize_height 同时提供时才缩放）
        resize_height: 目标高度
        maintain_aspect_ratio: 缩放时保持宽高比
        output_path: 输出目录；省略时覆盖 sourcePath 指向的原文件

    Returns:
        dict: results 中每行为 [文件名, 原始大小, 压缩后大小, 状态, 索引]
    """
    try:
        config = config_builder.build(
            lossless=lossless,
            quality_jpg=quality_jpg,
            quality_webp=quality_webp,
            quality_png=quality_png,
            preserve_exif=preserve_exif,
            resize_width=resize_width,
            resize_height=resize_height,
        )
        rows = compressor.compress_uploaded_files(
            file_data,
            config,
            maintain_aspect_ratio=maintain_aspect_ratio,
            output_path=output_path,
        )
        return MCPResponseBuilder.rows(rows, UPLOAD_ROW_FIELDS)
    except ValidationError as e:
        return MCPResponseBuilder.validation_error(e.message)
    except Exception as e:
        logger.error(
            MessageFormatter.operation_failed("上传批量压缩", f"{len(file_data)} 个文件", e)
        )
        return MCPResponseBuilder.processing_error(str(e), "上传批量压缩")


@mcp.tool()
def stat_path(path: str) -> MCPResponse:
    """查询文件字节大小

    Args:
        path: 文件路径

    Returns:
        dict: 成功时 size 为字节数，失败时 error 为系统错误信息
    """
    try:
        return {"success": True, "path": path, "size": compressor.stat_path(path)}
    except CompressionError as e:
        return MCPResponseBuilder.file_error(e.message, path)


def main() -> None:
    """启动 MCP 服务器"""
    configure_logging()
    logger.info("启动图片压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
