"""文件命名工具模块。

提供上传文件名清洗和输入/输出路径解析。
"""

from pathlib import Path

from ..exceptions import MissingDestinationError


_SEPARATORS = ("/", "\\")
_ALLOWED_PUNCTUATION = frozenset("._-")


def sanitize_filename(filename: str) -> str:
    """清洗不可信的文件名，使其可以安全拼接到受信任目录下。

    依次执行：删除所有 ".."、路径分隔符替换为 "_"、删除空字节、
    其余非字母数字且不属于 "._-" 的字符替换为 "_"。

    Args:
        filename: 前端上传的原始文件名

    Returns:
        str: 不含路径穿越或分隔符的文件名

    Examples:
        >>> sanitize_filename("../../etc/passwd")
        '__etc_passwd'
        >>> sanitize_filename("a/b\\\\c:d")
        'a_b_c_d'
    """
    sanitized = filename.replace("..", "")
    for separator in _SEPARATORS:
        sanitized = sanitized.replace(separator, "_")
    sanitized = sanitized.replace("\0", "")

    return "".join(
        c if c.isalnum() or c in _ALLOWED_PUNCTUATION else "_" for c in sanitized
    )


class PathResolver:
    """上传条目的源路径/目标路径解析器"""

    @staticmethod
    def resolve_output_path(output_dir: Path | None, safe_name: str) -> Path | None:
        """输出目录下的目标文件，未指定输出目录时为 None"""
        if output_dir is None:
            return None
        return output_dir / safe_name

    @staticmethod
    def resolve_source(
        scratch_copy: Path,
        source_path: Path | None,
        output_path: Path | None,
    ) -> Path:
        """确定压缩时使用的“原文件”

        显式传入的原路径优先于刚写入的临时副本；既没有输出路径也没有原路径时，
        结果无处可写。

        Raises:
            MissingDestinationError: 无法确定输出位置
        """
        if output_path is None and source_path is None:
            raise MissingDestinationError(
                "未提供原始路径，无法覆盖原文件", scratch_copy
            )
        return source_path if source_path is not None else scratch_copy
