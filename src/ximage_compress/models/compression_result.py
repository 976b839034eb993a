"""压缩结果模型。

定义单项压缩结果、批量结果以及尽力而为步骤的返回值。
"""

from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeVar

from humanize import naturalsize
from pydantic import BaseModel, Field


T = TypeVar("T")

SUCCESS_STATUS = "success"
ERROR_STATUS_PREFIX = "error: "


class CompressionStats(NamedTuple):
    """单个文件压缩前后的字节数"""

    original_size: int
    compressed_size: int


@dataclass(frozen=True)
class BestEffort(Generic[T]):
    """尽力而为操作的结果

    失败不会抛出异常，由调用方决定使用还是丢弃。
    """

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "BestEffort[T]":
        return cls(ok=True, value=value)

    @classmethod
    def skipped(cls) -> "BestEffort[T]":
        return cls(ok=True)

    @classmethod
    def failed(cls, error: Exception | str) -> "BestEffort[T]":
        return cls(ok=False, error=str(error))

    def value_or(self, default: T) -> T:
        """成功且有值时返回值，否则返回默认值"""
        if self.ok and self.value is not None:
            return self.value
        return default


class CompressionResult(BaseModel):
    """单个条目的压缩结果，与批次中其他条目互不影响"""

    identifier: str = Field(description="路径或上传文件名")
    original_size: int = Field(0, ge=0, description="原始大小（字节）")
    compressed_size: int = Field(0, ge=0, description="压缩后大小（字节）")
    status: str = Field(description="success 或失败标记")
    source_index: int | None = Field(None, description="前端传入的索引")

    @property
    def success(self) -> bool:
        return self.status == SUCCESS_STATUS

    def get_size_saved(self) -> int:
        """节省的字节数"""
        return max(0, self.original_size - self.compressed_size)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if self.original_size == 0:
            return 0.0
        return self.get_size_saved() / self.original_size * 100

    def get_summary(self) -> str:
        """压缩结果摘要"""
        if not self.success:
            return f"失败: {self.status}"
        return (
            f"{naturalsize(self.original_size, binary=True)} → "
            f"{naturalsize(self.compressed_size, binary=True)} "
            f"({self.get_compression_ratio():.1f}% 压缩)"
        )

    def as_path_row(self) -> tuple[str, int, int, str]:
        """路径批量接口的返回行"""
        return (self.identifier, self.original_size, self.compressed_size, self.status)

    def as_upload_row(self) -> tuple[str, int, int, str, int]:
        """上传批量接口的返回行"""
        return (
            self.identifier,
            self.original_size,
            self.compressed_size,
            self.status,
            self.source_index if self.source_index is not None else 0,
        )


class BatchResult(BaseModel):
    """批量处理结果，顺序与输入一致"""

    results: list[CompressionResult] = Field(default_factory=list)

    def get_total_count(self) -> int:
        return len(self.results)

    def get_success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    def get_failure_count(self) -> int:
        return self.get_total_count() - self.get_success_count()

    def get_total_size_saved(self) -> int:
        """成功条目的总节省大小"""
        return sum(r.get_size_saved() for r in self.results if r.success)

    def statuses(self) -> list[str]:
        return [r.status for r in self.results]

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = self.get_total_count()
        successful = self.get_success_count()
        size_saved = naturalsize(self.get_total_size_saved(), binary=True)
        summary = f"处理 {successful}/{total} 个文件，总节省 {size_saved}"
        if failed := self.get_failure_count():
            summary += f"，失败 {failed} 个"
        return summary
