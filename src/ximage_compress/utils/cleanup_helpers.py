"""清理工具模块。

提供每次操作独占的临时目录及其登记表，支持崩溃后清扫遗留目录。
"""

import shutil
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

from ..exceptions import StorageError
from ..models.compression_result import BestEffort
from .logging_helpers import get_logger


logger = get_logger()


def remove_tree(path: Path) -> BestEffort[None]:
    """删除目录树；失败只返回结果，不抛出"""
    try:
        shutil.rmtree(path)
        return BestEffort.skipped()
    except FileNotFoundError:
        return BestEffort.skipped()
    except OSError as e:
        return BestEffort.failed(e)


class ScratchRegistry:
    """临时目录登记表

    记录每个临时目录的路径和创建时间，内部加锁以支持并发访问。
    登记只是辅助信息：单次运行内的正确性不依赖它。
    """

    def __init__(self, root: Path | None = None):
        """初始化登记表

        Args:
            root: 临时目录根，默认使用配置中的 SCRATCH_ROOT
        """
        if root is None:
            from ..config import get_config

            root = get_config().processing.SCRATCH_ROOT
        self.root = Path(root)
        self._lock = threading.Lock()
        self._entries: dict[Path, datetime] = {}

    def register(self, path: Path, created_at: datetime | None = None) -> None:
        """登记临时目录"""
        with self._lock:
            self._entries[path] = created_at or datetime.now()

    def unregister(self, path: Path) -> None:
        """移除登记"""
        with self._lock:
            self._entries.pop(path, None)

    def tracked(self) -> dict[Path, datetime]:
        """当前登记的快照"""
        with self._lock:
            return dict(self._entries)

    def sweep(self, older_than: timedelta, now: datetime | None = None) -> list[Path]:
        """清扫创建时间早于 older_than 的登记目录

        Returns:
            list[Path]: 已删除（或已不存在）并移除登记的目录
        """
        cutoff = (now or datetime.now()) - older_than
        with self._lock:
            expired = [p for p, created in self._entries.items() if created < cutoff]

        swept = []
        for path in expired:
            outcome = remove_tree(path)
            if outcome.ok:
                self.unregister(path)
                swept.append(path)
            else:
                logger.warning(f"清扫临时目录失败 {path}: {outcome.error}")

        if swept:
            logger.info(f"已清扫 {len(swept)} 个遗留临时目录")
        return swept

    def create(self, prefix: str) -> Path:
        """在 <root>/<prefix>/ 下创建唯一命名的目录并登记

        Raises:
            StorageError: 创建目录失败
        """
        path = self.root / prefix / uuid.uuid4().hex
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise StorageError(f"创建临时目录失败: {e}", path) from e

        self.register(path)
        logger.debug(f"创建临时目录: {path}")
        return path

    def release(self, path: Path) -> BestEffort[None]:
        """删除临时目录；删除失败时保留登记，留给后续清扫"""
        outcome = remove_tree(path)
        if outcome.ok:
            self.unregister(path)
        else:
            logger.warning(f"删除临时目录失败 {path}: {outcome.error}")
        return outcome

    @contextmanager
    def scratch_space(self, prefix: str) -> Iterator[Path]:
        """独占临时目录的上下文管理器，无论成功失败退出时都会删除"""
        path = self.create(prefix)
        try:
            yield path
        finally:
            # 删除失败不影响调用方
            _ = self.release(path)
