"""并发执行器模块。

在线程池中执行相互独立的单项任务，按输入顺序返回结果。
"""

import threading
import time
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Generic, TypeVar

from ..exceptions import EncodeError
from ..utils.logging_helpers import get_logger


logger = get_logger()

T = TypeVar("T")
R = TypeVar("R")

_current = threading.local()


def raise_if_abandoned() -> None:
    """当前线程执行的条目已超时被放弃时抛出 EncodeError

    在写出最终结果前调用，避免已报告失败的条目仍然覆盖目标文件。
    """
    abandoned = getattr(_current, "abandoned", None)
    if abandoned is not None and abandoned.is_set():
        raise EncodeError("处理已超时，放弃写出")


def _run_tracked(task: Callable[[T], R], item: T, abandoned: threading.Event) -> R:
    _current.abandoned = abandoned
    try:
        return task(item)
    finally:
        _current.abandoned = None


class ConcurrentExecutor(Generic[T, R]):
    """通用并发执行器

    max_workers=1 且未设置超时时在当前线程逐项执行；其他情况使用线程池，
    同一时刻最多 max_workers 个条目在运行。
    单项失败（包括超时）由 on_error 转换为结果，不影响其他条目。
    """

    def __init__(self, max_workers: int = 1, item_timeout: float | None = None):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数，必须大于 0
            item_timeout: 单项运行超时（秒，从条目开始运行时计时），None 表示不限制
        """
        if max_workers < 1:
            raise ValueError(f"max_workers 必须大于 0，当前值: {max_workers}")
        self.max_workers = max_workers
        self.item_timeout = item_timeout

    def run_ordered(
        self,
        items: Sequence[T],
        task: Callable[[T], R],
        on_error: Callable[[T, Exception], R],
    ) -> list[R]:
        """执行任务，结果顺序与输入一致

        超时的条目被放弃并计为失败，它占用的并发名额立即让给排队中的条目。

        Args:
            items: 任务输入
            task: 单项任务函数
            on_error: 把单项异常转换为结果的函数

        Returns:
            list[R]: 每个输入对应一个结果
        """
        if not items:
            return []

        if self.max_workers == 1 and self.item_timeout is None:
            return [self._run_inline(item, task, on_error) for item in items]

        results: list[R | None] = [None] * len(items)
        pending = deque(range(len(items)))
        running: dict[Future, tuple[int, float | None, threading.Event]] = {}

        # 线程数上限等于条目数：被放弃的条目占着线程时，新条目仍能立即开始
        executor = ThreadPoolExecutor(
            max_workers=len(items), thread_name_prefix="ximage-worker"
        )
        try:
            while pending or running:
                while pending and len(running) < self.max_workers:
                    index = pending.popleft()
                    abandoned = threading.Event()
                    future = executor.submit(_run_tracked, task, items[index], abandoned)
                    deadline = (
                        time.monotonic() + self.item_timeout
                        if self.item_timeout is not None
                        else None
                    )
                    running[future] = (index, deadline, abandoned)

                done, _ = wait(
                    running, timeout=self._next_wait(running), return_when=FIRST_COMPLETED
                )
                for future in done:
                    index, _, _ = running.pop(future)
                    results[index] = self._collect(items[index], future, on_error)

                now = time.monotonic()
                for future, (index, deadline, abandoned) in list(running.items()):
                    if deadline is not None and now >= deadline and not future.done():
                        del running[future]
                        abandoned.set()
                        logger.warning(f"任务超时 ({self.item_timeout}s): {items[index]}")
                        results[index] = on_error(
                            items[index], EncodeError(f"处理超时 ({self.item_timeout}s)")
                        )
        finally:
            # 被放弃的任务仍在后台运行，不等待；它自己的 finally 负责清理临时目录
            executor.shutdown(wait=False, cancel_futures=True)

        return results  # type: ignore[return-value]

    @staticmethod
    def _next_wait(
        running: dict[Future, tuple[int, float | None, threading.Event]],
    ) -> float | None:
        deadlines = [d for _, d, _ in running.values() if d is not None]
        if not deadlines:
            return None
        return max(0.0, min(deadlines) - time.monotonic())

    @staticmethod
    def _run_inline(
        item: T, task: Callable[[T], R], on_error: Callable[[T, Exception], R]
    ) -> R:
        try:
            return task(item)
        except Exception as e:
            return on_error(item, e)

    @staticmethod
    def _collect(item: T, future: Future, on_error: Callable[[T, Exception], R]) -> R:
        try:
            return future.result()
        except Exception as e:
            return on_error(item, e)
