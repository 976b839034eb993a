"""日志工具模块。

提供统一的日志记录器获取和进程级日志初始化。
"""

import inspect
import logging


def get_logger(name: str | None = None) -> logging.Logger:
    """获取日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 日志记录器
    """
    if name is None:
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """按应用配置初始化根日志，供命令入口调用。"""
    from ..config import get_config

    defaults = get_config().logging
    logging.basicConfig(
        level=getattr(logging, (level or defaults.LOG_LEVEL).upper(), logging.INFO),
        format=fmt or defaults.LOG_FORMAT,
    )
