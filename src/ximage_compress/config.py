"""统一配置管理模块。

提供压缩引擎的全局默认值，支持 XIMAGE_ 前缀的环境变量覆盖。
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class CompressionDefaults:
    """压缩相关的默认配置"""

    # 前端未传值时使用的质量
    JPEG_QUALITY: int = 80
    WEBP_QUALITY: int = 80
    PNG_QUALITY: int = 80

    # 上传负载上限
    MAX_PAYLOAD_BYTES: int = 50 * 1024 * 1024


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 并发设置，1 表示严格顺序处理
    MAX_WORKERS: int = 1

    # 单项超时（秒），None 表示不限制
    ITEM_TIMEOUT: float | None = None

    # 临时目录设置
    SCRATCH_ROOT: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    COMPRESS_PREFIX: str = "Ximage-compress"
    UPLOAD_PREFIX: str = "Ximage-upload"

    # 孤儿临时目录的清理年龄（秒）
    SWEEP_AGE_SECONDS: float = 3600.0


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.compression = CompressionDefaults()
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        if max_payload_mb := os.getenv("XIMAGE_MAX_PAYLOAD_MB"):
            object.__setattr__(
                self.compression,
                "MAX_PAYLOAD_BYTES",
                int(float(max_payload_mb) * 1024 * 1024),
            )

        if max_workers := os.getenv("XIMAGE_MAX_WORKERS"):
            object.__setattr__(self.processing, "MAX_WORKERS", max(1, int(max_workers)))

        if item_timeout := os.getenv("XIMAGE_ITEM_TIMEOUT"):
            object.__setattr__(self.processing, "ITEM_TIMEOUT", float(item_timeout))

        if scratch_root := os.getenv("XIMAGE_SCRATCH_ROOT"):
            object.__setattr__(self.processing, "SCRATCH_ROOT", Path(scratch_root))

        if log_level := os.getenv("XIMAGE_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
