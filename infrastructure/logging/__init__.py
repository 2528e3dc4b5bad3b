"""
日志配置

使用标准库 logging：控制台输出，配置了 log_file 时同时写入滚动日志文件。
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from infrastructure.config.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_configured = False


def configure_logging(settings: Settings, force: bool = False) -> None:
    """
    配置根日志记录器（只执行一次）

    Args:
        settings: 应用配置（log_level, log_file）
        force: 是否重新配置
    """
    global _configured
    if _configured and not force:
        return

    level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    file_handler = _create_file_handler(settings.log_file)
    if file_handler is not None:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # 屏蔽 googleapiclient discovery 缓存警告
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    _configured = True


def _create_file_handler(log_file: str) -> Optional[logging.Handler]:
    if not log_file:
        return None
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
