"""日志工具模块.

为合成流水线提供统一的日志记录。

Features:
    - 控制台彩色输出（仅在终端下着色）
    - 合成日志与错误日志分别轮转
    - 日志目录不可写时退化为仅控制台输出
    - 全局日志级别管理
"""

from __future__ import annotations

import copy
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from greenscreen.utils.constants import LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_FILE_BACKUP_COUNT = 3

_log_level: int = logging.INFO
_root_configured: bool = False


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录.

        复制记录后再着色，文件处理器拿到的仍是原始级别名。
        """
        color = self.COLORS.get(record.levelno, "")
        record = copy.copy(record)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _configure_root_logger(log_dir: Optional[Path] = None) -> None:
    """配置根日志记录器."""
    global _root_configured
    if _root_configured:
        return

    root = logging.getLogger()
    root.setLevel(_log_level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_log_level)
    if sys.stderr.isatty():
        console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    else:
        console.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(console)

    log_dir = log_dir or LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler(log_dir / "greenscreen.log", _log_level))
        root.addHandler(_file_handler(log_dir / "error.log", logging.ERROR))
    except OSError as e:
        root.warning(f"日志目录不可写，仅输出到控制台: {log_dir} ({e})")

    _root_configured = True


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """设置并返回日志记录器.

    Args:
        name: 日志记录器名称，通常使用 __name__
        level: 日志级别，默认使用全局配置

    Returns:
        配置好的日志记录器
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _log_level)
    return logger


def set_log_level(level: int | str) -> None:
    """设置全局日志级别.

    已创建的 greenscreen 日志记录器同步更新。
    """
    global _log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _log_level = level

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if handler.level != logging.ERROR:
            handler.setLevel(level)

    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("greenscreen") and isinstance(logger, logging.Logger):
            logger.setLevel(level)


def get_log_level_name() -> str:
    """获取当前日志级别名称."""
    return logging.getLevelName(_log_level)
