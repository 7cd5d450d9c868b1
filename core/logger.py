"""
core.logger: 统一日志入口。

各模块通过 `from core.logger import get_logger` 获取 logger；
脚本入口调用 configure_logging 设置输出级别与格式（通常来自 YAML 配置）。
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
) -> None:
    """
    配置根 logger：输出到 stderr，清除已有 handler，避免重复打印。

    参数：
    - level: 日志级别，可为 logging 常量或 "INFO"/"DEBUG" 等字符串；
    - fmt: 日志格式，None 时使用 DEFAULT_FORMAT。
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"无法识别的日志级别：{level}")
        level = resolved

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """获取模块级 logger。"""
    return logging.getLogger(name)
