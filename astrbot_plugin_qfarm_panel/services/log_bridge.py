from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Any

LOG_LEVEL_MAP = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

FILE_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
FILE_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
FILE_LOG_NAME = "qfarm-panel.log"


def resolve_log_level(name: Any, default: int = logging.INFO) -> int:
    return LOG_LEVEL_MAP.get(str(name or "").strip().lower(), default)


def panel_level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    return "INFO"


class PanelLogHandler(logging.Handler):
    """把 logging 记录同步写入面板日志缓冲。"""

    def __init__(self, state: Any, level: int | str = logging.INFO) -> None:
        if isinstance(level, str):
            level = resolve_log_level(level)
        super().__init__(level=level)
        self.state = state

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                message = f"{message} ({record.exc_info[1]})"
            self.state.add_log(panel_level_name(record.levelno), message)
        except Exception:
            self.handleError(record)


def _dated_log_name(default_name: str) -> str:
    # qfarm-panel.log.2026-01-01 -> 2026-01-01.log
    path = Path(default_name)
    date_key = path.name.rsplit(".", 1)[-1]
    return str(path.with_name(f"{date_key}.log"))


def build_file_log_handler(log_dir: Path | str, level: int | str = logging.INFO) -> logging.Handler:
    """按天切分的日志文件，切分后的旧文件命名为 YYYY-MM-DD.log。"""
    if isinstance(level, str):
        level = resolve_log_level(level)
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        directory / FILE_LOG_NAME,
        when="midnight",
        encoding="utf-8",
    )
    handler.namer = _dated_log_name
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=FILE_LOG_DATEFMT))
    return handler
