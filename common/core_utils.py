#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging for a setup run: one formatter that tags each record with a level
symbol, shared by a stdout handler and the per-run log file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from setup import config
from setup.config_models import SYMBOLS_DEFAULT

module_logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_SYMBOL_KEYS = {
    logging.DEBUG: ("debug", "🐛"),
    logging.INFO: ("info", "ℹ️"),
    logging.WARNING: ("warning", "⚠️"),
    logging.ERROR: ("error", "❌"),
    logging.CRITICAL: ("critical", "🔥"),
}


class SymbolFormatter(logging.Formatter):
    """Adds ``%(symbol)s`` to every record, picked by log level."""

    def __init__(self, fmt=None, datefmt=None, symbols=None):
        super().__init__(fmt, datefmt)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        key, fallback = _LEVEL_SYMBOL_KEYS.get(record.levelno, ("", ""))
        record.symbol = self.symbols.get(key, fallback) if key else ""
        return super().format(record)


def build_log_file_path(
    log_dir: Optional[Path] = None, now: Optional[datetime] = None
) -> Path:
    """
    Path of the log file for this run: ``<log_dir>/<program>_<YYYYmmdd_HHMMSS>.log``.
    """
    directory = log_dir if log_dir is not None else config.LOG_DIR
    timestamp = (now or datetime.now()).strftime(config.LOG_TIMESTAMP_FORMAT)
    return Path(directory) / f"{config.PROGRAM_NAME}_{timestamp}.log"


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    symbols: Optional[Dict[str, str]] = None,
) -> None:
    """
    Replace the root logger's handlers with a console handler, a file
    handler, or both.

    An unwritable log file is reported on stderr and the run continues with
    console logging only.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        log_file_path = Path(log_file)
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.FileHandler(log_file_path, mode="a", encoding="utf-8")
            )
        except OSError as e:
            print(
                f"Warning: Could not open log file {log_file}: {e}",
                file=sys.stderr,
            )

    if log_to_console or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    formatter = SymbolFormatter(
        fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, symbols=symbols
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    module_logger.debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. Log file: {log_file or 'none'}"
    )
