#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Central logging configuration for the custody pool.

Every module obtains its logger through :func:`get_logger`, which configures
the root logger on first use from the environment:

    LOG_LEVEL   DEBUG / INFO / WARNING / ERROR / CRITICAL (default INFO)
    LOG_PATH    optional file that receives a copy of every record

Usage:
    from custody_pool.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("deposit accepted", extra={"holder": holder, "amount": amount})
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_raw_level = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_LOG_LEVEL = _raw_level if _raw_level in VALID_LOG_LEVELS else "INFO"

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_loggers: dict[str, logging.Logger] = {}
_configured = False


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[Path] = None,
    console: bool = True,
    format_string: str = DEFAULT_LOG_FORMAT,
) -> None:
    """Install console/file handlers on the root logger (once per process).

    Args:
        level: Log level name
        log_file: Optional path to a log file
        console: Whether to log to stdout
        format_string: Record format
    """
    global _configured

    if _configured:
        return

    root = logging.getLogger()
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    root.setLevel(log_level)

    formatter = logging.Formatter(format_string, datefmt=TIMESTAMP_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as exc:
            print(f"Warning: cannot open log file {log_file}: {exc}", file=sys.stderr)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a cached logger, configuring logging from the environment on first use."""
    if not _configured:
        log_path_str = os.getenv("LOG_PATH")
        configure_logging(log_file=Path(log_path_str) if log_path_str else None)

    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    _loggers[name] = logger
    return logger


def set_log_level(level: str) -> None:
    """Change the level of the root logger and all of its handlers."""
    name = str(level).upper()
    if name not in VALID_LOG_LEVELS:
        print(f"Warning: invalid log level '{level}'", file=sys.stderr)
        return
    log_level = getattr(logging, name)
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers:
        handler.setLevel(log_level)
