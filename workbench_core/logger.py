"""
Process-wide loguru configuration.

Console output follows ``WORKBENCH_LOG_LEVEL`` (INFO when unset); the file
under ``LOG_DIR`` always records DEBUG and rotates at 10 MB, keeping five files.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

LOG_DIR = Path(
    os.environ.get(
        "WORKBENCH_LOG_DIR",
        str(Path.home() / ".local" / "share" / "Etcd Workbench" / "logs"),
    )
)
DEFAULT_LOG_PATH = LOG_DIR / "workbench.log"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message} | {extra}"

_configured = False


def _console_level() -> str:
    return os.environ.get("WORKBENCH_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def configure(log_path: Optional[Path] = None) -> None:
    """Install the console and file sinks; repeated calls keep the first setup."""
    global _configured
    if _configured:
        return

    target = Path(log_path) if log_path is not None else DEFAULT_LOG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    # pythonw has no stderr.
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=_console_level(), enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _configured = True
    _logger.debug("Logging to {}", target)


def get_logger():
    return _logger
