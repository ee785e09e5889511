"""Shared logging utilities.

Usage:

  from common.logging_utils import get_logger
  logger = get_logger(__name__)
  logger.info("hello")

The first call configures logging for the whole process: console output on
stdout plus, unless `RISKGATE_LOG_FILE=0`, a rotating file `riskgate.log` under
`RISKGATE_LOG_DIR` (defaults to `<repo>/logs`). Containers usually only want
stdout, hence the switch. Subsequent calls will not add duplicate handlers.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final


_CONFIG_LOCK: Final[threading.Lock] = threading.Lock()
_CONFIGURED: bool = False

LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    # .../src/common/logging_utils.py -> repo root is 2 levels up.
    return here.parents[2]


def parse_level(level: str | int | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level

    text = level.strip()
    if not text:
        return logging.INFO
    if text.isdigit():
        return int(text)

    return getattr(logging, text.upper(), logging.INFO)


def _file_logging_enabled() -> bool:
    return os.getenv("RISKGATE_LOG_FILE", "1").strip().lower() not in {"0", "false", "no", "off"}


def _log_dir() -> Path:
    override = os.getenv("RISKGATE_LOG_DIR", "").strip()
    return Path(override) if override else _project_root() / "logs"


def _configure_once() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    with _CONFIG_LOCK:
        if _CONFIGURED:
            return

        level = parse_level(os.getenv("RISKGATE_LOG_LEVEL", "INFO"))
        root = logging.getLogger()
        root.setLevel(level)
        fmt = logging.Formatter(LOG_FORMAT)
        existing = root.handlers

        has_console = any(
            isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
            and getattr(h, "stream", None) is sys.stdout
            for h in existing
        )
        if not has_console:
            console = logging.StreamHandler(stream=sys.stdout)
            console.setLevel(level)
            console.setFormatter(fmt)
            root.addHandler(console)

        if _file_logging_enabled():
            logs_dir = _log_dir()
            logs_dir.mkdir(parents=True, exist_ok=True)
            logfile = str(logs_dir / "riskgate.log")

            has_same_rotating_file = any(
                isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", None) == logfile
                for h in existing
            )
            if not has_same_rotating_file:
                file_handler = RotatingFileHandler(
                    logfile,
                    maxBytes=5 * 1024 * 1024,
                    backupCount=5,
                    encoding="utf-8",
                    delay=True,
                )
                file_handler.setLevel(level)
                file_handler.setFormatter(fmt)
                root.addHandler(file_handler)

        _CONFIGURED = True


def set_level(level: str | int | None) -> None:
    """Change the level of the root logger and the handlers we installed."""

    _configure_once()
    resolved = parse_level(level)
    root = logging.getLogger()
    root.setLevel(resolved)
    for handler in root.handlers:
        handler.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    """Return a logger configured for RiskGate."""

    _configure_once()
    return logging.getLogger(name)
