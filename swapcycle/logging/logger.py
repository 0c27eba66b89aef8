# swapcycle/logging/logger.py
from __future__ import annotations

import logging
import sys
import time
from typing import Optional

from swapcycle.configuration.config import settings

# ANSI colors
_COLORS = {
    "RESET": "\033[0m",
    "DIM": "\033[2m",
    "BOLD": "\033[1m",
    "RED": "\033[31m",
    "GREEN": "\033[32m",
    "YELLOW": "\033[33m",
    "BLUE": "\033[34m",
    "MAGENTA": "\033[35m",
    "CYAN": "\033[36m",
}

_LEVEL_EMOJI = {
    "DEBUG": "🔍",
    "INFO": "ℹ️",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🛑",
}

_LEVEL_COLOR = {
    "DEBUG": _COLORS["CYAN"],
    "INFO": _COLORS["GREEN"],
    "WARNING": _COLORS["YELLOW"],
    "ERROR": _COLORS["RED"],
    "CRITICAL": _COLORS["MAGENTA"],
}

APP_NAMESPACE = "swapcycle"


def _level_from_str(value: str) -> int:
    level = logging.getLevelName((value or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _canonical_name(name: str) -> str:
    """Map module logger names to the canonical 'swapcycle.*' namespace."""
    if name == APP_NAMESPACE or name.startswith(APP_NAMESPACE + "."):
        return name
    if name == "__main__":
        return APP_NAMESPACE + ".main"
    return f"{APP_NAMESPACE}.{name}"


class ColorFormatter(logging.Formatter):
    """
    Readable, colored formatter with emoji per level.
    Example:
      2026-10-18 09:12:44.031 ℹ️ INFO     swapcycle.core.jobs.cycle_job - [CYCLE] Swap #1 of 4: PHRS -> USDT
    """

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color
        self.converter = time.localtime

    def format(self, record: logging.LogRecord) -> str:
        ct = self.converter(record.created)
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", ct) + f".{int(record.msecs):03d}"

        level_name = record.levelname.upper()
        emoji = _LEVEL_EMOJI.get(level_name, "")
        message = record.getMessage()
        name = record.name or ""

        if self.use_color:
            color = _LEVEL_COLOR.get(level_name, "")
            reset = _COLORS["RESET"]
            dim = _COLORS["DIM"]
            line = f"{dim}{timestamp}{reset} {color}{emoji} {level_name:<8}{reset} {name} {dim}- {reset}{message}"
        else:
            line = f"{timestamp} {emoji} {level_name:<8} {name} - {message}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _install_console_handler(root: logging.Logger) -> None:
    """Install a single console handler that does not filter by level (NOTSET)."""
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "_swapcycle_handler", False):
            h.setLevel(logging.NOTSET)
            return

    use_color = sys.stderr.isatty() and not settings.NO_COLOR
    handler = logging.StreamHandler(stream=sys.stderr)
    handler._swapcycle_handler = True
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(ColorFormatter(use_color=use_color))
    root.addHandler(handler)


def init_logging() -> None:
    """
    Initialize logging with:
    - local timestamps with milliseconds
    - emoji per level
    - quieter third-party loggers (httpx, web3, ...)
    """
    root = logging.getLogger()

    root.setLevel(_level_from_str(settings.LOG_LEVEL))
    _install_console_handler(root)

    # All application loggers under 'swapcycle' use LOG_LEVEL_SWAPCYCLE
    logging.getLogger(APP_NAMESPACE).setLevel(_level_from_str(settings.LOG_LEVEL_SWAPCYCLE))

    logging.getLogger("httpx").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_HTTPX))
    logging.getLogger("httpcore").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_HTTPCORE))
    logging.getLogger("web3").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_WEB3))
    logging.getLogger("asyncio").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_ASYNCIO))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger in the canonical 'swapcycle.*' namespace."""
    base = name or __name__
    logger = logging.getLogger(_canonical_name(base))
    logger.propagate = True
    return logger
