"""Logging utilities for ifiltercmd."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

logger = logging.getLogger("ifiltercmd")

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(name)s: %(levelname)s: %(message)s"


def configure_logging(
    *,
    level: int = logging.WARNING,
    handler: Optional[logging.Handler] = None,
    log_file: str = "ifiltercmd.log",
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
    target_logger: Optional[logging.Logger] = None,
    replace_handlers: bool = True,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach ``handler`` to ``target_logger`` (the ``ifiltercmd`` logger by default).

    Without a handler, a ``RotatingFileHandler`` writing ``log_file`` is created,
    rolling over at ``max_bytes`` and keeping ``backup_count`` old files. Pass
    ``replace_handlers=False`` to add a second destination, as ``-l`` does next
    to the console handler. Propagation is switched off so that records are
    not printed twice.
    """

    configured_logger = target_logger or logger

    if handler is None:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )

    formatter = logging.Formatter(fmt)
    handler.setFormatter(formatter)

    if replace_handlers:
        configured_logger.handlers.clear()

    configured_logger.addHandler(handler)
    configured_logger.setLevel(level)
    configured_logger.propagate = False
    return configured_logger


__all__ = ["CONSOLE_FORMAT", "DEFAULT_FORMAT", "logger", "configure_logging"]
