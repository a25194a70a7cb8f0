from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LEVEL_ENV = "RECIPE_LOG_LEVEL"

_configured = False


def _level() -> int:
    return getattr(logging, os.getenv(LEVEL_ENV, "INFO").upper(), logging.INFO)


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_level(), format=FORMAT)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger("recipe_runner").setLevel(_level())
    _configured = True


def _has_file_handler(logger: logging.Logger, log_file: Path) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    """Logger under the shared format; with log_file, also write to that file.

    Each distinct file is attached once per logger, so repeated runs that
    name the same --log-file do not duplicate lines.
    """
    _ensure_base_logger()
    logger = logging.getLogger(name)
    if log_file is None or _has_file_handler(logger, log_file):
        return logger
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter(FORMAT))
    logger.addHandler(handler)
    return logger
