"""Logging configuration helpers for the ARBA parcel lookup service."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("ARBA_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "arba_lookup.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _file_logging_enabled() -> bool:
    return os.getenv("ARBA_LOG_TO_FILE", "1").strip().lower() not in {"0", "false", "no", "off"}


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Return a logger writing to the console and, unless disabled, a rotating file.

    Handlers are attached once per logger name so repeated imports do not
    duplicate output.
    """
    effective_level = (level or DEFAULT_LEVEL).upper()

    logger = logging.getLogger(name)
    logger.setLevel(effective_level)
    logger.propagate = False

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(effective_level)
    logger.addHandler(console_handler)

    if _file_logging_enabled():
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(effective_level)
        logger.addHandler(file_handler)

    return logger
