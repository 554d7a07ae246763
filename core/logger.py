"""
Logging for the extraction, repair and audit tools
==================================================

Every module under ``core`` logs through the ``core`` logger namespace,
which writes to stdout. The extractor logs decode fallbacks as warnings,
the record store logs HTTP failures as errors, and the repair and audit
runs log their counts at INFO.

Usage:
    from core.logger import get_logger

    logger = get_logger(__name__)
    logger.warning("Failed to decode base64 content: %s", e)

``app.cli --verbose`` calls ``set_level(logging.DEBUG)``, which also shows
the per-page fetch lines from ``core.store``.
"""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = logging.INFO
ROOT_LOGGER_NAME = "core"

_root_configured = False


def _configure_root_logger() -> None:
    """Attach the stdout handler to the ``core`` logger, once."""
    global _root_configured
    if _root_configured:
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(DEFAULT_LEVEL)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(DEFAULT_LEVEL)
    root_logger.addHandler(console_handler)
    root_logger.propagate = False

    _root_configured = True


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Return the logger for *name*, configuring the ``core`` namespace on first use.

    Example:
        logger = get_logger(__name__)          # in core/pipeline.py
        logger.info("run_repair: %d email messages", len(records))
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level: int, logger_name: Optional[str] = None) -> None:
    """
    Change the level of one module's logger, or of the whole ``core`` namespace.

    Example:
        set_level(logging.DEBUG)                   # what --verbose does
        set_level(logging.WARNING, "core.store")   # quieter store during a repair run
    """
    logger = logging.getLogger(logger_name or ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # The stdout handler filters too; keep it in step with the namespace level.
    if not logger_name:
        for handler in logger.handlers:
            handler.setLevel(level)
