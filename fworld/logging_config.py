"""Logging configuration for FWorld runs.

Library modules only create ``logging.getLogger(__name__)`` loggers; hosts
(the experiment runner, the Flask app) call ``setup_logging`` once.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "fworld"


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """Configure the fworld logger hierarchy; optionally also log to log_dir/run.log."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "run.log", mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s", datefmt="%H:%M:%S")
        )
        logger.addHandler(file_handler)

    # brain and metrics share the same handlers
    for child in ("brain", "experiments"):
        child_logger = logging.getLogger(child)
        child_logger.handlers = list(logger.handlers)
        child_logger.setLevel(logging.DEBUG)

    logger.info("=== FWorld run started: %s ===", datetime.now().isoformat())
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["ROOT_LOGGER", "get_logger", "setup_logging"]
