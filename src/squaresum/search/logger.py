"""Logging configuration for square-sum searches."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Union

__all__ = ["setup_logger"]

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
        log_dir: Union[str, Path],
        *,
        level: int = logging.INFO,
        filename_prefix: str = "squaresum",
        force: bool = False,
) -> Path:
    """
    Send root logging to a fresh timestamped file under log_dir.

    A file path is accepted too; its parent directory is used. Worker
    processes find this file through the root handler and append to it.

    Args:
        log_dir: Directory for the log file (created if missing)
        level: Level for the root logger and the file handler
        filename_prefix: Prefix for the log filename
        force: Drop existing root handlers first

    Returns:
        Path to the new log file
    """
    log_dir = Path(log_dir).expanduser().resolve()
    if log_dir.is_file():
        log_dir = log_dir.parent
    log_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = log_dir / f"{filename_prefix}_{stamp}.log"

    root = logging.getLogger()
    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(file_handler)

    root.info("Logging initialized: %s", log_path)
    return log_path
