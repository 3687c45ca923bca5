"""
Logger setup for notebooks and library code.

Library modules log through ``from loguru import logger`` directly; a notebook
calls ``setup_logger`` once at the top to get a clean console sink and,
optionally, a DEBUG-level file for the session.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name}:{function} | {message}"


def setup_logger(context_name: str, log_dir: Optional[Path] = None, level: str = "INFO") -> Optional[Path]:
    """
    Configure loguru for one analysis session.

    Args:
        context_name: Session identifier, used as the log file name (e.g. "blueprinty")
        log_dir: Directory for the DEBUG file sink; no file is written when omitted
        level: Minimum level for the console sink

    Returns:
        Path to the log file, or None when only the console sink is active
    """
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_dir is None:
        return None

    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.info(f"[{context_name}] logging to {log_file}")

    return log_file
