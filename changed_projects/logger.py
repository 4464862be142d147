"""Logging configuration for the application."""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

def setup_logger(debug_mode: bool = False, log_dir: Optional[Path] = None, stream=None):
    """
    Configure the logger for the application.

    Args:
        debug_mode: If True, sets logging level to DEBUG.
        log_dir: Directory for a debug log file. Only used in debug mode.
        stream: Console stream, stdout unless machine-readable output owns it.
    """
    logger = logging.getLogger('cpd')
    logger.handlers.clear()  # Prevent duplicate handlers across runs
    logger.propagate = False

    log_level = logging.DEBUG if debug_mode else logging.INFO
    logger.setLevel(log_level)

    # Bare messages on the console
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if debug_mode and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"changed_projects_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(module)s - %(message)s')
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

        logger.debug(f"Debug log file: {log_file}")

    return logger
