# core/logging_setup.py
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3

# Price fetches and hover timers run on worker threads
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s - %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(name)s - %(message)s"

# Third-party loggers: (level in debug mode, level otherwise)
NOISY_LOGGERS = {
    "urllib3": (logging.INFO, logging.WARNING),
    "uvicorn.access": (logging.INFO, logging.WARNING),
}


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> Path:
    """
    Route the service's logs to a rotating file and the console.

    The file lives next to the config (``~/.goldboard/app.log`` unless
    ``log_dir`` is given). Calling it again replaces the handlers, so uvicorn
    reloads do not duplicate lines.

    Returns the path of the log file.
    """
    log_dir = log_dir or Path.home() / ".goldboard"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    file_handler = RotatingFileHandler(
        log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        root_logger.addHandler(handler)

    for name, (debug_level, normal_level) in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(debug_level if debug else normal_level)

    root_logger.info(f"Logging to {log_file} at {logging.getLevelName(level)}")
    return log_file
