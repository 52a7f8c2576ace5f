"""
Logging for the JobFlow server: console output, an optional log file,
and quieter third-party loggers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(process)d - %(name)s:%(lineno)d - %(levelname)s - %(message)s"

# SDK loggers that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "anthropic", "openai")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Configure the root logger once for the process.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional log file path, its directory is created
        format_string: Console format override
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
    handlers = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    # Werkzeug's request lines stay visible; SDK chatter only in debug
    if numeric_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
