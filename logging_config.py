"""
Logging setup for PrintKiosk.

Log lines carry the producing thread's name, which tells Flask request
threads apart from the per-session ``Waiting-<id>`` poller threads.
Wizard code logs through ``get_session_logger`` so a single kiosk
session can be followed with one grep.

    2025-12-03 10:15:30 [INFO    ] [MainThread] print_kiosk.app - Backends: gate=memory, relay=email, payment=upi
    2025-12-03 10:15:31 [INFO    ] [Waiting-a1b2c3d4] print_kiosk.session.a1b2c3d4 - Wizard step waiting -> upload
    2025-12-03 10:15:42 [WARNING ] [Thread-7] print_kiosk.session.a1b2c3d4 - RelayError in step payment: ...

Production additionally writes ``<log_dir>/print_kiosk.log`` and an
errors-only ``print_kiosk_error.log``, both rotated at 10 MB.
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


ROOT_LOGGER_NAME = "print_kiosk"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROTATE_MAX_BYTES = 10 * 1024 * 1024
ROTATE_BACKUP_COUNT = 5

# pypdf warns on every slightly malformed PDF a customer uploads
LIBRARY_LOG_LEVELS = {
    "pypdf": logging.ERROR,
}


class ThreadNameFilter(logging.Filter):
    """Stamp ``thread_name`` on every record. Never drops anything."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        return True


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter,
                      thread_filter: logging.Filter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=ROTATE_MAX_BYTES,
        backupCount=ROTATE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure the ``print_kiosk`` logger tree.

    Safe to call repeatedly: handlers from a previous call are replaced,
    which the test suite relies on since it builds many apps.

    Args:
        log_level: Minimum level for the console and the main log file
        log_dir: Where log files go (default: ./logs next to this file)
        enable_file_logging: Add the rotating main and error log files

    Returns:
        The configured ``print_kiosk`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadNameFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        log_dir = Path(log_dir) if log_dir else Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        main_log = log_dir / f"{ROOT_LOGGER_NAME}.log"
        logger.addHandler(_rotating_handler(main_log, log_level, formatter, thread_filter))
        logger.addHandler(_rotating_handler(
            log_dir / f"{ROOT_LOGGER_NAME}_error.log", logging.ERROR, formatter, thread_filter
        ))
        logger.info(f"File logging enabled: {main_log}")

    for library, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(library).setLevel(level)

    logger.debug(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Module logger under the ``print_kiosk`` namespace.

    ``get_logger("services.print_wizard")`` -> ``print_kiosk.services.print_wizard``
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_session_logger(session_id: str) -> logging.Logger:
    """Logger for one wizard session, named by the first 8 characters of its id."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.session.{session_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every log line it writes."""
    threading.current_thread().name = name
