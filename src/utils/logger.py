import logging
import os
from typing import List, Optional

from rich.logging import RichHandler

DEFAULT_LOGGER = "storefront"
MIN_NAME_WIDTH = 14

CONSOLE_FORMAT = "[%(name)s]  %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class AlignedNameFormatter(logging.Formatter):
    """
    Centers the logger name in a column as wide as the longest name seen so
    far, so messages from core/, api/ and views/ line up.

    Formats a copy of the record; the original goes unchanged to any other
    handler.
    """

    def __init__(self, fmt=None, datefmt=None, min_width: int = MIN_NAME_WIDTH):
        super().__init__(fmt, datefmt)
        self.width = min_width

    def format(self, record: logging.LogRecord) -> str:
        self.width = max(self.width, len(record.name))
        aligned = logging.makeLogRecord(record.__dict__)
        aligned.name = record.name.center(self.width)
        return super().format(aligned)


def resolve_level() -> int:
    """DEBUG when DEBUG is set, else STOREFRONT_LOG_LEVEL, else INFO."""
    if os.getenv("DEBUG"):
        return logging.DEBUG
    name = os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper()
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def _console_handler() -> logging.Handler:
    handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )
    handler.setFormatter(AlignedNameFormatter(CONSOLE_FORMAT))
    return handler


def _file_handler(path: str) -> logging.Handler:
    # the TUI owns the terminal, a plain file is the readable record of a session
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def build_handlers(log_file: Optional[str] = None) -> List[logging.Handler]:
    handlers = [_console_handler()]
    if log_file:
        handlers.append(_file_handler(log_file))
    return handlers


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger with a rich console handler and, when STOREFRONT_LOG_FILE is set,
    a plain file handler. Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name or DEFAULT_LOGGER)
    level = resolve_level()
    logger.setLevel(level)

    if not logger.handlers:
        for handler in build_handlers(os.getenv("STOREFRONT_LOG_FILE")):
            handler.setLevel(level)
            logger.addHandler(handler)
        logger.propagate = False
        logger.debug(f"Logger '{logger.name}' ready with {len(logger.handlers)} handler(s)")

    return logger
