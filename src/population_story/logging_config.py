import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None, console: bool = True) -> logging.Logger:
    """Attach handlers to the package logger and return it.

    The terminal UI passes console=False because Textual owns stdout; its
    logs then go only to log_file, or nowhere without one.
    """
    logger = logging.getLogger("population_story")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    if not handlers:
        handlers.append(logging.NullHandler())
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to %s", ", ".join(type(h).__name__ for h in handlers))
    return logger
