import logging
import sys

from stockroom.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return the component logger `name`, writing to stdout as "[NAME] message".
    The handler is attached once, so repeated imports don't duplicate output.
    """
    log = logging.getLogger(f"stockroom.{name}")
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(message)s"))
        log.addHandler(h)
    return log
