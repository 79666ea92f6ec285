import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from stockbook.core.config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging() -> logging.Logger:
    """Attach console (and optional rotating file) handlers to the package logger.

    Safe to call more than once; handlers are only installed the first time.
    """
    logger = logging.getLogger("stockbook")
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=1_000_000,
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("unable to open log file %s: %s", log_path, exc)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
