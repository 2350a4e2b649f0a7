import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from app import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Log to console, and to a rotating file when LOG_FILE is set."""
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = [logging.StreamHandler()]
    log_file = log_file or config.LOG_FILE
    if log_file:
        # 5MB per file, keep 3 backups
        handlers.append(RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level or config.LOG_LEVEL, handlers=handlers, force=True)
    return logging.getLogger("app")
