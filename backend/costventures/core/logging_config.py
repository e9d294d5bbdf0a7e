"""
Logging setup for the service.
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level: str = "INFO", log_path: Optional[str] = None) -> logging.Logger:
    """Configure the ``costventures`` logger hierarchy.

    Logs go to stderr and, when `log_path` is given, to a rotating file.
    """
    logger = logging.getLogger('costventures')
    logger.setLevel(level.upper())

    # avoid adding multiple handlers if called multiple times
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if log_path:
            log_dir = os.path.dirname(os.path.abspath(log_path))
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
