import logging
import sys
from typing import Optional
from ..config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return the named logger with a stdout handler at the configured level."""
    logger = logging.getLogger(name)

    if level is None:
        level = settings.log_level

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    # One handler per logger, even when modules are re-imported
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
