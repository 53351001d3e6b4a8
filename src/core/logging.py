import sys
import os
from typing import Optional
from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(debug_mode: bool = True, log_dir: Optional[str] = None):
    """
    Configures Loguru logger.

    Args:
        debug_mode: DEBUG level on the console when True, INFO otherwise
        log_dir: Directory for rotating log files (console only when None)
    """
    # Remove default handler
    logger.remove()

    # Console Handler
    level = "DEBUG" if debug_mode else "INFO"
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    # File Handler
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        logger.add(
            os.path.join(log_dir, "scriptgraph_{time}.log"),
            rotation="10 MB",
            retention="1 week",
            level="DEBUG",
        )

    logger.debug("Logging initialized.")
