import logging
import sys
from typing import Union


def setup_logging(level: Union[str, int] = "INFO") -> None:
    """
    Configure console logging for the server process.

    Args:
        level: Logging level name or number (e.g. "DEBUG", "INFO")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('[%(asctime)s] [%(levelname)s] %(message)s'))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; the pipeline already logs each cycle
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    logging.info(f"Logging initialized: level={logging.getLevelName(level)}")
