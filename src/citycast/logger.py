# logging setup for the console front-end; library modules only call logging.getLogger(__name__)

from __future__ import annotations
import logging
from typing import Optional, TextIO


def setup_logger(
    level: str = "INFO",
    name: str = "citycast",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # avoid duplicate handlers when main() runs more than once (tests)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
