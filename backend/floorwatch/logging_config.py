from __future__ import annotations

import sys

from loguru import logger


def configure_logging(level: str = "INFO", serialize: bool = False) -> None:
    """Route all floorwatch logs through a single stderr sink.

    ``serialize=True`` emits one JSON object per line for hosted deployments;
    otherwise a human-readable format is used.
    """
    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True, backtrace=False, diagnose=False)
        return
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )
