"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure the ``food_scanner`` logger with a single stream handler.

    ``level`` may be a standard level name (case-insensitive) or number.
    Calling again only adjusts the level.
    """
    logger = logging.getLogger("food_scanner")
    logger.setLevel(resolve_level(level))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    # httpx logs every request line at INFO, search terms included.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def resolve_level(level: str | int) -> int:
    """Translate a level name or number into a logging level."""
    if isinstance(level, int):
        return level
    value = logging.getLevelNamesMapping().get(level.strip().upper())
    if value is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return value
