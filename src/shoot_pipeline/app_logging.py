"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route pipeline loggers to one stream handler at the given level.

    Repeated calls only adjust the level, so app factories can run more than
    once in a process (tests, reloads) without duplicating output.
    """
    logger = logging.getLogger("shoot_pipeline")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
