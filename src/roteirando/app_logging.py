"""Logging configuration helpers."""

import logging

LOGGER_NAME = "roteirando"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(environment: str = "production") -> None:
    """Attach one stream handler to the console logger.

    Local environments log at DEBUG so storage round-trips are visible;
    everything else logs at INFO. Calling this again only adjusts the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if environment == "local" else logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
