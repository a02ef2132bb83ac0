"""Logging setup shared by the CLI and the bot."""

import logging


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the root handler and return the package logger.

    Parameters
    ----------
    level : int, default ``logging.INFO``
        Threshold for emitted records.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("discord_roster_importer")
