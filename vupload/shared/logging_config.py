"""Logging setup for the vupload client.

Part uploads run on ``vupload-part-N`` worker threads, so the thread name is
part of every record.
"""

import logging
from typing import Optional

from vupload.shared.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(threadName)-14s | %(name)s | %(message)s"

# HTTP plumbing logs every connection at DEBUG, once per part.
_QUIET_LOGGERS = ("urllib3", "requests")


def configure_logging(component: str = "vupload", debug: Optional[bool] = None) -> logging.Logger:
    """Configure root logging for a vupload entry point.

    Args:
        component: Logger name to return (e.g., 'vupload.client').
        debug: Overrides settings.debug when given.

    Returns:
        The component's logger.
    """
    verbose = settings.debug if debug is None else debug
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(component)
    logger.debug("Logging configured | debug=%s", verbose)
    return logger
