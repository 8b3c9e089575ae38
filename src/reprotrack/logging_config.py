from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "reprotrack"
_HANDLER_NAME = "reprotrack-stream"


def configure_logging(verbose: bool = False, *, stream: TextIO | None = None) -> logging.Logger:
    """Send the package's log records to ``stream`` (stderr by default).

    Only the ``reprotrack`` logger is touched; calling this again replaces the
    handler it installed earlier instead of adding a second one.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
