"""Centralised logging configuration.

Importing this module sets the default logging format/level. Other modules
should simply import `logging` and call `logging.getLogger(__name__)`.
Only entry points import it; the library never configures the root logger.
"""

import logging

from .config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

__all__ = ["logging"]
