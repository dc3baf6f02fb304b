"""Logging configuration for refbook.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

The log level can be configured via the REFBOOK_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR). The default is WARNING so that build output stays
readable; diagnostics are reported separately from log records.
"""

import logging
import os
import sys

PACKAGE_LOGGER = "refbook"


def configure_logging() -> None:
    """Configure logging for the refbook package.

    Call this once at application startup (cli.py does).
    Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    if root_logger.handlers:
        return

    level_name = os.environ.get("REFBOOK_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False


def set_quiet_mode(quiet: bool) -> None:
    """Raise the package log level to ERROR when quiet mode is on."""
    if not quiet:
        return
    root_logger = logging.getLogger(PACKAGE_LOGGER)
    root_logger.setLevel(logging.ERROR)
    for handler in root_logger.handlers:
        handler.setLevel(logging.ERROR)
