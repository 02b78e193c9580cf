from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
PACKAGE_LOGGER = "nhs_analytics"


def configure_logging(level: str | int = "INFO", *, capture_warnings: bool = True) -> logging.Logger:
    """Install the root handler and set the package logger's level.

    With ``capture_warnings`` the per-load ``MalformedRowWarning`` is emitted
    through the ``py.warnings`` logger instead of being printed raw.
    """
    resolved = level.upper() if isinstance(level, str) else level
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.captureWarnings(capture_warnings)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)
    return logger
