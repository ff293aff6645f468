"""
Logging setup for Research Sentinel.

Every module logs through ``logging.getLogger(__name__)``; this only wires
the root handler once per process.
"""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level.upper())

    if not _configured:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        _configured = True
