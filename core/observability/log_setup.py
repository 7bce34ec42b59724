"""
Logging configuration for the service process.

One stream handler on the root logger; uvicorn's own loggers propagate
into it so access and application lines share a format.
"""
from __future__ import annotations
import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger at *level* (DEBUG, INFO, WARNING, ERROR)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = []

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # httpx logs every request at INFO; the adapters already do that with timings
    logging.getLogger("httpx").setLevel(logging.WARNING)
