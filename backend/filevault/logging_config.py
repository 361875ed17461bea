"""Logging configuration."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger. Safe to call twice."""
    global _handler
    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
