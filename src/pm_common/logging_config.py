"""Process-wide logging setup, called once from the FastAPI entry point."""

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single console handler.

    Safe to call more than once: existing handlers are replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Keep SQL echo out of INFO logs unless explicitly requested
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
