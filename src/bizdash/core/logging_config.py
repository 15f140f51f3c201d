import logging
import sys
from typing import Optional

from .config import LOG_LEVEL, LOG_NAMESPACES


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True  # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def configure_logging(
    level: Optional[str] = None,
    allowed_namespaces: Optional[list[str]] = None,
) -> logging.Logger:
    """Attach a single stdout handler to the ``bizdash`` logger.

    Modules log through ``logging.getLogger(__name__)`` so their loggers
    ("bizdash.features.dashboard.service", ...) inherit from this one.
    Calling it twice replaces the handler instead of stacking another.
    """
    app_logger = logging.getLogger("bizdash")
    app_logger.setLevel(level or LOG_LEVEL)

    for handler in list(app_logger.handlers):
        if getattr(handler, "_bizdash_handler", False):
            app_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler._bizdash_handler = True

    namespaces = allowed_namespaces if allowed_namespaces is not None else LOG_NAMESPACES
    if namespaces:
        console_handler.addFilter(NamespaceFilter(namespaces))

    app_logger.addHandler(console_handler)

    # Uncomment to print the SQL Tortoise sends:
    # logging.getLogger("tortoise.db_client").setLevel(logging.DEBUG)
    return app_logger
