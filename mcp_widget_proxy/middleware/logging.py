"""
Logging setup for the MCP widget proxy
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request chatter from the outbound HTTP client
QUIET_LOGGERS = ("httpx", "httpcore")


def resolve_level(log_level: str) -> int:
    """Map a level name to its logging constant, INFO for unknown names"""
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: Optional[str] = None, service_name: str = "MCP Widget Proxy") -> None:
    """
    Configure root logging for the proxy.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR), LOG_LEVEL env if omitted
        service_name: Name reported once logging is configured
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    root = logging.getLogger()
    root.setLevel(resolve_level(log_level))

    # Keep any handler already installed (uvicorn, pytest)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if resolve_level(log_level) == logging.INFO and log_level.upper() != "INFO":
        root.warning(f"Unknown log level {log_level!r}, using INFO")

    root.info(f"{service_name} logging configured: level={logging.getLevelName(root.level)}")
