"""
Service logging setup

Configures the standard library root logger once per process from
LoggingConfig. Modules keep using ``logging.getLogger(__name__)``.
"""

import logging
import sys
from typing import Optional

from core.config import get_settings

_configured = False


def setup_service_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure logging for a service and return its named logger.

    Args:
        service_name: Logger name, usually the service package name
        level: Overrides LOG_LEVEL when given

    Returns:
        The service logger
    """
    global _configured

    config = get_settings().logging
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    if not _configured:
        root = logging.getLogger()
        root.setLevel(log_level)
        formatter = logging.Formatter(config.log_format)

        if config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)

        if config.log_file:
            file_handler = logging.FileHandler(config.log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        # Quiet chatty client libraries
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("nats").setLevel(logging.WARNING)
        _configured = True

    service_logger = logging.getLogger(service_name)
    service_logger.setLevel(log_level)
    return service_logger


__all__ = ["setup_service_logger"]
