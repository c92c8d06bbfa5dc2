#!/usr/bin/env python3
"""
Core Module for the Ad Engine

Shared infrastructure used by the ad service.

COMPONENTS:
    - config/: Environment-driven dataclass configuration
    - logger.py: Process-wide logging setup
    - nats_client.py: NATS JetStream event bus

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("ad_service")
"""

__version__ = "2.0.0"
