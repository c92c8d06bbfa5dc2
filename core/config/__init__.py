#!/usr/bin/env python3
"""Modular configuration system for the ad engine

Configuration hierarchy:
- ad_config: Pricing rates, duration bounds, serving defaults
- infra_config: Infrastructure services (PostgreSQL, NATS)
- service_config: Collaborator services (notifications, GA4)
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .ad_config import AdEngineConfig, DEFAULT_AD_RATES, FALLBACK_RATE_TYPE
from .settings import AdEngineSettings
from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = AdEngineSettings.from_env()

def get_settings() -> AdEngineSettings:
    """Get global settings instance"""
    return settings

def reload_settings() -> AdEngineSettings:
    """Reload settings from environment"""
    global settings
    settings = AdEngineSettings.from_env()
    return settings

__all__ = [
    # Main config
    'AdEngineSettings',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'AdEngineConfig',
    'DEFAULT_AD_RATES',
    'FALLBACK_RATE_TYPE',
    'LoggingConfig',
    'InfraConfig',
    'ServiceConfig',
]
