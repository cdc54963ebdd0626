"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class EngineConfig(BaseSettings):
    """Payments engine configuration"""

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Input handling
    skip_malformed_rows: bool = True  # False aborts on the first bad CSV row

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    class Config:
        env_prefix = "PAYMENTS_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = EngineConfig()


def get_config() -> EngineConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> EngineConfig:
    """Reload configuration from environment"""
    global config
    config = EngineConfig()
    return config
