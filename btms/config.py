"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class BtmsConfig(BaseSettings):
    """Banking transaction management system configuration"""

    model_config = SettingsConfigDict(
        env_prefix="BTMS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage configuration
    store_path: str = "account_records.txt"
    temp_path: str = "temp_records.txt"  # Staging file for rewrites

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Console configuration
    clear_screen: bool = True
    pause_after_action: bool = True


# Global configuration instance
config = BtmsConfig()


def get_config() -> BtmsConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BtmsConfig:
    """Reload configuration from environment"""
    global config
    config = BtmsConfig()
    return config
