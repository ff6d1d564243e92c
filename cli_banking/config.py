"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class BankConfig(BaseSettings):
    """CLI banking session manager configuration"""

    # Persistence
    accounts_file: str = "accounts.csv"

    # Admin account bootstrap
    admin_id: str = "admin"
    admin_default_password: str = "admin"  # Only used when admin is missing
    reset_confirm_token: str = "Y"

    # Credential encryption
    cipher: str = "aesgcm"  # aesgcm or fernet

    # Display
    currency_symbol: str = "$"
    clear_screen: bool = True

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "text"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    class Config:
        env_prefix = "BANK_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BankConfig()


def get_config() -> BankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankConfig:
    """Reload configuration from environment"""
    global config
    config = BankConfig()
    return config
