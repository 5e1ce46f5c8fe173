"""
Configuration Management for StarLookup

🔧 Lookup Settings:
This module provides configuration for the lookup layer and the store it
runs against, supporting different environments and env-var overrides.

Example:
    from starlookup.config import LookupSettings, Environment, set_settings

    settings = LookupSettings.for_environment(Environment.TESTING)
    settings.strict_cardinality = True
    set_settings(settings)
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .persistence.base import Store

_TRUE_VALUES = ("1", "true", "yes", "on")


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class StoreConfig:
    """Store backend configuration"""
    backend: str = "memory"
    url: str = "sqlite://"
    echo: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class LookupSettings:
    """
    Complete lookup configuration.

    fail_soft: store execution failures become "no results"
    strict_cardinality: single-result accessors raise on to-many relations
    log_store_failures: swallowed failures are logged at WARNING
    """
    environment: Environment = Environment.DEVELOPMENT
    fail_soft: bool = True
    strict_cardinality: bool = False
    log_store_failures: bool = True

    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> "LookupSettings":
        """Create settings for specific environment"""
        settings = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            settings.strict_cardinality = True
            settings.logging.level = "DEBUG"
            settings.store.echo = True

        elif environment == Environment.TESTING:
            settings.strict_cardinality = True
            settings.store.url = "sqlite://"
            settings.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            settings.strict_cardinality = False
            settings.logging.level = "INFO"

        return settings

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "LookupSettings":
        """Create settings from dictionary"""
        if "environment" in config_dict:
            settings = cls.for_environment(Environment(config_dict["environment"]))
        else:
            settings = cls()

        for key in ("fail_soft", "strict_cardinality", "log_store_failures"):
            if key in config_dict:
                setattr(settings, key, bool(config_dict[key]))

        for key, value in config_dict.get("store", {}).items():
            if hasattr(settings.store, key):
                setattr(settings.store, key, value)

        for key, value in config_dict.get("logging", {}).items():
            if hasattr(settings.logging, key):
                setattr(settings.logging, key, value)

        return settings

    @classmethod
    def from_env(cls) -> "LookupSettings":
        """Create settings from STARLOOKUP_* environment variables"""
        env_name = os.getenv("STARLOOKUP_ENV")
        settings = cls.for_environment(Environment(env_name)) if env_name else cls()

        if os.getenv("STARLOOKUP_FAIL_SOFT"):
            settings.fail_soft = os.getenv("STARLOOKUP_FAIL_SOFT").lower() in _TRUE_VALUES

        if os.getenv("STARLOOKUP_STRICT_CARDINALITY"):
            settings.strict_cardinality = os.getenv("STARLOOKUP_STRICT_CARDINALITY").lower() in _TRUE_VALUES

        if os.getenv("STARLOOKUP_STORE"):
            settings.store.backend = os.getenv("STARLOOKUP_STORE")

        if os.getenv("STARLOOKUP_DATABASE_URL"):
            settings.store.url = os.getenv("STARLOOKUP_DATABASE_URL")

        if os.getenv("STARLOOKUP_LOG_LEVEL"):
            settings.logging.level = os.getenv("STARLOOKUP_LOG_LEVEL").upper()

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary"""
        return {
            "environment": self.environment.value,
            "fail_soft": self.fail_soft,
            "strict_cardinality": self.strict_cardinality,
            "log_store_failures": self.log_store_failures,
            "store": {
                "backend": self.store.backend,
                "url": self.store.url,
                "echo": self.store.echo
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format
            }
        }


def configure_logging(settings: Optional[LookupSettings] = None) -> None:
    """Apply the logging section of the settings to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format=settings.logging.format
    )


def create_store(settings: Optional[LookupSettings] = None) -> "Store":
    """Build the store selected by the settings."""
    settings = settings or get_settings()
    backend = settings.store.backend

    if backend == "memory":
        from .persistence.memory import MemoryStore
        return MemoryStore()
    if backend == "sql":
        from .persistence.sql import SQLStore
        return SQLStore(url=settings.store.url, echo=settings.store.echo)

    raise ValueError(f"Unknown store backend: {backend}")


# Global settings management
_current_settings: Optional[LookupSettings] = None


def set_settings(settings: LookupSettings) -> None:
    """Set the global settings"""
    global _current_settings
    _current_settings = settings


def get_settings() -> LookupSettings:
    """Get the current global settings, loading them from the environment on first use"""
    global _current_settings
    if _current_settings is None:
        _current_settings = LookupSettings.from_env()
    return _current_settings


def reset_settings() -> None:
    """Forget the global settings"""
    global _current_settings
    _current_settings = None


__all__ = [
    "Environment", "StoreConfig", "LoggingConfig", "LookupSettings",
    "configure_logging", "create_store",
    "get_settings", "set_settings", "reset_settings"
]
