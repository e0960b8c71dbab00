"""
Configuration Management for StarCatalog Applications

Dataclass configuration for the transport, the catalog and logging, with
environment presets and loaders for dictionaries, JSON files and
environment variables.
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields
from enum import Enum
import json
import os
from pathlib import Path


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class TransportConfig:
    """Remote catalog transport configuration"""
    base_url: str = "https://www.omdbapi.com/"
    api_key: Optional[str] = None
    timeout: float = 10.0
    listing_param: str = "s"
    detail_param: str = "i"
    listing_key: str = "Search"
    extra_detail_params: Dict[str, str] = field(default_factory=lambda: {
        "plot": "full",
        "tomatoes": "true",
    })


@dataclass
class CatalogConfig:
    """Entity cache and routing configuration"""
    id_attribute: str = "imdbID"
    route_prefix: str = "search"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    transport: TransportConfig = field(default_factory=TransportConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.logging.level = "WARNING"
            config.transport.timeout = 2.0

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary, ignoring unknown keys"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("transport", "catalog", "logging"):
            target = getattr(config, section)
            known = {f.name for f in fields(target)}
            for key, value in config_dict.get(section, {}).items():
                if key in known:
                    setattr(target, key, value)

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix != '.json':
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        with open(config_path, encoding="utf-8") as f:
            config_dict = json.load(f)

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('STARCATALOG_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('STARCATALOG_DEBUG'):
            config.debug = os.getenv('STARCATALOG_DEBUG').lower() == 'true'

        if os.getenv('STARCATALOG_API_KEY'):
            config.transport.api_key = os.getenv('STARCATALOG_API_KEY')

        if os.getenv('STARCATALOG_BASE_URL'):
            config.transport.base_url = os.getenv('STARCATALOG_BASE_URL')

        if os.getenv('STARCATALOG_TIMEOUT'):
            config.transport.timeout = float(os.getenv('STARCATALOG_TIMEOUT'))

        if os.getenv('STARCATALOG_LOG_LEVEL'):
            config.logging.level = os.getenv('STARCATALOG_LOG_LEVEL').upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "transport": {
                "base_url": self.transport.base_url,
                "api_key": self.transport.api_key,
                "timeout": self.transport.timeout,
                "listing_param": self.transport.listing_param,
                "detail_param": self.transport.detail_param,
                "listing_key": self.transport.listing_key,
                "extra_detail_params": dict(self.transport.extra_detail_params),
            },
            "catalog": {
                "id_attribute": self.catalog.id_attribute,
                "route_prefix": self.catalog.route_prefix,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
            },
        }


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: ApplicationConfig):
    """Set the global configuration"""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        _current_config = ApplicationConfig.from_environment()

    return _current_config


__all__ = [
    "ApplicationConfig", "Environment", "TransportConfig", "CatalogConfig",
    "LoggingConfig", "set_config", "get_config",
]
