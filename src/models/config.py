"""Configuration management for the storefront listing client."""

import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from src.models.data_models import SortKey


class StoreEndpointConfig(BaseModel):
    """Configuration for a single backing product store."""
    name: str = Field(description="Store identifier used in logs")
    url: str = Field(description="Base URL of the store's product API")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"URL must start with http:// or https://, got: {v}")
        return v.rstrip('/')


class StorefrontConfig(BaseModel):
    """Listing client configuration."""

    # Backing stores
    primary: StoreEndpointConfig = Field(
        default=StoreEndpointConfig(name="primary", url="http://localhost:5000/api/shop/products"),
        description="Authenticated primary product store"
    )
    fallback: StoreEndpointConfig = Field(
        default=StoreEndpointConfig(name="fallback", url="http://localhost:5000/api/shop/products"),
        description="Unauthenticated fallback product store"
    )

    # Timeouts, shared by both adapters
    connect_timeout: float = Field(default=3.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=8.0, description="HTTP read timeout in seconds")

    # Listing defaults
    page_size: int = Field(default=20, description="Records per listing page")
    default_sort: str = Field(default=SortKey.PRICE_ASC.value, description="Sort used when none is given")
    max_filter_values: int = Field(default=10, description="Values per facet the primary store accepts")

    # Acquisition behaviour
    skip_primary_when_anonymous: bool = Field(
        default=False,
        description="Go straight to the fallback store when no user is signed in"
    )

    # Identity used by the CLI's static auth provider
    user_id: Optional[str] = Field(default=None, description="Signed-in user id")
    user_email: Optional[str] = Field(default=None, description="Signed-in user email")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('connect_timeout', 'read_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError(f"timeout must be positive, got: {v}")
        return v

    @field_validator('page_size', 'max_filter_values')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"value must be positive, got: {v}")
        return v

    @field_validator('default_sort')
    @classmethod
    def validate_sort(cls, v: str) -> str:
        """Validate sort is a known wire value."""
        valid = [key.value for key in SortKey]
        if v not in valid:
            raise ValueError(f"default_sort must be one of {valid}, got: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level: {v}")
        return v

    @property
    def sort_key(self) -> SortKey:
        return SortKey(self.default_sort)

    @classmethod
    def env_overrides(cls) -> Dict:
        """Collect overrides from STOREFRONT_* environment variables."""
        overrides: Dict = {}

        url_mappings = {
            "STOREFRONT_PRIMARY_URL": "primary",
            "STOREFRONT_FALLBACK_URL": "fallback",
        }
        for env_var, field_name in url_mappings.items():
            if env_var in os.environ:
                overrides[field_name] = {"name": field_name, "url": os.environ[env_var]}

        env_mappings = {
            "STOREFRONT_CONNECT_TIMEOUT": ("connect_timeout", float),
            "STOREFRONT_READ_TIMEOUT": ("read_timeout", float),
            "STOREFRONT_PAGE_SIZE": ("page_size", int),
            "STOREFRONT_LOG_LEVEL": ("log_level", str),
            "STOREFRONT_USER_ID": ("user_id", str),
            "STOREFRONT_USER_EMAIL": ("user_email", str),
        }
        for env_var, (field_name, convert) in env_mappings.items():
            if env_var in os.environ:
                overrides[field_name] = convert(os.environ[env_var])

        return overrides


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[StorefrontConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> StorefrontConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML > defaults.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged StorefrontConfig instance

        Raises:
            pydantic.ValidationError: If configuration validation fails
        """
        config_dict: Dict = {}

        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        config_dict.update(StorefrontConfig.env_overrides())

        if cli_overrides:
            # Unset CLI flags arrive as None
            config_dict.update({k: v for k, v in cli_overrides.items() if v is not None})

        self._config = StorefrontConfig(**config_dict)
        return self._config

    @property
    def config(self) -> StorefrontConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
