"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .google_maps import GoogleMapsConfig, get_google_maps_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .imports import ImportDefaults, get_import_defaults
from .llm import LlmConfig, get_llm_config
from .logging import configure_logging
from .publication import PublicationConfig, get_publication_config
from .referral211 import Referral211Config, get_referral211_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .website import WebsiteConfig, get_website_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "GoogleMapsConfig",
    "ImportDefaults",
    "LlmConfig",
    "MissingConfigurationError",
    "PublicationConfig",
    "RateLimit",
    "Referral211Config",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "WebsiteConfig",
    "configure_logging",
    "get_database_config",
    "get_google_maps_config",
    "get_import_defaults",
    "get_llm_config",
    "get_publication_config",
    "get_referral211_config",
    "get_storage_config",
    "get_website_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
