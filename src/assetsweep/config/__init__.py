"""Application configuration helpers."""

from __future__ import annotations

from .cloudinary import CloudinaryConfig, default_cloudinary_resilience, get_cloudinary_config
from .env import env_bool, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import LOG_LEVEL_ENV, configure_logging, resolve_log_level
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sweep import (
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_ROOT_FOLDER,
    MAX_CONCURRENCY,
    MAX_PAGE_SIZE,
    SweepConfig,
    get_sweep_config,
)

__all__ = [
    "DEFAULT_CONCURRENCY",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_ROOT_FOLDER",
    "LOG_LEVEL_ENV",
    "MAX_CONCURRENCY",
    "MAX_PAGE_SIZE",
    "CloudinaryConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SweepConfig",
    "configure_logging",
    "default_cloudinary_resilience",
    "env_bool",
    "env_int",
    "get_cloudinary_config",
    "get_database_config",
    "get_storage_config",
    "get_sweep_config",
    "optional_env_var",
    "require_env_vars",
    "resolve_log_level",
]
