# Infrastructure module - Logging and configuration
# Rich console + JSON file logging, YAML config with env overrides

from .logging import (
    get_logger, configure_logging, RequestContext,
    get_request_id, generate_request_id
)
from .config import APIConfig, ConfigManager, load_config, DEFAULT_BASE_URL

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "RequestContext",
    "get_request_id",
    "generate_request_id",
    # Config
    "APIConfig",
    "ConfigManager",
    "load_config",
    "DEFAULT_BASE_URL",
]
