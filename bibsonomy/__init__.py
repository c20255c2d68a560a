"""
BibSonomy API client.

    from bibsonomy import create_client

    bib = create_client("alice", api_key="...")
    response = await bib.list_posts("bibtex", tags=["folksonomy", "tagging"])
"""

__version__ = "0.1.0"

from .api import APIResponse, APIStatus, BibSonomy, create_client, client_from_config
from .core import (
    BibSonomyError, ErrorKind, Post, ResourceType, Credentials,
    PostValidationError, ConfigurationError,
)
from .infra import APIConfig, configure_logging

__all__ = [
    "APIResponse", "APIStatus", "BibSonomy", "create_client", "client_from_config",
    "BibSonomyError", "ErrorKind", "Post", "ResourceType", "Credentials",
    "PostValidationError", "ConfigurationError",
    "APIConfig", "configure_logging",
]
