# Core module - Data model and error classification
# Posts, credentials, and the network/status error convention

from .errors import (
    ErrorKind, BibSonomyError,
    BibSonomyClientError, PostValidationError, ConfigurationError,
)
from .models import Credentials, Post, ResourceType, resource_type_of

__all__ = [
    "ErrorKind", "BibSonomyError",
    "BibSonomyClientError", "PostValidationError", "ConfigurationError",
    "Credentials", "Post", "ResourceType", "resource_type_of",
]
