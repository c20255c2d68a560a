# API module - BibSonomy REST integration
# One request primitive, one error convention, one method per endpoint

from .client import APIClient, APIResponse, APIStatus
from .bibsonomy import BibSonomy, create_client, client_from_config
from .query import build_query, join_tags, posts_query

__all__ = [
    "APIClient", "APIResponse", "APIStatus",
    "BibSonomy", "create_client", "client_from_config",
    "build_query", "join_tags", "posts_query",
]
