"""
Query Strings
-------------
URL query construction for list/search endpoints.

Absent filters are omitted entirely. Tag lists are joined with a literal
'+', which the API reads as a tag separator, so each value is encoded on
its own instead of handing the whole mapping to urlencode.
"""

from typing import Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from ..core.models import ResourceType

TagsArg = Union[str, Iterable[str], None]


def join_tags(tags: TagsArg) -> Optional[str]:
    """Encode a tag list as 'a+b+c'; None when there are no tags."""
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = tags.split()

    encoded = [quote(t.strip(), safe="") for t in tags if t and t.strip()]
    return "+".join(encoded) or None


def build_query(
    params: Sequence[Tuple[str, object]] = (),
    tags: TagsArg = None,
) -> str:
    """
    Build a query string (without leading '?') ending in format=json.

    `params` keeps its order; entries whose value is None are dropped.
    """
    parts: List[str] = []

    for name, value in params:
        if value is None:
            continue
        if isinstance(value, ResourceType):
            value = value.value
        parts.append(f"{name}={quote(str(value), safe='')}")

    joined = join_tags(tags)
    if joined is not None:
        parts.append(f"tags={joined}")

    parts.append("format=json")
    return "&".join(parts)


def posts_query(
    resource_type: Union[str, ResourceType, None] = None,
    user: Optional[str] = None,
    group: Optional[str] = None,
    tags: TagsArg = None,
    resource: Optional[str] = None,
    search: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> str:
    """Query string for GET /posts and GET /users/{user}/posts."""
    if resource_type is not None:
        resource_type = ResourceType.parse(resource_type)

    if start is not None and start < 0:
        raise ValueError(f"start must be >= 0, got {start}")
    if start is not None and end is not None and end < start:
        raise ValueError(f"end ({end}) must not be smaller than start ({start})")

    return build_query(
        [
            ("resourcetype", resource_type),
            ("user", user),
            ("group", group),
            ("resource", resource),
            ("search", search),
            ("start", start),
            ("end", end),
        ],
        tags=tags,
    )
