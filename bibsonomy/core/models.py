"""
Data Model
----------
Credentials and posts as exchanged with the BibSonomy REST API.

A post wraps exactly one resource payload: a publication ("bibtex")
or a bookmark. The payload carries the post's hashes:
- intrahash: identifies the post within one user's collection
- interhash: identifies the resource across users
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import base64
import copy

from .errors import PostValidationError


class ResourceType(Enum):
    """Resource payload types a post can carry."""
    BIBTEX = "bibtex"       # Publication
    BOOKMARK = "bookmark"   # Web link

    @classmethod
    def parse(cls, value: Union[str, "ResourceType"]) -> "ResourceType":
        """Parse a resource type name; 'publication' is accepted for bibtex."""
        if isinstance(value, ResourceType):
            return value

        name = str(value).strip().lower()
        if name == "publication":
            return cls.BIBTEX
        for member in cls:
            if member.value == name:
                return member

        raise ValueError(f"Unknown resource type: {value!r}")


@dataclass(frozen=True)
class Credentials:
    """Username and API key used as HTTP basic auth on every call."""
    user: str
    api_key: str = field(repr=False)

    def encode(self) -> str:
        """base64(user:api_key)"""
        raw = f"{self.user}:{self.api_key}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Basic {self.encode()}"}


def _names(entries: Any) -> List[str]:
    """Flatten [{"name": ...}, ...] (or a single mapping) into names."""
    if not entries:
        return []
    if isinstance(entries, dict):
        entries = [entries]
    return [e["name"] for e in entries if isinstance(e, dict) and "name" in e]


@dataclass
class Post:
    """
    A BibSonomy post.

    `resource` is the raw payload of the bibtex or bookmark part; fields
    the client does not model are kept in `extra` so that a post fetched
    from the server can be sent back unchanged by update_post().
    """
    resource_type: ResourceType
    resource: Dict[str, Any] = field(default_factory=dict)
    user: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=lambda: ["public"])
    description: str = ""
    documents: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def intra_hash(self) -> Optional[str]:
        return self.resource.get("intrahash")

    @intra_hash.setter
    def intra_hash(self, value: str) -> None:
        self.resource["intrahash"] = value

    @property
    def inter_hash(self) -> Optional[str]:
        return self.resource.get("interhash")

    @property
    def title(self) -> Optional[str]:
        return self.resource.get("title")

    @property
    def is_publication(self) -> bool:
        return self.resource_type == ResourceType.BIBTEX

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Post":
        """Build a post from its API JSON; exactly one payload must be present."""
        if not isinstance(data, dict):
            raise PostValidationError(f"Post must be a JSON object, got {type(data).__name__}")

        resource_type = resource_type_of(data)
        known = {"user", "tag", "group", "description", "documents", "bibtex", "bookmark"}

        documents = data.get("documents") or []
        if isinstance(documents, dict):
            documents = documents.get("document", [])
            if isinstance(documents, dict):
                documents = [documents]

        user = data.get("user")
        if isinstance(user, dict):
            user = user.get("name")

        return cls(
            resource_type=resource_type,
            resource=copy.deepcopy(data[resource_type.value]),
            user=user,
            tags=_names(data.get("tag")),
            groups=_names(data.get("group")) or ["public"],
            description=data.get("description") or "",
            documents=list(documents),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    def to_json(self) -> Dict[str, Any]:
        """Serialize into the API's post JSON shape."""
        data: Dict[str, Any] = copy.deepcopy(self.extra)
        data[self.resource_type.value] = copy.deepcopy(self.resource)
        data["tag"] = [{"name": t} for t in self.tags]
        data["group"] = [{"name": g} for g in self.groups]
        data["description"] = self.description
        if self.user:
            data["user"] = {"name": self.user}
        if self.documents:
            data["documents"] = {"document": copy.deepcopy(self.documents)}
        return data


def resource_type_of(post: Dict[str, Any]) -> ResourceType:
    """
    Determine which resource payload a JSON post carries.

    Raises PostValidationError unless exactly one of bibtex/bookmark is set.
    """
    present = [rt for rt in ResourceType if post.get(rt.value)]

    if not present:
        raise PostValidationError("Post has neither a bibtex nor a bookmark payload", post)
    if len(present) > 1:
        raise PostValidationError("Post has both a bibtex and a bookmark payload", post)

    payload = post[present[0].value]
    if not isinstance(payload, dict):
        raise PostValidationError(
            f"Post {present[0].value} payload must be a JSON object, "
            f"got {type(payload).__name__}",
            post,
        )

    return present[0]
