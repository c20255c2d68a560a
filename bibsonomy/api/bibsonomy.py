"""
BibSonomy Endpoints
-------------------
One method per REST endpoint on top of the shared request primitive.

Each method returns an APIResponse and, when `callback` is given, calls
callback(error, data) exactly once: (None, data) on success, (error, None)
on failure.

Example:
    bib = create_client("alice", api_key="...")
    response = await bib.get_user_post("alice", "a6871ae6f57ce68d99d8c398c5ade867")
    if response.success:
        print(response.data.title)
"""

from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import quote
import json

import httpx

from ..core.errors import BibSonomyError, PostValidationError
from ..core.models import Post, ResourceType
from ..infra.config import APIConfig, ConfigManager, DEFAULT_BASE_URL
from .client import APIClient, APIResponse
from .query import TagsArg, posts_query

Callback = Callable[[Optional[BibSonomyError], Any], None]

# The server parses the uploaded BibTeX part and ignores these placeholders,
# but the JSON part must still carry a complete publication.
BIBTEX_PLACEHOLDER = {
    "author": "x",
    "bibtexKey": "x",
    "entrytype": "x",
    "title": "x",
    "year": "x",
}

BIBTEX_PART = "bibtex"


def _segment(value: str) -> str:
    """Quote one path segment (user names, hashes)."""
    return quote(str(value), safe="")


def _callbacks(callback: Optional[Callback]) -> Dict[str, Any]:
    """Split a callback(error, data) into on_success/on_failure."""
    if callback is None:
        return {}
    return {
        "on_success": lambda data: callback(None, data),
        "on_failure": lambda error: callback(error, None),
    }


def _field(response: httpx.Response, name: str) -> Any:
    body = response.json()
    if not isinstance(body, dict) or name not in body:
        raise KeyError(name)
    return body[name]


def _resource_hash(response: httpx.Response) -> str:
    return _field(response, "resourcehash")


def _post(response: httpx.Response) -> Post:
    return Post.from_json(_field(response, "post"))


def _posts(response: httpx.Response) -> List[Post]:
    body = response.json()
    if not isinstance(body, dict):
        raise TypeError("Expected a JSON object")

    posts = body.get("posts") or []
    if isinstance(posts, dict):
        posts = posts.get("post") or []
    if isinstance(posts, dict):
        posts = [posts]
    return [Post.from_json(p) for p in posts]


def _whole_body(response: httpx.Response) -> Any:
    return response.json() if response.content else None


def _tag_list(tags: Iterable[str]) -> List[Dict[str, str]]:
    if isinstance(tags, str):
        tags = tags.split()
    return [{"name": t} for t in tags]


class BibSonomy(APIClient):
    """Client for the BibSonomy REST API."""

    async def get_user_post(
        self,
        user: str,
        intra_hash: str,
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """Fetch a single post of `user` by its intrahash."""
        path = f"/users/{_segment(user)}/posts/{_segment(intra_hash)}?format=json"
        return await self.request("GET", path, extract=_post, **_callbacks(callback))

    async def list_posts(
        self,
        resource_type: Union[str, ResourceType, None] = None,
        user: Optional[str] = None,
        group: Optional[str] = None,
        tags: TagsArg = None,
        resource: Optional[str] = None,
        search: Optional[str] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """
        List posts, optionally filtered.

        `resource` takes an intra- or interhash; with an interhash this
        finds every user's post of the same publication.
        """
        query = posts_query(
            resource_type=resource_type,
            user=user,
            group=group,
            tags=tags,
            resource=resource,
            search=search,
            start=start,
            end=end,
        )
        return await self.request("GET", f"/posts?{query}", extract=_posts, **_callbacks(callback))

    async def list_user_posts(
        self,
        user: str,
        resource_type: Union[str, ResourceType, None] = None,
        tags: TagsArg = None,
        search: Optional[str] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """List the posts of one user."""
        query = posts_query(
            resource_type=resource_type,
            tags=tags,
            search=search,
            start=start,
            end=end,
        )
        path = f"/users/{_segment(user)}/posts?{query}"
        return await self.request("GET", path, extract=_posts, **_callbacks(callback))

    async def post_bibtex(
        self,
        user: str,
        bibtex: str,
        tags: Iterable[str],
        group: str = "public",
        description: str = "",
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """
        Create a publication post from a BibTeX entry.

        The entry travels as its own multipart part next to the JSON post;
        the data on success is the new post's resource hash.
        """
        content = {
            "post": {
                "bibtex": dict(BIBTEX_PLACEHOLDER),
                "group": [{"name": group}],
                "tag": _tag_list(tags),
                "user": {"name": user},
                "description": description,
                "publicationFileUpload": {
                    "multipartName": BIBTEX_PART,
                },
            }
        }

        files = {
            "main": (None, json.dumps(content).encode("utf-8"), "application/json"),
            BIBTEX_PART: ("entry.bib", bibtex.encode("utf-8"), "text/bibtex"),
        }

        path = f"/users/{_segment(user)}/posts?format=json"
        return await self.request(
            "POST", path, files=files, extract=_resource_hash, **_callbacks(callback)
        )

    async def post_bookmark(
        self,
        user: str,
        url: str,
        title: str,
        tags: Iterable[str],
        group: str = "public",
        description: str = "",
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """Create a bookmark post; the data on success is its resource hash."""
        content = {
            "post": {
                "bookmark": {"url": url, "title": title},
                "group": [{"name": group}],
                "tag": _tag_list(tags),
                "user": {"name": user},
                "description": description,
            }
        }

        path = f"/users/{_segment(user)}/posts?format=json"
        return await self.request(
            "POST", path, json=content, extract=_resource_hash, **_callbacks(callback)
        )

    async def update_post(
        self,
        post: Union[Post, Dict[str, Any]],
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """
        Replace a post of the configured user, addressed by its intrahash.

        The server answers with the new intrahash, which is written back
        into the post before it is delivered. Callers that chain updates
        must wait for this before sending the next one.
        """
        if not isinstance(post, Post):
            post = Post.from_json(post)

        intra_hash = post.intra_hash
        if not intra_hash:
            raise PostValidationError(
                f"No intrahash available in {post.resource_type.value} post"
            )

        def _updated(response: httpx.Response) -> Post:
            post.intra_hash = _resource_hash(response)
            return post

        return await self.request(
            "PUT",
            f"/posts/{_segment(intra_hash)}?format=json",
            json={"post": post.to_json()},
            extract=_updated,
            user_context=True,
            **_callbacks(callback),
        )

    async def add_file(
        self,
        user: str,
        resource_hash: str,
        file: Union[bytes, BinaryIO],
        filename: str,
        callback: Optional[Callback] = None
    ) -> APIResponse:
        """
        Attach a file to an existing post.

        Example:
            await bib.add_file("becker", "a6871ae6f57ce68d99d8c398c5ade867",
                               b"hallo", "test.txt")

        The data on success is the file's hash.
        """
        path = (
            f"/users/{_segment(user)}/posts/{_segment(resource_hash)}"
            "/documents/?format=json"
        )
        return await self.request(
            "POST",
            path,
            files={"file": (filename, file)},
            data={"fileId": "1"},
            extract=_resource_hash,
            **_callbacks(callback),
        )

    async def delete_post(
        self,
        user: str,
        resource_hash: str,
        callback: Optional[Callback] = None
    ) -> APIResponse:
        path = f"/users/{_segment(user)}/posts/{_segment(resource_hash)}?format=json"
        return await self.request("DELETE", path, extract=_whole_body, **_callbacks(callback))

    async def check_login(self, callback: Optional[Callback] = None) -> APIResponse:
        """Data is True when the server accepts the configured credentials."""
        path = f"/users/{_segment(self.user)}?format=json"
        return await self.request("GET", path, extract=lambda _: True, **_callbacks(callback))


# Pre-configured clients

def create_client(
    user: str,
    api_key: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> BibSonomy:
    """
    Create a client; without api_key the key is read from BIBSONOMY_API_KEY.

    Example:
        bib = create_client("username", "a6d04gg88d2af32ad18592a45e4b411a")
        bib = create_client("username", base_url="https://bibsonomy.org/api")
    """
    return BibSonomy(
        APIConfig(user=user, api_key=api_key, base_url=base_url),
        transport=transport,
    )


def client_from_config(
    config_path: str = "config.yaml",
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> BibSonomy:
    """Create a client from the 'bibsonomy' section of a YAML config file."""
    return BibSonomy(ConfigManager(config_path).api_config(), transport=transport)
