"""
Test Configuration
------------------
Shared fixtures for all tests.

No test talks to the network: every client is built on an
httpx.MockTransport that answers from a handler and records requests.
"""

import json
import os
import sys
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from bibsonomy.api.bibsonomy import BibSonomy
from bibsonomy.infra.config import APIConfig

BASE_URL = "https://bibsonomy.test/api"
USER = "alice"
API_KEY = "secret"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep BIBSONOMY_* variables of the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("BIBSONOMY_"):
            monkeypatch.delenv(name, raising=False)


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it answered."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def make_client():
    """
    Factory: make_client(handler) -> (client, transport).

    `handler` may also be an httpx.Response, returned for every request.
    """
    def _make(handler) -> "tuple[BibSonomy, RecordingTransport]":
        if isinstance(handler, httpx.Response):
            canned = handler
            handler = lambda request: canned  # noqa: E731

        transport = RecordingTransport(handler)
        client = BibSonomy(
            APIConfig(user=USER, api_key=API_KEY, base_url=BASE_URL),
            transport=transport,
        )
        return client, transport

    return _make


@pytest.fixture
def bibtex_post_json():
    """A publication post as returned by GET /users/{user}/posts/{hash}."""
    return {
        "user": {"name": USER},
        "tag": [{"name": "folksonomy"}, {"name": "tagging"}],
        "group": [{"name": "public"}],
        "description": "read later",
        "bibtex": {
            "title": "Information Retrieval in Folksonomies",
            "author": "Hotho, Andreas and Jaeschke, Robert",
            "year": "2006",
            "entrytype": "inproceedings",
            "bibtexKey": "hotho2006information",
            "intrahash": "a6871ae6f57ce68d99d8c398c5ade867",
            "interhash": "6e2e9e0e7a2c3f1b0d9f5b6a7c8d9e0f",
        },
        "postingdate": "2006-06-01T12:00:00.000+02:00",
    }


@pytest.fixture
def bookmark_post_json():
    return {
        "user": {"name": USER},
        "tag": [{"name": "api"}],
        "group": [{"name": "private"}],
        "bookmark": {
            "url": "https://www.bibsonomy.org/help",
            "title": "BibSonomy help",
            "intrahash": "0b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e",
            "interhash": "0b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e",
        },
    }
