"""
Request Client Tests
--------------------
Tests for the shared request primitive.

Tests cover:
- Outcome classification (2xx / non-2xx / transport failure)
- Callback routing (exactly one callback per call)
- Basic auth and URL construction
- Unexpected bodies on 2xx responses
"""

import asyncio

import httpx
import pytest

from conftest import API_KEY, BASE_URL, USER, json_response

from bibsonomy.api.client import APIClient, APIStatus, is_success_status
from bibsonomy.core.errors import ConfigurationError, ErrorKind
from bibsonomy.infra.config import APIConfig


def run(coro):
    return asyncio.run(coro)


class TestStatusClassification:
    """Tests for 2xx vs non-2xx routing."""

    @pytest.mark.parametrize("code", [200, 201, 204, 299])
    def test_2xx_is_success(self, code):
        assert is_success_status(code)

    @pytest.mark.parametrize("code", [100, 199, 300, 301, 400, 401, 404, 500, 503])
    def test_other_codes_are_not_success(self, code):
        assert not is_success_status(code)

    def test_success_invokes_on_success_only(self, make_client):
        client, _ = make_client(json_response({"resourcehash": "abc"}, 201))
        successes, failures = [], []

        response = run(client.request(
            "GET", "/posts",
            extract=lambda r: r.json()["resourcehash"],
            on_success=successes.append,
            on_failure=failures.append,
        ))

        assert response.success
        assert response.status == APIStatus.SUCCESS
        assert response.status_code == 201
        assert response.data == "abc"
        assert successes == ["abc"]
        assert failures == []

    def test_non_2xx_invokes_on_failure_with_status_error(self, make_client):
        body = '{"error": "resource not found"}'
        client, _ = make_client(httpx.Response(404, content=body.encode()))
        successes, failures = [], []

        response = run(client.request(
            "GET", "/posts",
            on_success=successes.append,
            on_failure=failures.append,
        ))

        assert not response.success
        assert response.status == APIStatus.STATUS_ERROR
        assert successes == []
        assert len(failures) == 1

        error = failures[0]
        assert error.kind == ErrorKind.STATUS
        assert error.status_code == 404
        assert error.response == body
        assert error.message == "Response status not OK: 404"

    @pytest.mark.parametrize("code", [301, 400, 401, 403, 500])
    def test_status_error_carries_exact_code(self, make_client, code):
        client, _ = make_client(httpx.Response(code, content=b"nope"))

        response = run(client.request("DELETE", "/posts/x"))

        assert response.error.kind == ErrorKind.STATUS
        assert response.error.status_code == code
        assert response.status_code == code

    def test_without_extractor_data_is_raw_response(self, make_client):
        client, _ = make_client(json_response({"a": 1}))

        response = run(client.request("GET", "/posts"))

        assert isinstance(response.data, httpx.Response)
        assert response.data.json() == {"a": 1}


class TestNetworkErrors:
    """Tests for transport-level failures."""

    def test_connect_error_is_network_error(self, make_client):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(refuse)
        successes, failures = [], []

        response = run(client.request(
            "GET", "/posts",
            on_success=successes.append,
            on_failure=failures.append,
        ))

        assert response.status == APIStatus.NETWORK_ERROR
        assert response.status_code == 0
        assert successes == []
        assert len(failures) == 1
        assert failures[0].kind == ErrorKind.NETWORK
        assert failures[0].status_code is None
        assert failures[0].message == "A network error occurred."
        assert failures[0].details["exception"] == "ConnectError"

    def test_timeout_is_network_error(self, make_client):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = make_client(slow)

        response = run(client.request("GET", "/posts"))

        assert response.error.is_network

    def test_redirect_loop_is_network_error(self, make_client):
        def loop(request):
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        client, _ = make_client(loop)
        failures = []

        response = run(client.request("GET", "/posts", on_failure=failures.append))

        assert response.status == APIStatus.NETWORK_ERROR
        assert failures[0].details["exception"] == "TooManyRedirects"

    def test_corrupt_gzip_body_reaches_failure_callback(self, make_client):
        client, _ = make_client(lambda request: httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b"not gzip at all"),
        ))
        successes, failures = [], []

        response = run(client.request(
            "DELETE", "/posts/abc",
            extract=lambda r: r.json(),
            on_success=successes.append,
            on_failure=failures.append,
        ))

        assert response.status == APIStatus.STATUS_ERROR
        assert successes == []
        assert len(failures) == 1
        assert failures[0].kind == ErrorKind.STATUS
        assert failures[0].status_code == 200
        assert failures[0].response is None
        assert "Undecodable response body" in failures[0].details["reason"]


class TestUnexpectedBody:
    """2xx responses whose body the extractor cannot use."""

    def test_invalid_json_is_status_error(self, make_client):
        client, _ = make_client(httpx.Response(200, content=b"<html>maintenance</html>"))
        failures = []

        response = run(client.request(
            "GET", "/posts",
            extract=lambda r: r.json(),
            on_failure=failures.append,
        ))

        assert response.status == APIStatus.STATUS_ERROR
        assert failures[0].status_code == 200
        assert failures[0].response == "<html>maintenance</html>"
        assert "Unexpected response body" in failures[0].details["reason"]

    def test_missing_field_is_status_error(self, make_client):
        client, _ = make_client(json_response({"stat": "ok"}))

        response = run(client.request(
            "GET", "/posts",
            extract=lambda r: r.json()["resourcehash"],
        ))

        assert response.error.is_status
        assert response.error.status_code == 200


class TestRequestConstruction:
    """Tests for URL, headers and bodies."""

    def test_basic_auth_header(self, make_client):
        client, transport = make_client(json_response({}))

        run(client.request("GET", "/posts"))

        # base64("alice:secret")
        assert transport.last.headers["Authorization"] == "Basic YWxpY2U6c2VjcmV0"

    def test_path_joined_to_base_url(self, make_client):
        client, transport = make_client(json_response({}))

        run(client.request("GET", "/posts?format=json"))

        assert str(transport.last.url) == f"{BASE_URL}/posts?format=json"

    def test_user_context_scopes_path(self, make_client):
        client, transport = make_client(json_response({}))

        run(client.request("PUT", "/posts/abc?format=json", user_context=True))

        assert str(transport.last.url) == f"{BASE_URL}/users/{USER}/posts/abc?format=json"
        assert transport.last.method == "PUT"

    def test_build_url_tolerates_trailing_and_missing_slashes(self):
        client = APIClient(APIConfig(user=USER, api_key=API_KEY, base_url=BASE_URL + "/"))

        assert client.build_url("posts") == f"{BASE_URL}/posts"

    def test_json_body_sent(self, make_client):
        client, transport = make_client(json_response({}))

        run(client.request("POST", "/posts", json={"post": {"description": "x"}}))

        assert transport.last.headers["Content-Type"] == "application/json"
        assert b'"description"' in transport.last.content

    def test_extra_headers_from_config(self):
        config = APIConfig(
            user=USER, api_key=API_KEY, base_url=BASE_URL,
            headers={"X-Client": "tests"},
        )
        transport = httpx.MockTransport(lambda request: json_response({}))
        client = APIClient(config, transport=transport)

        headers = client._get_headers()

        assert headers["X-Client"] == "tests"
        assert headers["Accept"] == "application/json"
        assert headers["Authorization"].startswith("Basic ")


class TestClientConfiguration:

    def test_missing_api_key_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            APIClient(APIConfig(user=USER))

        assert exc_info.value.key == "BIBSONOMY_API_KEY"

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("BIBSONOMY_API_KEY", "from-env")

        client = APIClient(APIConfig(user=USER))

        assert client._credentials.api_key == "from-env"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
