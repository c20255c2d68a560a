"""
API Client
----------
Authenticated request primitive for the BibSonomy REST API.

One request in flight per call, no retries, no shared mutable state.
Every outcome is classified exactly once:
- status in [200, 300): success, the response goes to the extractor
- any other status: STATUS error carrying the code and raw body
- no usable HTTP exchange (transport failure, timeout, redirect loop): NETWORK error
- response arrived but its body cannot be decoded: STATUS error
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx

from ..core.errors import BibSonomyError, log_error
from ..infra.config import APIConfig
from ..infra.logging import RequestContext, get_logger

Extractor = Callable[[httpx.Response], Any]
SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[BibSonomyError], None]


class APIStatus(Enum):
    """Status of an API response."""
    SUCCESS = auto()
    STATUS_ERROR = auto()
    NETWORK_ERROR = auto()


@dataclass
class APIResponse:
    """Response from an API call."""
    status: APIStatus
    data: Optional[Any] = None
    error: Optional[BibSonomyError] = None
    status_code: int = 0
    response_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == APIStatus.SUCCESS


def is_success_status(status_code: int) -> bool:
    """2xx means 'successful operation'."""
    return 200 <= status_code < 300


class APIClient:
    """
    Base client: builds URLs, attaches basic auth, classifies outcomes.

    `transport` is handed to httpx.AsyncClient unchanged, which lets tests
    answer requests with httpx.MockTransport.
    """

    def __init__(
        self,
        config: APIConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._credentials = config.credentials()
        self._transport = transport
        self._logger = get_logger("api.client")

    @property
    def user(self) -> str:
        return self._credentials.user

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers with authentication."""
        headers = {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        headers.update(self.config.headers)
        headers.update(self._credentials.auth_header())
        return headers

    def build_url(self, path: str, user_context: bool = False) -> str:
        """
        Join base URL and path.

        With user_context the path is scoped under /users/{configured user}.
        """
        if not path.startswith("/"):
            path = "/" + path
        if user_context:
            path = f"/users/{quote(self.user, safe='')}{path}"
        return self.base_url + path

    async def request(
        self,
        method: str,
        path: str,
        *,
        extract: Optional[Extractor] = None,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        user_context: bool = False,
        on_success: Optional[SuccessCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> APIResponse:
        """
        Send one authenticated request and route the outcome.

        Exactly one of on_success(data) / on_failure(error) is invoked when
        given. Without an extractor the raw httpx.Response is the data.
        """
        with RequestContext():
            url = self.build_url(path, user_context=user_context)
            self._logger.debug(f"{method} {url}", extra={"method": method, "url": url})

            start_time = datetime.now()
            decode_error: Optional[httpx.DecodingError] = None
            try:
                async with httpx.AsyncClient(
                    timeout=self.config.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    outgoing = client.build_request(
                        method=method,
                        url=url,
                        json=json,
                        data=data,
                        files=files,
                        headers=self._get_headers(),
                    )
                    # Streamed so the status is known before the body is decoded
                    response = await client.send(outgoing, stream=True)
                    try:
                        await response.aread()
                    except httpx.DecodingError as e:
                        decode_error = e
                    finally:
                        await response.aclose()
            except httpx.RequestError as e:
                result = APIResponse(
                    status=APIStatus.NETWORK_ERROR,
                    error=BibSonomyError.network(e),
                    response_time_ms=self._elapsed_ms(start_time),
                )
                log_error(self._logger, result.error)
                return self._deliver(result, on_success, on_failure)

            if decode_error is not None:
                result = APIResponse(
                    status=APIStatus.STATUS_ERROR,
                    error=BibSonomyError.status(
                        response.status_code,
                        None,
                        details={"reason": f"Undecodable response body: {decode_error}"},
                    ),
                    status_code=response.status_code,
                    response_time_ms=self._elapsed_ms(start_time),
                )
            else:
                result = self._classify(response, extract, self._elapsed_ms(start_time))

            if result.success:
                self._logger.info(
                    f"{method} {url} -> {response.status_code}",
                    extra={
                        "status_code": response.status_code,
                        "response_time_ms": result.response_time_ms,
                    },
                )
            else:
                log_error(self._logger, result.error)

            return self._deliver(result, on_success, on_failure)

    def _classify(
        self,
        response: httpx.Response,
        extract: Optional[Extractor],
        response_time: float
    ) -> APIResponse:
        status_code = response.status_code

        if not is_success_status(status_code):
            return APIResponse(
                status=APIStatus.STATUS_ERROR,
                error=BibSonomyError.status(status_code, response.text),
                status_code=status_code,
                response_time_ms=response_time,
            )

        if extract is None:
            data: Any = response
        else:
            try:
                data = extract(response)
            except (ValueError, KeyError, TypeError) as e:
                # 2xx but the body is not what the endpoint promises
                return APIResponse(
                    status=APIStatus.STATUS_ERROR,
                    error=BibSonomyError.status(
                        status_code,
                        response.text,
                        details={"reason": f"Unexpected response body: {e}"},
                    ),
                    status_code=status_code,
                    response_time_ms=response_time,
                )

        return APIResponse(
            status=APIStatus.SUCCESS,
            data=data,
            status_code=status_code,
            response_time_ms=response_time,
        )

    @staticmethod
    def _deliver(
        result: APIResponse,
        on_success: Optional[SuccessCallback],
        on_failure: Optional[FailureCallback]
    ) -> APIResponse:
        if result.success:
            if on_success is not None:
                on_success(result.data)
        elif on_failure is not None:
            on_failure(result.error)
        return result

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (datetime.now() - start_time).total_seconds() * 1000
