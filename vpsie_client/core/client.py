"""
Core HTTP client for the VPSie API.

Handles authentication, request building, retries, envelope decoding, and
pagination.
"""

import dataclasses
import http.client
import json
import logging
import os
import socket
import ssl
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeVar

from vpsie_client.core.envelope import decode
from vpsie_client.core.errors import APIError, ConfigurationError, ErrorKind
from vpsie_client.core.retry import CancelToken, RetryPolicy, RetryState
from vpsie_client.core.types import (
    DataShape,
    ListOptions,
    PaginatedResponse,
    RawResponse,
    RequestDescriptor,
    has_more,
    next_page,
)

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "https://api.vpsie.com"
DEFAULT_TIMEOUT = 60
USER_AGENT = "vpsie-client-python/0.1.0"
AUTH_HEADER = "Vpsie-Auth"
ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

T = TypeVar("T")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings shared by every call made through a client."""

    token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if not self.token:
            raise ConfigurationError("VPSie access token is required")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(
        cls,
        token: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> "ClientConfig":
        """
        Build a config, filling gaps from the environment.

        Args:
            token: Access token (or VPSIE_ACCESS_TOKEN env var)
            base_url: API base URL (or VPSIE_BASE_URL env var)
            **kwargs: Remaining ClientConfig fields

        """
        token = token or os.environ.get("VPSIE_ACCESS_TOKEN")
        if not token:
            raise ConfigurationError("VPSIE_ACCESS_TOKEN environment variable not set")
        base_url = base_url or os.environ.get("VPSIE_BASE_URL") or DEFAULT_BASE_URL
        return cls(token=token, base_url=base_url, **kwargs)


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _is_transient(error: Exception) -> bool:
    """Whether a send failure may succeed on another attempt."""
    if isinstance(error, urllib.error.URLError):
        reason = error.reason
        if isinstance(reason, ssl.SSLCertVerificationError):
            return False
        return isinstance(reason, (ConnectionError, TimeoutError, socket.gaierror))
    return isinstance(error, (http.client.HTTPException, ConnectionError, TimeoutError))


class APIClient:
    """
    Low-level HTTP client for the VPSie API.

    Handles:
    - Authentication via the Vpsie-Auth header
    - HTTP methods (GET, POST, PUT, DELETE)
    - Retries with backoff for transient failures
    - Envelope decoding and error mapping
    - Pagination for list endpoints

    The client holds no per-call state, so one instance can serve many threads.
    """

    def __init__(
        self,
        config: ClientConfig,
        opener: urllib.request.OpenerDirector | None = None,
    ):
        """
        Initialize the API client.

        Args:
            config: Credentials, base URL, timeout and retry policy
            opener: urllib opener used to send requests (a default one is built)

        """
        self.config = config
        self._opener = opener or urllib.request.build_opener()

    def _build_url(self, path: str) -> str:
        """Build full URL from path."""
        if path.startswith("http"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.config.base_url}{path}"

    # =========================================================================
    # Request building
    # =========================================================================

    def build_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: ListOptions | None = None,
    ) -> RequestDescriptor:
        """
        Assemble an outgoing request without sending it.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path (e.g., /apps/v2/backups)
            body: JSON-serializable payload, or a request dataclass
            options: List options serialized into the query string

        Returns:
            RequestDescriptor ready for execute()

        Raises:
            ValueError: On an unsupported method or empty path
            APIError: If the body cannot be serialized (kind ``decode``)

        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        if not path:
            raise ValueError("Request path must not be empty")

        url = self._build_url(path)
        if options is not None:
            query_string = urllib.parse.urlencode(options.to_query())
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{query_string}"

        data = None
        if body is not None:
            try:
                data = json.dumps(body, default=_json_default).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise APIError(f"Could not serialize request body: {e}", kind=ErrorKind.DECODE) from e

        headers = {
            AUTH_HEADER: self.config.token,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        return RequestDescriptor(method=method, url=url, headers=MappingProxyType(headers), body=data)

    # =========================================================================
    # Transport
    # =========================================================================

    def _attempt_timeout(self, cancel: CancelToken | None) -> float:
        remaining = cancel.remaining() if cancel else None
        if remaining is None:
            return self.config.timeout
        return min(self.config.timeout, remaining)

    def _send(self, descriptor: RequestDescriptor, timeout: float) -> RawResponse:
        req = urllib.request.Request(
            descriptor.url,
            data=descriptor.body,
            headers=dict(descriptor.headers),
            method=descriptor.method,
        )
        try:
            with self._opener.open(req, timeout=timeout) as response:
                return RawResponse(
                    status=response.status,
                    body=response.read(),
                    content_type=response.headers.get("Content-Type", ""),
                )
        except urllib.error.HTTPError as e:
            # Non-2xx still carries a body the decoder needs
            body = e.read() if e.fp is not None else b""
            content_type = e.headers.get("Content-Type", "") if e.headers is not None else ""
            return RawResponse(status=e.code, body=body or b"", content_type=content_type)

    def execute(self, descriptor: RequestDescriptor, cancel: CancelToken | None = None) -> RawResponse:
        """
        Send a request, retrying transient failures.

        Connection errors, dropped or malformed responses, timeouts and 5xx
        responses are retried up to the configured number of attempts. Any
        other response is returned as-is, whatever its status.

        Args:
            descriptor: Request from build_request()
            cancel: Optional token; cancelling it aborts the call and any retry wait

        Returns:
            RawResponse with status and body

        Raises:
            APIError: kind ``transport`` once retries are exhausted, or at once
                for failures a retry cannot fix (bad URL scheme, certificate)
            RequestCancelledError: If the token is cancelled or its deadline passes

        """
        state = RetryState(self.config.retry)

        while True:
            if cancel is not None:
                cancel.raise_if_cancelled()

            attempt = state.begin_attempt()
            logger.debug("%s %s (attempt %d)", descriptor.method, descriptor.url, attempt)

            last_response: RawResponse | None = None
            cause: Exception | None = None
            try:
                response = self._send(descriptor, self._attempt_timeout(cancel))
            except (urllib.error.URLError, http.client.HTTPException, ConnectionError, TimeoutError) as e:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                reason = getattr(e, "reason", None) or e
                failure = f"Connection error: {reason}"
                cause = e
                if not _is_transient(e):
                    raise APIError(failure, kind=ErrorKind.TRANSPORT) from e
            else:
                logger.debug("%s %s -> %d", descriptor.method, descriptor.url, response.status)
                if not RetryPolicy.is_retryable_status(response.status):
                    return response
                last_response = response
                failure = f"HTTP {response.status}"

            if state.exhausted:
                raise APIError(
                    f"{failure} after {attempt} attempts",
                    kind=ErrorKind.TRANSPORT,
                    status=last_response.status if last_response else 0,
                    body=last_response.body if last_response else b"",
                ) from cause

            delay = state.next_delay()
            logger.warning(
                "%s %s failed (%s), retrying in %.2fs (attempt %d/%d)",
                descriptor.method,
                descriptor.url,
                failure,
                delay,
                attempt,
                self.config.retry.max_attempts,
            )
            if cancel is not None:
                cancel.sleep(delay)
            else:
                time.sleep(delay)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        options: ListOptions | None = None,
        shape: DataShape = DataShape.NONE,
        parser: Callable[[Any], T] | None = None,
        key: str | None = None,
        cancel: CancelToken | None = None,
    ) -> Any:
        """
        Build, send and decode a single API call.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path (e.g., /apps/v2/backups)
            body: Request body for POST/PUT/DELETE
            options: List options (query string)
            shape: Expected shape of the envelope data
            parser: Converts each returned object
            key: Field inside data holding the object (OBJECT shape only)
            cancel: Optional cancellation token

        Returns:
            Decoded payload (see envelope.decode)

        Raises:
            APIError: On transport, HTTP, envelope, or decoding errors

        """
        descriptor = self.build_request(method, path, body, options)
        response = self.execute(descriptor, cancel)
        return decode(response, shape=shape, parser=parser, key=key, options=options)

    def get(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a POST request."""
        return self.request("POST", path, body, **kwargs)

    def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a PUT request."""
        return self.request("PUT", path, body, **kwargs)

    def delete(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a DELETE request."""
        return self.request("DELETE", path, body, **kwargs)

    # =========================================================================
    # Pagination
    # =========================================================================

    def paginate(
        self,
        path: str,
        options: ListOptions | None = None,
        shape: DataShape = DataShape.LIST,
        parser: Callable[[Any], T] | None = None,
        cancel: CancelToken | None = None,
    ) -> Iterator[T]:
        """
        Iterate through all pages of a list endpoint.

        Args:
            path: API path
            options: Options for the first page (defaults to page 1)
            shape: LIST or ROWS, depending on the endpoint
            parser: Optional function to parse each item
            cancel: Optional cancellation token checked on every page

        Yields:
            Items from all pages (parsed if parser provided)

        """
        options = options or ListOptions()

        while True:
            page: PaginatedResponse[T] = self.get(path, options=options, shape=shape, parser=parser, cancel=cancel)
            yield from page.data

            if not has_more(options, len(page.data), page.total):
                break
            options = next_page(options)
