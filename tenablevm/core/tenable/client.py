"""Low-level HTTP client for the Tenable VM API.

Handles request construction, API-key authentication, and response decoding.
"""
from __future__ import annotations
import json as jsonlib
import logging
from typing import Any, Optional, Type

import requests

from tenablevm.config.settings import TenableConfig, DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .exceptions import TenableAPIError, TenableConnectionError, TenableDecodeError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = DEFAULT_TIMEOUT


class TenableClient:
    """HTTP client for the Tenable VM API.

    Features:
    - X-ApiKeys header on every request
    - Centralized error handling
    - Optional JSON decoding with a top-level shape check

    Usage:
        client = TenableClient(TenableConfig("access", "secret"))
        users = client.get("/users", expect=list)
    """

    def __init__(self, config: TenableConfig, session: Optional[requests.Session] = None):
        """Initialize Tenable client.

        Args:
            config: Credentials, base URL and timeout (read-only)
            session: Optional pre-built requests session
        """
        self.config = config
        self.session = session or requests.Session()

    def __repr__(self) -> str:
        return f"TenableClient(base_url={self.config.base_url!r})"

    def build_request(self, method: str, path: str, body: Any = None) -> requests.PreparedRequest:
        """Construct an authenticated request for a path relative to the base URL.

        Args:
            method: HTTP method
            path: API endpoint path (e.g., "users/42")
            body: JSON-serializable payload, or None for no body

        Returns:
            Prepared request ready for execute()
        """
        url = self.config.base_url.rstrip("/") + "/" + path.lstrip("/")
        headers = {
            "Content-Type": "application/json",
            "X-ApiKeys": self.config.api_keys_header,
        }
        data = jsonlib.dumps(body) if body is not None else None
        return self.session.prepare_request(requests.Request(method.upper(), url, headers=headers, data=data))

    def execute(self, request: requests.PreparedRequest, expect: Optional[Type] = None) -> Any:
        """Send a prepared request and decode the response.

        Args:
            request: Request from build_request()
            expect: ``dict`` or ``list`` to decode the JSON body and check its
                shape; None discards the body after the status check

        Returns:
            Decoded JSON value, or None when ``expect`` is None

        Raises:
            TenableConnectionError: On network failure or timeout
            TenableAPIError: On any status outside 200-299
            TenableDecodeError: On malformed JSON or unexpected shape
        """
        logger.debug("%s %s", request.method, request.url)
        try:
            settings = self.session.merge_environment_settings(request.url, {}, None, None, None)
            resp = self.session.send(request, timeout=self.config.timeout, **settings)
        except requests.RequestException as e:
            raise TenableConnectionError(request.method, request.url, str(e)) from e

        self._handle_error(resp, request)

        if expect is None:
            return None
        try:
            payload = resp.json()
        except ValueError as e:
            raise TenableDecodeError(
                f"{request.method} {request.url}: response is not valid JSON: {e}"
            ) from e
        if not isinstance(payload, expect):
            raise TenableDecodeError(
                f"{request.method} {request.url}: expected a JSON {expect.__name__}, "
                f"got {type(payload).__name__}"
            )
        return payload

    def get(self, path: str, expect: Optional[Type] = None) -> Any:
        return self.execute(self.build_request("GET", path), expect)

    def post(self, path: str, json: Any = None, expect: Optional[Type] = None) -> Any:
        return self.execute(self.build_request("POST", path, json), expect)

    def put(self, path: str, json: Any = None, expect: Optional[Type] = None) -> Any:
        return self.execute(self.build_request("PUT", path, json), expect)

    def delete(self, path: str, expect: Optional[Type] = None) -> Any:
        return self.execute(self.build_request("DELETE", path), expect)

    def _handle_error(self, resp: requests.Response, request: requests.PreparedRequest) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            TenableAPIError: If response status is outside 200-299
        """
        if resp.status_code < 200 or resp.status_code >= 300:
            raise TenableAPIError(resp.status_code, resp.reason or "", resp.text, request.method, request.url)


# ─────────────────────────────────────────────────────────────────────────────
# Standalone helpers
# ─────────────────────────────────────────────────────────────────────────────
def create_client(
    access_key: str,
    secret_key: str,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> TenableClient:
    """Create a client from raw credentials without going through load_settings()."""
    config = TenableConfig(
        access_key=access_key,
        secret_key=secret_key,
        base_url=base_url or DEFAULT_BASE_URL,
        timeout=timeout if timeout is not None else REQUEST_TIMEOUT,
    )
    return TenableClient(config)
