#!/usr/bin/env python3
"""Kick HTTP Transport - thin httpx wrapper for the Kick public API

- Bearer token auth (streamer token)
- JSON in / JSON out, 204 -> {}
- Timeout per request (default 10s)
- close() aborts: any call after disconnect fails fast

Toutes les erreurs sortent en TransportError.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx

from kickapi.errors import TransportError

LOGGER = logging.getLogger(__name__)

KICK_API_SERVER = "https://api.kick.com"
DEFAULT_TIMEOUT = 10.0

QueryParams = Union[Dict[str, Any], List[Tuple[str, Any]]]


class KickHttpClient:
    """
    Async client for api.kick.com.

    The httpx.AsyncClient can be injected (tests, shared pool); otherwise
    one is created and owned by this instance.
    """

    def __init__(
        self,
        token: Union[str, Callable[[], str]] = "",
        api_server: str = KICK_API_SERVER,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            token: Streamer auth token, or a callable returning the current one
            api_server: Base URL of the Kick API
            timeout: Request timeout in seconds
            http_client: Optional pre-built httpx.AsyncClient
        """
        self._token = token
        self.api_server = api_server.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._aborted = False
        LOGGER.debug(f"KickHttpClient init (server={self.api_server}, timeout={timeout}s)")

    @property
    def token(self) -> str:
        return self._token() if callable(self._token) else self._token

    @property
    def aborted(self) -> bool:
        return self._aborted

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def reopen(self):
        """Allow requests again after close() (reconnect)."""
        self._aborted = False

    async def close(self):
        """Abort: every following request raises TransportError until reopen()."""
        self._aborted = True
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        uri: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[QueryParams] = None,
    ) -> Dict[str, Any]:
        """
        Send one request to the Kick API.

        Args:
            method: HTTP method
            uri: Path under the API server ("/public/v1/...")
            body: JSON body, if any
            params: Query parameters (list of tuples for repeated keys)

        Returns:
            Decoded JSON response ({} for 204 No Content)

        Raises:
            TransportError: On abort, network error, timeout, non-2xx or bad JSON
        """
        url = f"{self.api_server}{uri}"

        if self._aborted:
            LOGGER.warning("⚠️ API request aborted due to previous disconnection.")
            raise TransportError("API request aborted", url=url)

        headers = {"Accept": "application/json"}
        token = self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        content = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(body)

        try:
            response = await self._get_client().request(
                method,
                url,
                params=params,
                content=content,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout after {self.timeout}s: {method} {uri}", url=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP request failed: {method} {uri}: {e}", url=url) from e

        if not response.is_success:
            raise TransportError(
                f"HTTP error! {method} {uri} payload={content or ''}",
                status=response.status_code,
                url=str(response.url),
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON in response: {method} {uri}",
                status=response.status_code,
                url=str(response.url),
            ) from e
