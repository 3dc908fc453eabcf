"""
==============================================================================
HTTP Client Module
==============================================================================

Shared httpx plumbing for every backend call.

This module implements:
- BearerTokenAuth: Attaches the stored token to each request
- create_http_client: AsyncClient factory bound to the settings
- ApiClient: Base class that sends requests and maps failures to AppException

Error Mapping:
-------------
    httpx.TimeoutException  → NETWORK_TIMEOUT
    httpx.HTTPError         → NETWORK_ERROR
    non-2xx (not allowed)   → API_ERROR (status attached)

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx

from fastpack.config import Settings, get_settings
from fastpack.core import exceptions
from fastpack.core.security import TokenStore


# Module logger
logger = logging.getLogger(__name__)


class BearerTokenAuth(httpx.Auth):
    """
    httpx auth flow reading the token store on every request.

    Requests go out unauthenticated while no token is stored (login and
    register rely on that).
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store

    def auth_flow(self, request: httpx.Request):
        token = self._store.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def create_http_client(
    token_store: TokenStore,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """
    Build the AsyncClient used by the shipment and auth services.

    Args:
        token_store: Source of the bearer token
        settings: Settings to read base URL and timeout from
        transport: Optional transport override (tests use ASGITransport)

    Returns:
        Configured httpx.AsyncClient
    """
    settings = settings or get_settings()

    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=httpx.Timeout(settings.request_timeout_seconds),
        auth=BearerTokenAuth(token_store),
        headers={"Accept": "application/json"},
        transport=transport,
    )


class ApiClient:
    """
    Base class for REST clients over a shared httpx.AsyncClient.

    Subclasses call ``_send`` and get either a response or an AppException;
    raw httpx errors never leak past this class.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Underlying httpx client."""
        return self._client

    async def _send(
        self,
        method: str,
        path: str,
        allowed_statuses: Iterable[int] = (),
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send a request and map transport and status failures.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            allowed_statuses: Non-2xx statuses returned instead of raised
            **kwargs: Forwarded to httpx (params, json, ...)

        Returns:
            The response (2xx or one of allowed_statuses)

        Raises:
            AppException: NETWORK_TIMEOUT, NETWORK_ERROR or API_ERROR
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            timeout = self._client.timeout.read or 0.0
            logger.error(f"⏱️ {method} {path} timed out")
            raise exceptions.network_timeout(path, timeout)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise exceptions.network_error(path, str(e) or type(e).__name__)

        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.is_success or response.status_code in allowed_statuses:
            return response

        raise exceptions.api_error(response.status_code, response.reason_phrase, path)

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        """
        Decode a JSON body, treating an empty body or literal null as None.

        Raises:
            ValueError: If the body is not valid JSON
        """
        if not response.content or not response.content.strip():
            return None
        return response.json()

    async def aclose(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
