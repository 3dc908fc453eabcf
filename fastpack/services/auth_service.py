"""
==============================================================================
Authentication Service Module
==============================================================================

Login, registration and logout against the backend's auth endpoints.

This module implements:
- AuthService: Sends credentials, stores the returned bearer token

Response Handling:
-----------------
    2xx + token        → token saved, AuthResponse returned
    2xx, empty body    → EMPTY_RESPONSE
    2xx, no token      → TOKEN_MISSING
    non-2xx            → API_ERROR with the server's message, or
                         "<Action> failed: <code> <reason>" when it sent none

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from fastpack.core import exceptions
from fastpack.core.exceptions import AppException
from fastpack.core.http import ApiClient
from fastpack.core.security import TokenInspector, TokenStore
from fastpack.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from fastpack.utils.validators import CredentialsValidator


# Module logger
logger = logging.getLogger(__name__)

# Every error status is turned into a message instead of a generic API error
_ERROR_STATUSES = range(400, 600)


class AuthService(ApiClient):
    """
    Service for operator authentication.

    Shares the httpx client with the shipment client, so the token saved
    here is attached to every later request by BearerTokenAuth.

    Example:
        >>> auth = AuthService(http_client, token_store)
        >>> response = await auth.login("packer@example.com", "secret")
        >>> auth.is_logged_in()
        True
    """

    def __init__(self, client: httpx.AsyncClient, token_store: TokenStore) -> None:
        super().__init__(client)
        self._token_store = token_store
        self._validator = CredentialsValidator()

    # =========================================================================
    # AUTHENTICATION METHODS
    # =========================================================================

    async def login(self, email: str, password: str) -> AuthResponse:
        """
        Authenticate with email and password.

        Raises:
            AppException: CREDENTIALS_REQUIRED, API_ERROR, EMPTY_RESPONSE,
                TOKEN_MISSING or a transport error
        """
        is_valid, error = self._validator.validate_login(email, password)
        if not is_valid:
            raise exceptions.credentials_required(error)

        request = LoginRequest(email=email, password=password)
        return await self._authenticate("Login", "/auth/login", request.model_dump())

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        """Create an account and log in with it."""
        is_valid, error = self._validator.validate_register(name, email, password)
        if not is_valid:
            raise exceptions.credentials_required(error)

        request = RegisterRequest(name=name, email=email, password=password)
        return await self._authenticate("Registration", "/auth/register", request.model_dump())

    def logout(self) -> None:
        """Forget the stored token."""
        self._token_store.clear_token()
        logger.info("👋 Logged out")

    def is_logged_in(self) -> bool:
        """True when a token is stored and has not expired."""
        token = self._token_store.get_token()
        if not token:
            return False

        if TokenInspector.is_expired(token):
            logger.info("Stored token has expired")
            return False

        return True

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _authenticate(
        self,
        action: str,
        path: str,
        payload: Dict[str, Any]
    ) -> AuthResponse:
        response = await self._send("POST", path, allowed_statuses=_ERROR_STATUSES, json=payload)

        if not response.is_success:
            message = self._error_message(response) or (
                f"{action} failed: {response.status_code} {response.reason_phrase}".strip()
            )
            logger.warning(f"❌ {action} rejected: {message}")
            raise AppException(message, "API_ERROR", response.status_code, {"path": path})

        try:
            body = self._json_or_none(response)
        except ValueError:
            raise exceptions.invalid_response(path, "body is not JSON")

        if body is None:
            raise exceptions.empty_response(path)

        try:
            auth = AuthResponse.model_validate(body)
        except ValidationError as e:
            raise exceptions.invalid_response(path, f"{e.error_count()} invalid fields")

        if not auth.token:
            raise exceptions.token_missing(action)

        self._token_store.save_token(auth.token)

        user = auth.user.display_name if auth.user else "operator"
        logger.info(f"✅ {action} successful for {user}")
        return auth

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Message from an error body: JSON "message"/"error" or the raw text."""
        text = response.text.strip()
        if not text:
            return None

        try:
            body = response.json()
        except ValueError:
            return text

        if isinstance(body, dict):
            for key in ("message", "error"):
                value = body.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()

        return text
