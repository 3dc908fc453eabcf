"""
==============================================================================
Auth Flow Module
==============================================================================

Login and registration form submission.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastpack.core.exceptions import AppException
from fastpack.schemas.auth import AuthResponse
from fastpack.services.auth_service import AuthService
from fastpack.utils.validators import CredentialsValidator


# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthOutcome:
    """
    Result of a form submission.

    Attributes:
        success: True when the operator is now logged in
        message: Text to show on failure
        response: Backend response on success
    """

    success: bool
    message: Optional[str] = None
    response: Optional[AuthResponse] = None


class AuthFlow:
    """
    Login/register form controller.

    Blank fields are rejected before any request is sent. ``loading`` is
    True while a request is running.
    """

    def __init__(self, service: AuthService) -> None:
        self._service = service
        self._validator = CredentialsValidator()
        self.loading = False

    async def login(self, email: str, password: str) -> AuthOutcome:
        is_valid, error = self._validator.validate_login(email, password)
        if not is_valid:
            return AuthOutcome(False, error)

        return await self._submit(self._service.login(email, password))

    async def register(self, name: str, email: str, password: str) -> AuthOutcome:
        is_valid, error = self._validator.validate_register(name, email, password)
        if not is_valid:
            return AuthOutcome(False, error)

        return await self._submit(self._service.register(name, email, password))

    async def _submit(self, request) -> AuthOutcome:
        self.loading = True
        try:
            response = await request
        except AppException as e:
            logger.warning(f"Authentication failed: {e.message}")
            return AuthOutcome(False, e.message)
        finally:
            self.loading = False

        return AuthOutcome(True, response=response)
