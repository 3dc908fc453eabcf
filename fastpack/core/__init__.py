"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the client.

This package provides:
- Custom exception handling with consistent error payloads
- Bearer token storage and JWT claim inspection
- Shared httpx client plumbing with error mapping

Modules:
--------
- exceptions: AppException class and error factory functions
- security: TokenStore, FileTokenStore, TokenInspector
- http: BearerTokenAuth, create_http_client, ApiClient

Usage:
------
    from fastpack.core import AppException, FileTokenStore, create_http_client

    # Or use exception factory functions via module
    from fastpack.core import exceptions
    raise exceptions.invalid_identifier("1234")

==============================================================================
"""

from .exceptions import AppException
from .security import TokenStore, FileTokenStore, TokenInspector
from .http import ApiClient, BearerTokenAuth, create_http_client

__all__ = [
    # Exceptions
    "AppException",
    # Security
    "TokenStore",
    "FileTokenStore",
    "TokenInspector",
    # HTTP
    "ApiClient",
    "BearerTokenAuth",
    "create_http_client",
]
