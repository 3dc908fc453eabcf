"""
Application Exception Handling

Single AppException class for every recoverable error the client can hit:
bad scans, backend failures, transport failures and photo upload failures.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Controllers catch it and turn it into a state (``Error``, ``NoResult``,
    ``upload_outcome=FAILURE``); nothing in the client treats it as fatal.

    Usage:
        raise AppException("Invalid shipment identifier", "INVALID_IDENTIFIER")
        raise AppException("API error: 500", "API_ERROR", 500, {"path": "/shipments/1"})

    Error Codes:
        Scanning:
            - INVALID_IDENTIFIER
            - CAMERA_UNAVAILABLE

        Backend:
            - API_ERROR (carries the HTTP status)
            - EMPTY_RESPONSE
            - INVALID_RESPONSE

        Transport:
            - NETWORK_ERROR
            - NETWORK_TIMEOUT

        Photo storage:
            - UPLOAD_FAILED

        Authentication:
            - TOKEN_MISSING
            - CREDENTIALS_REQUIRED
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "API_ERROR")
            status_code: HTTP status code when the error came from a response
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and display."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.status_code is not None:
            error_dict["error"]["status_code"] = self.status_code

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_identifier(code: str) -> AppException:
    """Create invalid shipment identifier exception."""
    return AppException(
        f"Invalid shipment identifier: {code!r}",
        "INVALID_IDENTIFIER",
        details={"code": code}
    )


def camera_unavailable(source: str) -> AppException:
    """Create camera unavailable exception."""
    return AppException(
        f"Camera or image source unavailable: {source}",
        "CAMERA_UNAVAILABLE",
        details={"source": source}
    )


def api_error(status_code: int, reason: str, path: str) -> AppException:
    """Create backend API error exception."""
    return AppException(
        f"API error: {status_code} {reason}".strip(),
        "API_ERROR",
        status_code,
        {"path": path}
    )


def empty_response(path: str) -> AppException:
    """Create empty server response exception."""
    return AppException(
        "Empty response from server",
        "EMPTY_RESPONSE",
        details={"path": path}
    )


def invalid_response(path: str, reason: str) -> AppException:
    """Create malformed server payload exception."""
    return AppException(
        f"Invalid response from server: {reason}",
        "INVALID_RESPONSE",
        details={"path": path}
    )


def network_error(path: str, reason: str) -> AppException:
    """Create transport failure exception."""
    return AppException(
        f"Network error: {reason}",
        "NETWORK_ERROR",
        details={"path": path}
    )


def network_timeout(path: str, seconds: float) -> AppException:
    """Create request timeout exception."""
    return AppException(
        f"Request timed out after {seconds:g}s",
        "NETWORK_TIMEOUT",
        details={"path": path, "timeout_seconds": seconds}
    )


def upload_failed(reason: str) -> AppException:
    """Create photo upload failure exception."""
    return AppException(
        f"Photo upload failed: {reason}",
        "UPLOAD_FAILED",
        details={"reason": reason}
    )


def token_missing(action: str) -> AppException:
    """Create missing token exception for a successful auth response."""
    return AppException(
        f"{action} succeeded but the server returned no token",
        "TOKEN_MISSING"
    )


def credentials_required(message: str) -> AppException:
    """Create missing credentials exception."""
    return AppException(message, "CREDENTIALS_REQUIRED")
