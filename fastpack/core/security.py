"""
==============================================================================
Security Module - Credential Storage
==============================================================================

Local persistence and inspection of the bearer token issued by the backend.

This module implements:
- TokenStore: In-memory token holder (base class, used by tests)
- FileTokenStore: JSON file backed token holder
- TokenInspector: Reads JWT claims without verifying the signature

The backend owns the signing key, so the client never verifies tokens. It only
peeks at the ``exp`` claim to avoid sending a token that has already expired.

Token File Structure:
--------------------
{
    "token": "eyJhbGciOi...",
    "saved_at": "2025-01-15T10:30:45+00:00"
}

==============================================================================
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jose import JWTError, jwt


# Module logger
logger = logging.getLogger(__name__)


class TokenStore:
    """
    In-memory bearer token holder.

    Reads happen on every outgoing request, writes on login/logout. A lock
    keeps the two consistent when the capture thread and the event loop
    share a store.
    """

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token
        self._lock = threading.Lock()

    def get_token(self) -> Optional[str]:
        """Return the stored token, if any."""
        with self._lock:
            return self._token

    def save_token(self, token: str) -> None:
        """Replace the stored token."""
        with self._lock:
            self._token = token
        logger.debug("Auth token saved")

    def clear_token(self) -> None:
        """Forget the stored token."""
        with self._lock:
            self._token = None
        logger.debug("Auth token cleared")


class FileTokenStore(TokenStore):
    """
    Token store persisted as a small JSON file.

    Unreadable or corrupt files are treated as "no token" so a damaged file
    only forces a new login.

    Example:
        >>> store = FileTokenStore(Path("~/.fastpack/credentials.json").expanduser())
        >>> store.save_token("abc")
        >>> store.get_token()
        'abc'
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        self._token = self._load()

    @property
    def path(self) -> Path:
        """Location of the credentials file."""
        return self._path

    def _load(self) -> Optional[str]:
        if not self._path.exists():
            return None

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read credentials file {self._path}: {e}")
            return None

        token = data.get("token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def save_token(self, token: str) -> None:
        """Persist the token to disk and keep it in memory."""
        super().save_token(token)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "token": token,
            "saved_at": datetime.now(timezone.utc).isoformat()
        }
        self._path.write_text(json.dumps(payload), encoding="utf-8")
        logger.info(f"🔐 Credentials saved to {self._path}")

    def clear_token(self) -> None:
        """Remove the credentials file and forget the token."""
        super().clear_token()
        if self._path.exists():
            self._path.unlink()
            logger.info(f"🔓 Credentials removed from {self._path}")


class TokenInspector:
    """
    Read-only view over JWT claims.

    Opaque (non-JWT) tokens have no claims and never count as expired.
    """

    @staticmethod
    def claims(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode token claims without signature verification.

        Returns:
            Claims dict, or None when the token is not a JWT
        """
        try:
            return jwt.get_unverified_claims(token)
        except JWTError:
            return None

    @classmethod
    def is_expired(cls, token: str, now: Optional[datetime] = None) -> bool:
        """
        Check the ``exp`` claim against the current time.

        Args:
            token: Bearer token
            now: Reference time (defaults to current UTC time)

        Returns:
            True only for JWTs whose exp lies in the past
        """
        claims = cls.claims(token)
        if not claims or "exp" not in claims:
            return False

        try:
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Token has an unreadable exp claim")
            return True

        now = now or datetime.now(timezone.utc)
        return expires_at <= now
