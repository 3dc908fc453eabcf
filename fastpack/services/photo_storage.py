"""
==============================================================================
Photo Storage Module
==============================================================================

Uploads packed-item photos to Cloudinary with an unsigned preset.

The upload goes through its own httpx client: Cloudinary must not receive the
backend's bearer token.

Request:
-------
    POST {cloudinary_api_url}/{cloud_name}/image/upload
    multipart: file, upload_preset, folder

Response fields used: ``secure_url`` and ``public_id``. A 2xx response
missing either one counts as a failed upload.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

import httpx

from fastpack.config import Settings, get_settings
from fastpack.core import exceptions
from fastpack.schemas.shipment import PackedPhoto


# Module logger
logger = logging.getLogger(__name__)


class PhotoStorage(Protocol):
    """Remote storage for packed-item photos."""

    async def upload(self, local_photo: Union[str, Path]) -> PackedPhoto:
        ...


class CloudinaryPhotoStorage:
    """
    Cloudinary unsigned image upload.

    Raises AppException(UPLOAD_FAILED) for every failure: missing file,
    transport error, timeout, non-2xx answer or incomplete answer.

    Example:
        >>> storage = CloudinaryPhotoStorage()
        >>> photo = await storage.upload("/tmp/packed.jpg")
        >>> photo.url
        'https://res.cloudinary.com/fastpack/image/upload/v1/packing/abc.jpg'
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize photo storage.

        Args:
            settings: Settings holding cloud name, preset and folder
            client: Existing client to use (not closed by aclose)
            transport: Transport for the internally created client
        """
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.request_timeout_seconds),
            transport=transport,
        )

    async def upload(self, local_photo: Union[str, Path]) -> PackedPhoto:
        """
        Upload a local image file.

        Args:
            local_photo: Path of the captured photo

        Returns:
            PackedPhoto with the secure URL and public id
        """
        path = Path(local_photo)

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error(f"Cannot read photo {path}: {e}")
            raise exceptions.upload_failed(f"cannot read {path.name}")

        data = {
            "upload_preset": self._settings.cloudinary_upload_preset,
            "folder": self._settings.cloudinary_folder,
        }
        files = {"file": (path.name, content, "application/octet-stream")}

        logger.info(f"☁️ Uploading {path.name} ({len(content)} bytes)")

        try:
            response = await self._client.post(
                self._settings.cloudinary_upload_url, data=data, files=files
            )
        except httpx.TimeoutException:
            logger.error("Photo upload timed out")
            raise exceptions.upload_failed("timed out")
        except httpx.HTTPError as e:
            logger.error(f"Photo upload transport error: {e}")
            raise exceptions.upload_failed(str(e) or type(e).__name__)

        body = self._json_body(response)

        if not response.is_success:
            reason = self._error_reason(body) or response.reason_phrase
            logger.error(f"Photo upload rejected: {response.status_code} {reason}")
            raise exceptions.upload_failed(f"{response.status_code} {reason}".strip())

        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        public_id = body.get("public_id") if isinstance(body, dict) else None

        missing = [
            name for name, value in (("secure_url", secure_url), ("public_id", public_id))
            if not isinstance(value, str) or not value
        ]
        if missing:
            logger.error(f"Photo upload response missing {', '.join(missing)}")
            raise exceptions.upload_failed(f"response missing {', '.join(missing)}")

        logger.info(f"✅ Photo uploaded: {public_id}")
        return PackedPhoto(url=secure_url, public_id=public_id)

    @staticmethod
    def _json_body(response: httpx.Response):
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_reason(body) -> Optional[str]:
        # Cloudinary errors look like {"error": {"message": "..."}}
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
            if isinstance(message, str):
                return message
        return None

    async def aclose(self) -> None:
        """Close the internally created client."""
        if self._owns_client:
            await self._client.aclose()
