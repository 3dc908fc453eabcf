"""
==============================================================================
Photo Upload Coordinator Module
==============================================================================

Two-phase "upload photo, then persist record" sequence.

Flow:
-----
    confirm(record, photo)
        │
        ▼
    storage.upload(photo) ──failure──▶ FAILURE (stage=upload, record unchanged)
        │ PackedPhoto
        ▼
    record.with_packed_photo(...)
        │
        ▼
    backend.update_shipment(...) ──failure / empty──▶ FAILURE (stage=persist,
        │ server record                                 locally updated record)
        ▼
    SUCCESS (server record)

No step is retried automatically; calling confirm again restarts from the
upload.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from fastpack.core.exceptions import AppException
from fastpack.schemas.shipment import ShipmentRecord
from fastpack.services.photo_storage import PhotoStorage
from fastpack.services.shipment_client import ShipmentBackend

from .states import UploadOutcome


# Module logger
logger = logging.getLogger(__name__)


class UploadStage(str, enum.Enum):
    """Phase in which a confirmation stopped."""

    UPLOAD = "upload"
    PERSIST = "persist"


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of one confirmation.

    Attributes:
        outcome: SUCCESS or FAILURE
        record: Server record on success; on failure the record the screen
            should keep (unchanged after an upload failure, carrying the new
            photo after a persist failure)
        stage: Phase that failed, None on success
        error: Failure message, None on success
    """

    outcome: UploadOutcome
    record: ShipmentRecord
    stage: Optional[UploadStage] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is UploadOutcome.SUCCESS


class PhotoUploadCoordinator:
    """Sequences photo upload and record persistence."""

    def __init__(self, storage: PhotoStorage, backend: ShipmentBackend) -> None:
        self._storage = storage
        self._backend = backend

    async def confirm(
        self,
        record: ShipmentRecord,
        local_photo: Union[str, Path]
    ) -> UploadResult:
        """
        Upload the photo and save the record carrying it.

        Args:
            record: Shipment on screen
            local_photo: Path of the captured photo

        Returns:
            UploadResult; failures are reported, never raised
        """
        try:
            photo = await self._storage.upload(local_photo)
        except AppException as e:
            logger.warning(f"Upload phase failed for shipment {record.id}: {e.message}")
            return UploadResult(UploadOutcome.FAILURE, record, UploadStage.UPLOAD, e.message)

        if not photo.url or not photo.public_id:
            logger.warning(f"Upload of shipment {record.id} photo returned incomplete data")
            return UploadResult(
                UploadOutcome.FAILURE, record, UploadStage.UPLOAD,
                "Photo storage returned incomplete data"
            )

        updated = record.with_packed_photo(photo)
        logger.debug(f"Saving shipment {record.id} with photo {photo.url}")

        try:
            saved = await self._backend.update_shipment(updated)
        except AppException as e:
            logger.warning(f"Persist phase failed for shipment {record.id}: {e.message}")
            return UploadResult(UploadOutcome.FAILURE, updated, UploadStage.PERSIST, e.message)

        if saved is None:
            logger.warning(f"Server returned no record for shipment {record.id}")
            return UploadResult(
                UploadOutcome.FAILURE, updated, UploadStage.PERSIST,
                "Empty response from server"
            )

        logger.info(f"📦 Shipment {saved.id} packed with photo")
        return UploadResult(UploadOutcome.SUCCESS, saved)
