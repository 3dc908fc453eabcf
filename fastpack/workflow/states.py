"""
==============================================================================
Packing Screen States Module
==============================================================================

States of the scan-to-update workflow, one frozen dataclass per state.

State Machine:
-------------
                    permission denied
    ┌──────┐  ───────────────────────────▶ ┌──────────────────────┐
    │ Idle │                               │ RequestingPermission │
    └──────┘  ──┐                          └──────────────────────┘
                │ granted / start_scanning            │ granted
                ▼                                     ▼
            ┌──────────┐  code scanned   ┌─────────┐
    ┌─────▶ │ Scanning │ ──────────────▶ │ Loading │
    │       └──────────┘                 └─────────┘
    │ retry()                  found │    │ not found  │ failure / bad id
    │                                ▼    ▼            ▼
    │                    ┌────────────┐ ┌──────────┐ ┌───────┐
    │                    │ ShowResult │ │ NoResult │ │ Error │
    │                    └────────────┘ └──────────┘ └───────┘
    │                                        │            │
    └────────────────────────────────────────┴────────────┘

ShowResult carries the photo sub-state (pending photo, uploading flag, last
upload outcome) and is replaced in place while the operator works on it.

==============================================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from fastpack.schemas.shipment import ShipmentRecord


class UploadOutcome(str, enum.Enum):
    """Result of the last photo confirmation."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Idle:
    """Screen opened, nothing requested yet."""


@dataclass(frozen=True)
class RequestingPermission:
    """Camera permission missing or camera unavailable."""


@dataclass(frozen=True)
class Scanning:
    """Waiting for a decoded code."""


@dataclass(frozen=True)
class Loading:
    """Looking the scanned code up."""


@dataclass(frozen=True)
class ShowResult:
    """
    A shipment is on screen.

    Attributes:
        record: Shipment being reviewed
        pending_photo: Captured but unconfirmed photo (local path)
        uploading: True while the upload/persist sequence runs
        upload_outcome: Outcome of the last confirmation, None if none yet
    """

    record: ShipmentRecord
    pending_photo: Optional[str] = None
    uploading: bool = False
    upload_outcome: Optional[UploadOutcome] = None

    def __post_init__(self) -> None:
        if self.uploading and self.pending_photo is None:
            raise ValueError("ShowResult cannot be uploading without a pending photo")

    def update(self, **changes) -> "ShowResult":
        """Copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class NoResult:
    """The backend does not know the scanned code."""

    scanned_code: str


@dataclass(frozen=True)
class Error:
    """Recoverable failure shown to the operator."""

    message: str


ScreenState = Union[Idle, RequestingPermission, Scanning, Loading, ShowResult, NoResult, Error]


@dataclass
class ScanSession:
    """
    Mutable session data owned by the controller.

    Attributes:
        state: Current screen state
        last_code: Last decoded value accepted for lookup
    """

    state: ScreenState = field(default_factory=Idle)
    last_code: Optional[str] = None

    @property
    def record(self) -> Optional[ShipmentRecord]:
        """Loaded shipment, if the screen shows one."""
        if isinstance(self.state, ShowResult):
            return self.state.record
        return None

    @property
    def pending_photo(self) -> Optional[str]:
        """Captured but unconfirmed photo, if any."""
        if isinstance(self.state, ShowResult):
            return self.state.pending_photo
        return None
