"""
==============================================================================
Scan Workflow Controller Module
==============================================================================

State machine of the packing screen: permission, scan, lookup, photo review
and persistence.

Threading Model:
---------------
- Every state change happens on one asyncio event loop
- The barcode decoder calls back from the camera thread; post_decoded
  hands the code over to the loop with call_soon_threadsafe
- Network work runs in tasks tracked by the controller; close() cancels them
- A task that finishes after the state moved on leaves the state alone

Events:
-------
    on_permission_result(granted)   camera permission answer
    start_scanning()                operator opens the scanner
    on_code_scanned(code)           decoded value (on the loop)
    post_decoded(code)              decoded value (from any thread)
    retry()                         scan again after NoResult / Error
    capture_photo(path)             photo taken for the shown shipment
    clear_photo()                   photo discarded
    confirm_photo()                 upload photo and save shipment
    go_back_to_idle()               leave the current result
    close()                         screen closed

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Coroutine, List, Optional, Set, Union

from fastpack.core.exceptions import AppException
from fastpack.scanner.core import BarcodeDecoder, DecodedCode
from fastpack.schemas.shipment import ShipmentRecord
from fastpack.services.shipment_client import ShipmentBackend
from fastpack.utils.validators import ShipmentCodeValidator

from .states import (
    Error,
    Idle,
    Loading,
    NoResult,
    RequestingPermission,
    ScanSession,
    Scanning,
    ScreenState,
    ShowResult,
    UploadOutcome,
)
from .upload import PhotoUploadCoordinator, UploadResult


# Module logger
logger = logging.getLogger(__name__)

StateListener = Callable[[ScreenState], None]
AdvanceListener = Callable[[ShipmentRecord], None]

UPLOAD_START_ERROR = "Could not start the photo upload."
LOOKUP_ERROR = "Could not look up the shipment."


class ScanWorkflowController:
    """
    Controller owning one packing session.

    Attributes:
        _session: Current ScanSession
        _backend: Shipments backend used for lookups
        _coordinator: Upload/persist sequence
        _decoder: Barcode decoder reporting into this controller (optional)

    Example:
        >>> controller = ScanWorkflowController(backend, coordinator, decoder)
        >>> controller.on_permission_result(True)
        >>> task = controller.on_code_scanned("02034578901")
        >>> await task
        >>> controller.state
        ShowResult(record=ShipmentRecord(id=2034578901, ...), ...)
    """

    def __init__(
        self,
        backend: ShipmentBackend,
        coordinator: PhotoUploadCoordinator,
        decoder: Optional[BarcodeDecoder] = None,
        validator: Optional[ShipmentCodeValidator] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> None:
        """
        Initialize the controller.

        Args:
            backend: Shipments backend
            coordinator: Photo upload coordinator
            decoder: Decoder whose callback is routed to post_decoded
            validator: Shipment code validator
            loop: Loop owning the state (the running loop by default)
        """
        self._backend = backend
        self._coordinator = coordinator
        self._decoder = decoder
        self._validator = validator or ShipmentCodeValidator()
        self._loop = loop or self._running_loop()

        self._session = ScanSession()
        self._closed = False
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []
        self._advance_listeners: List[AdvanceListener] = []

        if decoder is not None:
            decoder.set_callback(self.post_decoded)

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    @property
    def state(self) -> ScreenState:
        return self._session.state

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        """Network tasks still running."""
        return set(self._tasks)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state listener.

        Returns:
            Function removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_ready_to_advance(self, listener: AdvanceListener) -> None:
        """Register a listener called with the saved record after a successful upload."""
        self._advance_listeners.append(listener)

    # =========================================================================
    # PERMISSION AND SCANNING EVENTS
    # =========================================================================

    def on_permission_result(self, granted: bool) -> None:
        """Handle the camera permission answer."""
        if self._ignored("permission result"):
            return

        state = self.state
        logger.debug(f"Permission result granted={granted} in {type(state).__name__}")

        if granted:
            if not isinstance(state, (Loading, ShowResult)):
                self._enter_scanning()
        elif not isinstance(state, ShowResult):
            self._set_state(RequestingPermission())

    def start_scanning(self) -> None:
        """Open the scanner from Idle; acts as retry() from NoResult / Error."""
        if self._ignored("start scanning"):
            return

        state = self.state
        if isinstance(state, Idle):
            self._enter_scanning()
        elif isinstance(state, (NoResult, Error)):
            self.retry()
        else:
            logger.debug(f"start_scanning ignored in {type(state).__name__}")

    def on_code_scanned(self, code: Union[DecodedCode, str]) -> Optional[asyncio.Task]:
        """
        Handle a decoded code. Must run on the controller's loop.

        Returns:
            The lookup task, or None when the code was ignored or invalid
        """
        value = code.value if isinstance(code, DecodedCode) else code

        if self._ignored(f"code {value!r}"):
            return None

        if not isinstance(self.state, Scanning):
            logger.warning(f"Code {value!r} ignored, state is {type(self.state).__name__}")
            return None

        self._session.last_code = value
        self._set_state(Loading())

        try:
            shipment_id = self._validator.parse_id(value)
        except AppException as e:
            logger.error(f"Invalid shipment code scanned: {value!r}")
            self._set_state(Error(e.message))
            return None

        return self._spawn(self._lookup(value, shipment_id))

    def post_decoded(self, code: DecodedCode) -> None:
        """
        Decoder callback; safe to call from any thread.

        The code is processed on the controller's loop.
        """
        if self._closed:
            return

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error(f"No event loop to deliver code {code.value!r}")
            return

        loop.call_soon_threadsafe(self.on_code_scanned, code)

    def retry(self) -> None:
        """Go back to scanning after NoResult or Error."""
        if self._ignored("retry"):
            return

        state = self.state
        if not isinstance(state, (NoResult, Error)):
            logger.debug(f"retry ignored in {type(state).__name__}")
            return

        self._enter_scanning()
        logger.info("🔄 Retrying scan")

    # =========================================================================
    # PHOTO EVENTS
    # =========================================================================

    def capture_photo(self, photo: Union[str, Path]) -> None:
        """Set the pending photo of the shown shipment."""
        self._update_result("capture photo", pending_photo=str(photo), upload_outcome=None)

    def clear_photo(self) -> None:
        """Drop the pending photo of the shown shipment."""
        self._update_result("clear photo", pending_photo=None, upload_outcome=None)

    def confirm_photo(self) -> Optional[asyncio.Task]:
        """
        Start uploading the pending photo.

        Returns:
            The upload task, or None when nothing was started
        """
        if self._ignored("confirm photo"):
            return None

        state = self.state
        if not isinstance(state, ShowResult):
            logger.error(f"confirm_photo called in {type(state).__name__}")
            self._set_state(Error(UPLOAD_START_ERROR))
            return None

        if state.uploading:
            logger.debug("Upload already running")
            return None

        if state.pending_photo is None:
            logger.warning("confirm_photo called without a pending photo")
            return None

        self._set_state(state.update(uploading=True, upload_outcome=None))
        return self._spawn(self._upload(state.record, state.pending_photo))

    def go_back_to_idle(self) -> None:
        """Leave the current screen state."""
        if self._ignored("go back to idle"):
            return
        self._set_state(Idle())

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def close(self) -> None:
        """Cancel running tasks, release the decoder and drop the session."""
        if self._closed:
            return

        self._closed = True

        for task in list(self._tasks):
            task.cancel()

        if self._decoder is not None:
            self._decoder.set_callback(None)
            self._decoder.release()

        self._session = ScanSession()
        self._listeners.clear()
        self._advance_listeners.clear()
        logger.info("🛑 Scan workflow closed")

    # =========================================================================
    # BACKGROUND WORK
    # =========================================================================

    async def _lookup(self, code: str, shipment_id: int) -> None:
        logger.info(f"🔍 Looking up shipment {shipment_id}")

        try:
            record = await self._backend.get_shipment(shipment_id)
        except AppException as e:
            if self._still_loading():
                logger.error(f"Lookup of {shipment_id} failed: {e.message}")
                self._set_state(Error(e.message))
            return
        except Exception as e:
            if self._still_loading():
                logger.exception(f"Unexpected error looking up {shipment_id}")
                self._set_state(Error(f"{LOOKUP_ERROR} ({e})"))
            return

        if not self._still_loading():
            logger.debug(f"Lookup of {shipment_id} finished after the state moved on")
            return

        if record is None:
            self._set_state(NoResult(code))
        else:
            self._set_state(ShowResult(record))

    async def _upload(self, record: ShipmentRecord, photo: str) -> None:
        try:
            result = await self._coordinator.confirm(record, photo)
        except Exception as e:
            logger.exception(f"Unexpected error confirming shipment {record.id}")
            result = UploadResult(UploadOutcome.FAILURE, record, error=str(e))

        state = self.state
        if self._closed or not isinstance(state, ShowResult) or not state.uploading:
            logger.debug("Upload finished after the state moved on")
            return

        if not result.succeeded:
            self._set_state(state.update(
                record=result.record,
                uploading=False,
                upload_outcome=UploadOutcome.FAILURE,
            ))
            return

        self._session = ScanSession()
        if self._decoder is not None:
            self._decoder.reset()
        self._set_state(ShowResult(result.record, upload_outcome=UploadOutcome.SUCCESS))

        for listener in list(self._advance_listeners):
            try:
                listener(result.record)
            except Exception as e:
                logger.error(f"Advance listener error: {e}")

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _set_state(self, state: ScreenState) -> None:
        previous = self._session.state
        self._session.state = state
        logger.debug(f"State {type(previous).__name__} -> {type(state).__name__}")

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener error: {e}")

    def _enter_scanning(self) -> None:
        self._set_state(Scanning())
        if self._decoder is not None:
            self._decoder.reset()

    def _update_result(self, action: str, **changes) -> None:
        if self._ignored(action):
            return

        state = self.state
        if not isinstance(state, ShowResult) or state.uploading:
            logger.debug(f"{action} ignored in {type(state).__name__}")
            return

        self._set_state(state.update(**changes))

    def _ignored(self, event: str) -> bool:
        if self._closed:
            logger.debug(f"{event} ignored, workflow closed")
        return self._closed

    def _still_loading(self) -> bool:
        return not self._closed and isinstance(self.state, Loading)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = loop

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Workflow task failed: {error!r}")

    @staticmethod
    def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None
