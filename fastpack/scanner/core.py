"""
==============================================================================
Barcode Decoder Core Module
==============================================================================

Turns camera frames into at most one validated shipment code per session.

Features:
---------
- One frame in flight at a time (compare-and-set guard, losers are dropped)
- Debounce: after a valid code is reported, frames are dropped until reset()
- Symbology-specific extraction:
  - LINEAR (CODE128 and friends): raw text is the value
  - MATRIX (QR): raw text is a JSON object, its "id" field is the value
  - OTHER: ignored
- Validation: exactly 11 decimal digits
- Recognizer errors end the current frame only

Flow:
-----
    frame ──▶ [released / has scanned / in flight?] ──yes──▶ discard
                          │ no
                          ▼
                    recognize(frame)
                          │
          ┌───────────────┼────────────────┐
          ▼               ▼                ▼
       LINEAR           MATRIX           OTHER
       raw text      json["id"]         ignored
          └───────┬───────┘
                  ▼
          11 digits? ──no──▶ ignored
                  │ yes
                  ▼
      first valid of batch ──▶ on_decoded(DecodedCode), has scanned = True

==============================================================================
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from fastpack.utils.concurrency import AtomicFlag
from fastpack.utils.validators import ShipmentCodeValidator


# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# SYMBOLOGY CONSTANTS
# =============================================================================

class Symbology(str, enum.Enum):
    """Family of the symbol a value was read from."""

    LINEAR = "linear"
    MATRIX = "matrix"
    OTHER = "other"


# pyzbar type names grouped by family
LINEAR_TYPES = frozenset({
    "CODE128", "CODE39", "CODE93", "I25", "CODABAR",
    "EAN13", "EAN8", "UPCA", "UPCE", "DATABAR", "DATABAR_EXP",
})
MATRIX_TYPES = frozenset({"QRCODE"})


def symbology_for(type_name: Optional[str]) -> Symbology:
    """Map a recognizer type name (e.g. 'QRCODE') to its family."""
    name = (type_name or "").upper()
    if name in LINEAR_TYPES:
        return Symbology.LINEAR
    if name in MATRIX_TYPES:
        return Symbology.MATRIX
    return Symbology.OTHER


@dataclass(frozen=True)
class DecodedCode:
    """A validated value extracted from a scanned symbol."""

    value: str
    symbology: Symbology
    raw: str


Recognizer = Callable[[Any], Iterable[Any]]


def pyzbar_recognizer(symbol_names: Sequence[str]) -> Recognizer:
    """
    Build a recognizer backed by pyzbar restricted to the given symbologies.

    pyzbar loads the zbar shared library on import, so the import happens
    here rather than when this module is loaded.

    Args:
        symbol_names: pyzbar ZBarSymbol names, e.g. ["QRCODE", "CODE128"]

    Returns:
        Callable taking a frame and returning pyzbar Decoded results
    """
    from pyzbar.pyzbar import ZBarSymbol, decode

    symbols = []
    for name in symbol_names:
        try:
            symbols.append(ZBarSymbol[name.upper()])
        except KeyError:
            logger.warning(f"Unknown barcode symbology ignored: {name}")

    def recognize(frame: Any) -> List[Any]:
        return decode(frame, symbols=symbols or None)

    return recognize


class BarcodeDecoder:
    """
    Frame-by-frame barcode decoder with an in-flight guard and debounce.

    ``submit_frame`` may be called from a capture thread. The callback runs on
    that same thread, so consumers that own state elsewhere must marshal the
    value (see ScanWorkflowController.post_decoded).

    Attributes:
        validator: ShipmentCodeValidator applied to extracted values

    Example:
        >>> decoder = BarcodeDecoder(on_decoded=print)
        >>> decoder.submit_frame(frame)
        DecodedCode(value='12345678901', symbology=<Symbology.LINEAR: 'linear'>, ...)
        >>> decoder.submit_frame(frame)   # dropped until reset()
        >>> decoder.reset()
    """

    def __init__(
        self,
        on_decoded: Optional[Callable[[DecodedCode], None]] = None,
        recognizer: Optional[Recognizer] = None,
        symbols: Optional[Sequence[str]] = None,
        validator: Optional[ShipmentCodeValidator] = None
    ) -> None:
        """
        Initialize decoder.

        Args:
            on_decoded: Callback for the one valid code of a session
            recognizer: Frame → symbols callable (pyzbar by default)
            symbols: Symbology names for the default recognizer
            validator: Code validator (11 digits by default)
        """
        self._on_decoded = on_decoded
        self._recognizer = recognizer or pyzbar_recognizer(symbols or ["QRCODE", "CODE128"])
        self.validator = validator or ShipmentCodeValidator()

        self._in_flight = AtomicFlag(False)
        self._has_scanned = AtomicFlag(False)
        self._released = AtomicFlag(False)

        logger.debug("Barcode decoder created")

    # =========================================================================
    # SESSION STATE
    # =========================================================================

    @property
    def has_scanned(self) -> bool:
        """True once a valid code was reported in this session."""
        return self._has_scanned.get()

    @property
    def in_flight(self) -> bool:
        """True while a frame is being recognized."""
        return self._in_flight.get()

    @property
    def is_released(self) -> bool:
        return self._released.get()

    def set_callback(self, on_decoded: Optional[Callable[[DecodedCode], None]]) -> None:
        """Replace the decode callback."""
        self._on_decoded = on_decoded

    def reset(self) -> None:
        """Allow a new code to be reported."""
        self._has_scanned.set(False)
        self._in_flight.set(False)
        logger.debug("Decoder reset for new scan")

    def release(self) -> None:
        """Dispose the recognizer. Safe to call more than once."""
        if self._released.get_and_set(True):
            return

        close = getattr(self._recognizer, "close", None)
        if callable(close):
            try:
                close()
            except Exception as e:
                logger.warning(f"Recognizer close error: {e}")

        self._recognizer = None
        logger.debug("Barcode decoder released")

    # =========================================================================
    # EXTRACTION METHODS
    # =========================================================================

    @staticmethod
    def extract_value(raw: str, symbology: Symbology) -> Optional[str]:
        """
        Extract the candidate value of a symbol.

        Args:
            raw: Raw decoded text
            symbology: Symbol family

        Returns:
            Extracted value, or None when nothing can be extracted
        """
        if symbology is Symbology.LINEAR:
            return raw

        if symbology is Symbology.MATRIX:
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, TypeError):
                logger.debug(f"QR payload is not JSON: {raw!r}")
                return None

            if not isinstance(data, dict):
                return None

            value = data.get("id")
            if isinstance(value, bool) or not isinstance(value, (str, int)):
                return None
            return str(value)

        return None

    # =========================================================================
    # FRAME PROCESSING METHODS
    # =========================================================================

    def submit_frame(self, frame: Any) -> Optional[DecodedCode]:
        """
        Decode a single frame.

        Args:
            frame: Image (numpy array); closed after use if it has close()

        Returns:
            The reported DecodedCode, or None if dropped or nothing valid
        """
        if self._released.get() or self._has_scanned.get():
            self._discard(frame)
            return None

        if not self._in_flight.compare_and_set(False, True):
            self._discard(frame)
            return None

        try:
            if frame is None or getattr(frame, "size", 1) == 0:
                return None

            recognizer = self._recognizer
            if recognizer is None:
                return None

            try:
                symbols = list(recognizer(frame) or [])
            except Exception as e:
                logger.error(f"Decode error: {e}")
                return None

            return self._process_symbols(symbols)
        finally:
            self._in_flight.set(False)
            self._discard(frame)

    def _process_symbols(self, symbols: List[Any]) -> Optional[DecodedCode]:
        for symbol in symbols:
            try:
                raw = self._raw_text(symbol)
                if raw is None:
                    continue

                symbology = symbology_for(getattr(symbol, "type", None))
                value = self.extract_value(raw, symbology)

                if value is None or not self.validator.is_valid(value):
                    logger.debug(
                        f"Ignored barcode: raw={raw!r}, extracted={value!r}, "
                        f"type={getattr(symbol, 'type', None)}"
                    )
                    continue

                if not self._has_scanned.compare_and_set(False, True):
                    return None

                code = DecodedCode(value=value, symbology=symbology, raw=raw)
                logger.info(f"📦 Valid code found: {value} ({symbology.value})")
                self._notify(code)
                return code

            except Exception as e:
                logger.error(f"Barcode processing error: {e}")

        return None

    @staticmethod
    def _raw_text(symbol: Any) -> Optional[str]:
        data = getattr(symbol, "data", None)
        if data is None:
            return None
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return str(data)

    def _notify(self, code: DecodedCode) -> None:
        if self._on_decoded is None:
            return
        try:
            self._on_decoded(code)
        except Exception as e:
            logger.error(f"Decode callback error: {e}")

    @staticmethod
    def _discard(frame: Any) -> None:
        close = getattr(frame, "close", None)
        if callable(close):
            try:
                close()
            except Exception as e:
                logger.debug(f"Frame close error: {e}")
