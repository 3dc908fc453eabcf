"""
==============================================================================
Scanner Package - Barcode Detection
==============================================================================

Barcode decoding with pyzbar and frame capture with OpenCV.

Classes:
--------
- BarcodeDecoder: Frame decoder with in-flight guard and debounce
- DecodedCode: Validated value plus its symbology
- CameraFeed: Capture thread feeding a decoder (fastpack.scanner.camera)

==============================================================================
"""

from .core import BarcodeDecoder, DecodedCode, Symbology, symbology_for

__all__ = [
    "BarcodeDecoder",
    "DecodedCode",
    "Symbology",
    "symbology_for",
]
