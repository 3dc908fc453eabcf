"""
==============================================================================
Utilities Package
==============================================================================

Utility classes for the client.

Modules:
--------
- validators: Shipment code and credentials validation
- concurrency: AtomicFlag compare-and-set primitive

==============================================================================
"""

from .validators import CredentialsValidator, ShipmentCodeValidator
from .concurrency import AtomicFlag

__all__ = [
    "CredentialsValidator",
    "ShipmentCodeValidator",
    "AtomicFlag",
]
