"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Wire schemas for the shipments and auth backend, validated with Pydantic.

This package provides:
- Shipment: ShipmentRecord and its nested blocks
- Auth: Login/register payloads and the token response

==============================================================================
"""

from .shipment import (
    LogisticsClass,
    PackedPhoto,
    ShipmentRecord,
    ShippingItem,
    READY_TO_PRINT,
    SELF_SERVICE,
)
from .auth import AuthResponse, LoginRequest, RegisterRequest, UserProfile

__all__ = [
    # Shipment
    "LogisticsClass",
    "PackedPhoto",
    "ShipmentRecord",
    "ShippingItem",
    "READY_TO_PRINT",
    "SELF_SERVICE",
    # Auth
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserProfile",
]
