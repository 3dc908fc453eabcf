"""
==============================================================================
Services Package - Backend Access
==============================================================================

Clients and services over the shipments backend, the auth endpoints and
the photo storage provider.

Modules:
--------
- shipment_client: ShipmentBackend protocol, ShipmentApiClient
- shipment_service: ShipmentService (packing summary)
- auth_service: AuthService (login, register, logout)
- photo_storage: PhotoStorage protocol, CloudinaryPhotoStorage

==============================================================================
"""

from .shipment_client import ShipmentApiClient, ShipmentBackend
from .shipment_service import ShipmentService
from .auth_service import AuthService
from .photo_storage import CloudinaryPhotoStorage, PhotoStorage

__all__ = [
    "ShipmentApiClient",
    "ShipmentBackend",
    "ShipmentService",
    "AuthService",
    "CloudinaryPhotoStorage",
    "PhotoStorage",
]
