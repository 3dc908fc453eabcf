"""
==============================================================================
Shipment Schemas Module
==============================================================================

Pydantic models for shipment records exchanged with the backend.

The backend schema is owned by the server: almost every field may be absent
or null, so everything except the identifier is optional. Unknown fields are
kept on the model so that a PUT sends back the full record it received.

Includes:
- ShipmentRecord with nested address, history and cost blocks
- ShippingItem line items
- PackedPhoto (``shipped_items_photo``) attached during packing
- LogisticsClass derived from ``logistic_type``

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Logistic type value for carrier pickups managed by the seller
SELF_SERVICE = "self_service"

# Sub-status of shipments whose label can be printed
READY_TO_PRINT = "ready_to_print"


class LogisticsClass(str, enum.Enum):
    """
    Coarse logistics classification used by the packing floor.

    - SELF_MANAGED: self-service carrier pickup ("flex")
    - DISPATCH: any other logistic type
    """

    SELF_MANAGED = "self_managed"
    DISPATCH = "dispatch"


class BackendModel(BaseModel):
    """Lenient base: keeps unknown fields and accepts field names or aliases."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
    )


# =============================================================================
# NESTED BLOCKS
# =============================================================================

class PackedPhoto(BackendModel):
    """Remote copy of the packed-item photo."""
    url: Optional[str] = None
    public_id: Optional[str] = None


class ShippingItem(BackendModel):
    """Line item of a shipment."""
    id: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = None
    variation_id: Optional[int] = None
    variation_name: Optional[str] = None
    picture: Optional[str] = None
    seller_custom_field: Optional[str] = None
    user_product_id: Optional[str] = None


class StatusHistory(BackendModel):
    """Dates of coarse status changes."""
    date_cancelled: Optional[str] = None
    date_delivered: Optional[str] = None
    date_first_visit: Optional[str] = None
    date_handling: Optional[str] = None
    date_not_delivered: Optional[str] = None
    date_ready_to_ship: Optional[str] = None
    date_shipped: Optional[str] = None
    date_returned: Optional[str] = None


class SubstatusHistoryEntry(BackendModel):
    """One sub-status change."""
    date: Optional[str] = None
    substatus: Optional[str] = None
    status: Optional[str] = None


class ReceiverAddress(BackendModel):
    """Delivery address as captured by the marketplace."""
    address_line: Optional[str] = None
    street_name: Optional[str] = None
    street_number: Optional[str] = None
    comment: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    receiver_name: Optional[str] = None
    receiver_phone: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_phone: Optional[str] = None
    dni: Optional[str] = Field(default=None, alias="DNI")


class FastPackInfo(BackendModel):
    """Routing and billing data added by the packing operator's backend."""
    shift: Optional[str] = None
    driver: Optional[str] = None
    price_group: Optional[str] = None
    price: Optional[float] = None
    ml_bonus: Optional[float] = None
    seller_cost: Optional[float] = None
    handling: Optional[bool] = None
    billed: Optional[str] = None
    photo: Optional[str] = None
    routed: Optional[bool] = None
    controlled: Optional[bool] = None


class DeliveryTime(BackendModel):
    """Delivery window."""
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    estimated: Optional[str] = None


# =============================================================================
# SHIPMENT RECORD
# =============================================================================

class ShipmentRecord(BackendModel):
    """
    Shipment as returned by ``GET /shipments/{id}``.

    The identifier is frozen: it is assigned by the backend and never changes
    on the client. The packing workflow only changes ``substatus`` and
    ``shipped_items_photo`` before sending the record back.
    """

    id: int = Field(..., alias="_id", frozen=True)
    mode: Optional[str] = None
    order_id: Optional[str] = None
    buyer_nickname: Optional[str] = None
    order_cost: Optional[float] = None
    base_cost: Optional[float] = None
    ml_bonus: Optional[float] = None
    seller_cost: Optional[float] = None
    pack_id: Optional[int] = None

    status: Optional[str] = None
    substatus: Optional[str] = None
    status_history: Optional[StatusHistory] = None
    substatus_history: Optional[List[SubstatusHistoryEntry]] = None

    date_created: Optional[str] = None
    last_updated: Optional[str] = None
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    date_first_printed: Optional[str] = None

    tracking_number: Optional[str] = None
    tracking_method: Optional[str] = None
    qr: Optional[str] = None
    sender_id: Optional[int] = None
    logistic_type: Optional[str] = None

    receiver_address: Optional[ReceiverAddress] = None
    fast_pack: Optional[FastPackInfo] = None
    shipping_items: Optional[List[ShippingItem]] = None
    shipped_items_photo: Optional[PackedPhoto] = None
    delivery_time: Optional[DeliveryTime] = None

    task: Optional[str] = None
    comments: Optional[str] = None
    packing_comment: Optional[str] = None
    costs: Optional[Dict[str, Any]] = None
    version: Optional[int] = Field(default=None, alias="__v")

    @property
    def logistics_class(self) -> LogisticsClass:
        """Self-managed for self-service pickups, dispatch otherwise."""
        if self.logistic_type == SELF_SERVICE:
            return LogisticsClass.SELF_MANAGED
        return LogisticsClass.DISPATCH

    @property
    def has_packed_photo(self) -> bool:
        """Check if a packed-item photo is already attached."""
        return self.shipped_items_photo is not None

    @property
    def items(self) -> List[ShippingItem]:
        """Line items, empty when the backend sent none."""
        return list(self.shipping_items or [])

    @property
    def total_quantity(self) -> int:
        """Sum of line item quantities (missing quantities count as 0)."""
        return sum(item.quantity or 0 for item in self.items)

    def with_packed_photo(self, photo: PackedPhoto) -> "ShipmentRecord":
        """Return a copy carrying the given packed-item photo."""
        return self.model_copy(update={"shipped_items_photo": photo})

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize for ``PUT /shipments/{id}``.

        Uses the backend's field names and omits nulls, so fields the client
        never received are not overwritten with null.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
