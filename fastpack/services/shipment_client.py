"""
==============================================================================
Shipment API Client Module
==============================================================================

HTTP client for the shipments REST API.

This module implements:
- ShipmentBackend: Protocol the workflow controllers depend on
- ShipmentApiClient: httpx implementation of the protocol

Endpoints:
---------
    GET  /shipments?<query>      → list of records
    GET  /shipments/{id}         → record (404 or empty body → None)
    GET  /shipments/for-packing  → list of records pending packing
    PUT  /shipments/{id}         → updated record (empty body → None)

Payload Handling:
----------------
- Lists: items failing validation are skipped with a warning, the rest
  are returned
- Single records: a payload failing validation raises INVALID_RESPONSE

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

import httpx
from pydantic import ValidationError

from fastpack.core import exceptions
from fastpack.core.http import ApiClient
from fastpack.schemas.shipment import ShipmentRecord


# Module logger
logger = logging.getLogger(__name__)


class ShipmentBackend(Protocol):
    """Operations the packing workflow needs from the shipments backend."""

    async def get_shipment(self, shipment_id: int) -> Optional[ShipmentRecord]:
        ...

    async def update_shipment(self, record: ShipmentRecord) -> Optional[ShipmentRecord]:
        ...

    async def list_for_packing(self) -> List[ShipmentRecord]:
        ...


class ShipmentApiClient(ApiClient):
    """
    Shipments REST client.

    Example:
        >>> client = ShipmentApiClient(create_http_client(token_store))
        >>> record = await client.get_shipment(2034578901)
        >>> pending = await client.list_for_packing()
    """

    BASE_PATH = "/shipments"

    # =========================================================================
    # LIST OPERATIONS
    # =========================================================================

    async def find_shipments(
        self,
        tracking_number: Optional[str] = None,
        status: Optional[str] = None,
        statuses: Optional[Union[str, Sequence[str]]] = None,
        order_id: Optional[str] = None,
        sender_id: Optional[int] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[ShipmentRecord]:
        """
        List shipments matching the given filters.

        Args:
            tracking_number: Carrier tracking number
            status: Single coarse status
            statuses: Several statuses (list or comma separated string)
            order_id: Marketplace order id
            sender_id: Seller id
            date_from: Lower creation date bound (ISO date)
            date_to: Upper creation date bound (ISO date)
            page: Page number
            limit: Page size

        Returns:
            Matching shipment records
        """
        if statuses is not None and not isinstance(statuses, str):
            statuses = ",".join(statuses)

        params = {
            "tracking_number": tracking_number,
            "status": status,
            "statuses": statuses,
            "order_id": order_id,
            "sender_id": sender_id,
            "date_from": date_from,
            "date_to": date_to,
            "page": page,
            "limit": limit,
        }
        return await self.search_shipments(
            {key: value for key, value in params.items() if value is not None}
        )

    async def search_shipments(self, params: Mapping[str, Any]) -> List[ShipmentRecord]:
        """List shipments with a free-form query map."""
        response = await self._send("GET", self.BASE_PATH, params=dict(params))
        return self._parse_list(response, self.BASE_PATH)

    async def list_for_packing(self) -> List[ShipmentRecord]:
        """List shipments waiting to be packed."""
        path = f"{self.BASE_PATH}/for-packing"
        response = await self._send("GET", path)
        shipments = self._parse_list(response, path)
        logger.info(f"📋 {len(shipments)} shipments pending packing")
        return shipments

    # =========================================================================
    # SINGLE RECORD OPERATIONS
    # =========================================================================

    async def get_shipment(self, shipment_id: int) -> Optional[ShipmentRecord]:
        """
        Fetch one shipment.

        Returns:
            The record, or None when the backend does not know the id
        """
        path = f"{self.BASE_PATH}/{shipment_id}"
        response = await self._send("GET", path, allowed_statuses=(404,))

        if response.status_code == 404:
            logger.info(f"Shipment {shipment_id} not found")
            return None

        return self._parse_record(response, path)

    async def update_shipment(self, record: ShipmentRecord) -> Optional[ShipmentRecord]:
        """
        Replace a shipment with the given record.

        Returns:
            The server's copy, or None when the server answered without a body
        """
        path = f"{self.BASE_PATH}/{record.id}"
        response = await self._send("PUT", path, json=record.to_payload())
        updated = self._parse_record(response, path)

        if updated is None:
            logger.warning(f"Update of shipment {record.id} returned an empty body")
        else:
            logger.info(f"✅ Shipment {record.id} updated")

        return updated

    # =========================================================================
    # PAYLOAD PARSING
    # =========================================================================

    def _parse_record(self, response: httpx.Response, path: str) -> Optional[ShipmentRecord]:
        body = self._decode(response, path)
        if body is None:
            return None

        try:
            return ShipmentRecord.model_validate(body)
        except ValidationError as e:
            logger.error(f"Invalid shipment payload from {path}: {e}")
            raise exceptions.invalid_response(path, f"{e.error_count()} invalid fields")

    def _parse_list(self, response: httpx.Response, path: str) -> List[ShipmentRecord]:
        body = self._decode(response, path)
        if body is None:
            raise exceptions.empty_response(path)

        if not isinstance(body, list):
            raise exceptions.invalid_response(path, "expected a list of shipments")

        shipments: List[ShipmentRecord] = []
        for index, item in enumerate(body):
            try:
                shipments.append(ShipmentRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid shipment #{index} from {path}: {e.error_count()} errors")

        return shipments

    def _decode(self, response: httpx.Response, path: str) -> Any:
        try:
            return self._json_or_none(response)
        except ValueError:
            raise exceptions.invalid_response(path, "body is not JSON")

