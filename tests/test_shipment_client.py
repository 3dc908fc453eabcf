"""
==============================================================================
Shipment Client Tests
==============================================================================

Tests for the shipments REST client against the in-process fake backend.

==============================================================================
"""

import httpx
import pytest

from fastpack.core.exceptions import AppException
from fastpack.core.http import create_http_client
from fastpack.core.security import TokenStore
from fastpack.services.shipment_client import ShipmentApiClient
from fastpack.services.shipment_service import ShipmentService

from conftest import SHIPMENT_ID, shipment_payload


class TestGetShipment:
    """Tests for GET /shipments/{id}."""

    async def test_found(self, backend_app, shipment_client):
        """Test an existing shipment is returned."""
        backend_app.state.shipments[SHIPMENT_ID] = shipment_payload()

        record = await shipment_client.get_shipment(SHIPMENT_ID)

        assert record.id == SHIPMENT_ID
        assert record.buyer_nickname == "COMPRADOR123"

    async def test_not_found_is_none(self, shipment_client):
        """Test a 404 is a "not found" result, not an error."""
        assert await shipment_client.get_shipment(12345678901) is None

    async def test_sends_bearer_token(self, backend_app, shipment_client):
        """Test the stored token is attached."""
        await shipment_client.get_shipment(1)
        assert backend_app.state.seen_auth == ["Bearer test-token"]

    async def test_no_token_no_header(self, backend_app, settings):
        """Test requests go out without Authorization when logged out."""
        client = ShipmentApiClient(
            create_http_client(TokenStore(), settings, transport=httpx.ASGITransport(app=backend_app))
        )

        await client.get_shipment(1)

        assert backend_app.state.seen_auth == [None]

    async def test_server_error(self, backend_app, shipment_client):
        """Test a 5xx becomes API_ERROR with its status."""
        backend_app.state.fail_with = 500

        with pytest.raises(AppException) as exc_info:
            await shipment_client.get_shipment(SHIPMENT_ID)

        assert exc_info.value.code == "API_ERROR"
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "API error: 500 Internal Server Error"

    async def test_invalid_payload(self, backend_app, shipment_client):
        """Test a record without id is rejected."""
        backend_app.state.shipments[SHIPMENT_ID] = {"status": "x"}

        with pytest.raises(AppException) as exc_info:
            await shipment_client.get_shipment(SHIPMENT_ID)

        assert exc_info.value.code == "INVALID_RESPONSE"


class TestUpdateShipment:
    """Tests for PUT /shipments/{id}."""

    async def test_sends_full_record(self, backend_app, shipment_client, make_record, packed_photo):
        """Test the body carries the record by alias and the server copy is returned."""
        record = make_record(warehouse="B2").with_packed_photo(packed_photo)

        saved = await shipment_client.update_shipment(record)

        stored = backend_app.state.shipments[SHIPMENT_ID]
        assert stored["_id"] == SHIPMENT_ID
        assert stored["warehouse"] == "B2"
        assert stored["shipped_items_photo"]["public_id"] == packed_photo.public_id
        assert saved.updated_at == "2025-01-16T09:00:00.000Z"
        assert saved.shipped_items_photo == packed_photo

    async def test_empty_body_is_none(self, backend_app, shipment_client, make_record):
        """Test an empty answer is reported as None."""
        backend_app.state.empty_put = True
        assert await shipment_client.update_shipment(make_record()) is None


class TestListShipments:
    """Tests for list endpoints."""

    async def test_for_packing(self, backend_app, shipment_client):
        """Test the packing list is returned."""
        backend_app.state.shipments = {i: shipment_payload(i) for i in (1, 2, 3)}

        shipments = await shipment_client.list_for_packing()

        assert [s.id for s in shipments] == [1, 2, 3]

    async def test_invalid_items_skipped(self, backend_app, shipment_client):
        """Test items failing validation are skipped."""
        backend_app.state.shipments = {
            1: shipment_payload(1),
            2: {"status": "no id"},
            3: shipment_payload(3),
        }

        shipments = await shipment_client.list_for_packing()

        assert [s.id for s in shipments] == [1, 3]

    async def test_find_shipments_query(self, backend_app, shipment_client):
        """Test named filters become query parameters, unset ones are omitted."""
        backend_app.state.shipments = {
            1: shipment_payload(1, status="ready_to_ship"),
            2: shipment_payload(2, status="shipped"),
        }

        shipments = await shipment_client.find_shipments(
            status="shipped", statuses=["shipped", "delivered"], sender_id=99, page=2
        )

        assert [s.id for s in shipments] == [2]
        assert backend_app.state.last_query == {
            "status": "shipped",
            "statuses": "shipped,delivered",
            "sender_id": "99",
            "page": "2",
        }

    async def test_search_shipments(self, backend_app, shipment_client):
        """Test the free-form query map is passed through."""
        await shipment_client.search_shipments({"tracking_number": "4123"})
        assert backend_app.state.last_query == {"tracking_number": "4123"}


class TestTransportErrors:
    """Tests for transport failure mapping."""

    def make_client(self, settings, handler):
        store = TokenStore("t")
        return ShipmentApiClient(
            create_http_client(store, settings, transport=httpx.MockTransport(handler))
        )

    async def test_timeout(self, settings):
        """Test timeouts become NETWORK_TIMEOUT."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(AppException) as exc_info:
            await self.make_client(settings, handler).get_shipment(1)

        assert exc_info.value.code == "NETWORK_TIMEOUT"
        assert exc_info.value.details["timeout_seconds"] == 5

    async def test_connection_error(self, settings):
        """Test connection failures become NETWORK_ERROR."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AppException) as exc_info:
            await self.make_client(settings, handler).list_for_packing()

        assert exc_info.value.code == "NETWORK_ERROR"
        assert "connection refused" in exc_info.value.message

    async def test_empty_list_body(self, settings):
        """Test a list endpoint answering without body is EMPTY_RESPONSE."""
        client = self.make_client(settings, lambda request: httpx.Response(200))

        with pytest.raises(AppException) as exc_info:
            await client.list_for_packing()

        assert exc_info.value.code == "EMPTY_RESPONSE"

    async def test_non_json_body(self, settings):
        """Test a garbage body is INVALID_RESPONSE."""
        client = self.make_client(settings, lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(AppException) as exc_info:
            await client.get_shipment(1)

        assert exc_info.value.code == "INVALID_RESPONSE"

    async def test_paths_under_base_url(self, settings):
        """Test requests go below the configured API prefix."""
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=[])

        await self.make_client(settings, handler).list_for_packing()

        assert seen == ["/api/shipments/for-packing"]


class TestShipmentService:
    """Tests for the packing summary."""

    async def test_packing_summary(self, backend_app, shipment_client):
        """Test the summary analyzes the packing list."""
        backend_app.state.shipments = {
            1: shipment_payload(1),
            2: shipment_payload(2, logistic_type="cross_docking", substatus="printed"),
        }

        counters = await ShipmentService(shipment_client).packing_summary()

        assert counters.total == 2
        assert counters.self_managed.ready_to_print == 1
        assert counters.dispatch.pending == 1
