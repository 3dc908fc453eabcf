"""
==============================================================================
Schema Tests
==============================================================================

Tests for shipment and auth payload parsing.

==============================================================================
"""

import pytest
from pydantic import ValidationError

from fastpack.schemas import AuthResponse, LogisticsClass, PackedPhoto, ShipmentRecord

from conftest import SHIPMENT_ID, shipment_payload


class TestShipmentRecord:
    """Tests for ShipmentRecord parsing and copies."""

    def test_parses_backend_names(self, make_record):
        """Test aliases map to Python field names."""
        record = make_record()

        assert record.id == SHIPMENT_ID
        assert record.updated_at == "2025-01-15T11:00:00.000Z"
        assert record.version == 0
        assert record.receiver_address.dni == "30123456"
        assert record.items[0].variation_name == "Azul"
        assert record.total_quantity == 2

    def test_only_id_required(self):
        """Test a bare id is a valid record."""
        record = ShipmentRecord.model_validate({"_id": 5})

        assert record.items == []
        assert record.logistics_class is LogisticsClass.DISPATCH
        assert record.has_packed_photo is False

    def test_missing_id_rejected(self):
        """Test the identifier is required."""
        with pytest.raises(ValidationError):
            ShipmentRecord.model_validate({"status": "ready_to_ship"})

    def test_id_is_frozen(self, make_record):
        """Test the identifier cannot be reassigned."""
        record = make_record()
        with pytest.raises(ValidationError):
            record.id = 1

    def test_with_packed_photo_copies(self, make_record, packed_photo):
        """Test attaching a photo leaves the original untouched."""
        record = make_record()

        updated = record.with_packed_photo(packed_photo)

        assert updated.shipped_items_photo == packed_photo
        assert record.shipped_items_photo is None
        assert updated.id == record.id

    def test_payload_round_trips_unknown_fields(self):
        """Test unknown backend fields survive into the PUT body."""
        record = ShipmentRecord.model_validate(shipment_payload(warehouse="B2", sla={"hours": 24}))

        payload = record.to_payload()

        assert payload["_id"] == SHIPMENT_ID
        assert payload["updatedAt"] == "2025-01-15T11:00:00.000Z"
        assert payload["__v"] == 0
        assert payload["receiver_address"]["DNI"] == "30123456"
        assert payload["warehouse"] == "B2"
        assert payload["sla"] == {"hours": 24}
        assert "shipped_items_photo" not in payload

    def test_payload_includes_photo(self, make_record, packed_photo):
        """Test the photo is sent with its backend field names."""
        payload = make_record().with_packed_photo(packed_photo).to_payload()

        assert payload["shipped_items_photo"] == {
            "url": packed_photo.url,
            "public_id": packed_photo.public_id,
        }


class TestPackedPhoto:
    """Tests for PackedPhoto."""

    def test_fields_optional(self):
        """Test an empty photo block parses."""
        assert PackedPhoto.model_validate({}).url is None


class TestAuthResponse:
    """Tests for the auth response body."""

    def test_parses_user_and_token(self):
        """Test user aliases and display name."""
        response = AuthResponse.model_validate({
            "user": {"_id": "u1", "nickname": "packer1", "adminFP": True},
            "token": "abc",
        })

        assert response.token == "abc"
        assert response.user.id == "u1"
        assert response.user.admin_fp is True
        assert response.user.display_name == "packer1"

    def test_token_optional(self):
        """Test a body without token still parses."""
        assert AuthResponse.model_validate({"user": None}).token is None
