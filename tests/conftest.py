"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides settings, shipment factories, an in-process fake backend and fakes
for the barcode recognizer and photo storage.

==============================================================================
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from fastpack.config import Settings
from fastpack.core.exceptions import AppException
from fastpack.core.http import create_http_client
from fastpack.core.security import TokenStore
from fastpack.schemas.shipment import PackedPhoto, ShipmentRecord
from fastpack.services.auth_service import AuthService
from fastpack.services.shipment_client import ShipmentApiClient


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at the in-process backend, ignoring any .env file."""
    return Settings(
        _env_file=None,
        api_base_url="http://testserver/api",
        token_file=str(tmp_path / "credentials.json"),
        request_timeout_seconds=5,
    )


# ============================================================================
# SHIPMENT FIXTURES
# ============================================================================

SHIPMENT_ID = 2034578901
SHIPMENT_CODE = "02034578901"


def shipment_payload(shipment_id: int = SHIPMENT_ID, **overrides: Any) -> Dict[str, Any]:
    """Backend JSON for a shipment ready to print."""
    payload = {
        "_id": shipment_id,
        "order_id": "2000008765432101",
        "buyer_nickname": "COMPRADOR123",
        "status": "ready_to_ship",
        "substatus": "ready_to_print",
        "logistic_type": "self_service",
        "tracking_number": "41234567890",
        "date_created": "2025-01-15T10:30:45.000Z",
        "last_updated": "2025-01-15T11:00:00.000Z",
        "updatedAt": "2025-01-15T11:00:00.000Z",
        "shipping_items": [
            {
                "id": "MLA123456789",
                "description": "Taza de ceramica",
                "quantity": 2,
                "variation_name": "Azul",
            }
        ],
        "receiver_address": {"city": "Buenos Aires", "DNI": "30123456"},
        "__v": 0,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_record() -> Callable[..., ShipmentRecord]:
    """Factory building ShipmentRecord instances from backend JSON."""
    def factory(shipment_id: int = SHIPMENT_ID, **overrides: Any) -> ShipmentRecord:
        return ShipmentRecord.model_validate(shipment_payload(shipment_id, **overrides))
    return factory


@pytest.fixture
def packed_photo() -> PackedPhoto:
    return PackedPhoto(
        url="https://res.cloudinary.com/fastpack/image/upload/v1/packing/abc.jpg",
        public_id="packing/abc",
    )


# ============================================================================
# FAKE BACKEND (FastAPI over httpx.ASGITransport)
# ============================================================================

def create_fake_backend() -> FastAPI:
    """
    In-memory shipments and auth API.

    State on app.state:
        shipments: id → JSON payload
        users: email → {"name", "password"}
        seen_auth: Authorization headers received
        last_query: Query params of the last GET /shipments
        empty_put: Answer PUT with an empty body
        fail_with: Status code every shipments route answers with
    """
    app = FastAPI()
    app.state.shipments = {}
    app.state.users = {"packer@example.com": {"name": "Packer", "password": "secret"}}
    app.state.seen_auth = []
    app.state.last_query = None
    app.state.empty_put = False
    app.state.fail_with = None

    def record_auth(request: Request) -> Optional[Response]:
        app.state.seen_auth.append(request.headers.get("authorization"))
        if app.state.fail_with:
            return JSONResponse(status_code=app.state.fail_with, content={"message": "boom"})
        return None

    # Declared before /{shipment_id} so "for-packing" is not parsed as an id
    @app.get("/api/shipments/for-packing")
    async def for_packing(request: Request):
        failure = record_auth(request)
        if failure:
            return failure
        return list(app.state.shipments.values())

    @app.get("/api/shipments")
    async def list_shipments(request: Request):
        failure = record_auth(request)
        if failure:
            return failure
        app.state.last_query = dict(request.query_params)
        status = request.query_params.get("status")
        return [s for s in app.state.shipments.values() if status is None or s.get("status") == status]

    @app.get("/api/shipments/{shipment_id}")
    async def get_shipment(shipment_id: int, request: Request):
        failure = record_auth(request)
        if failure:
            return failure
        if shipment_id not in app.state.shipments:
            return JSONResponse(status_code=404, content={"message": "Shipment not found"})
        return app.state.shipments[shipment_id]

    @app.put("/api/shipments/{shipment_id}")
    async def update_shipment(shipment_id: int, request: Request):
        failure = record_auth(request)
        if failure:
            return failure
        body = await request.json()
        app.state.shipments[shipment_id] = body
        if app.state.empty_put:
            return Response(status_code=200)
        return {**body, "updatedAt": "2025-01-16T09:00:00.000Z"}

    @app.post("/api/auth/login")
    async def login(request: Request):
        body = await request.json()
        user = app.state.users.get(body.get("email"))
        if user is None or user["password"] != body.get("password"):
            return JSONResponse(status_code=401, content={"message": "Invalid credentials"})
        return {
            "user": {"_id": "u1", "name": user["name"], "email": body["email"], "packer": True},
            "token": f"token-{body['email']}",
        }

    @app.post("/api/auth/register")
    async def register(request: Request):
        body = await request.json()
        if body.get("email") in app.state.users:
            return Response(status_code=409)
        app.state.users[body["email"]] = {"name": body["name"], "password": body["password"]}
        return JSONResponse(
            status_code=201,
            content={"user": {"name": body["name"], "email": body["email"]}, "token": "token-new"},
        )

    return app


@pytest.fixture
def backend_app() -> FastAPI:
    """Fresh fake backend for each test."""
    return create_fake_backend()


@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore("test-token")


@pytest.fixture
def http_client(backend_app: FastAPI, token_store: TokenStore, settings: Settings) -> httpx.AsyncClient:
    """Backend client routed to the fake backend in-process."""
    return create_http_client(token_store, settings, transport=httpx.ASGITransport(app=backend_app))


@pytest.fixture
def shipment_client(http_client: httpx.AsyncClient) -> ShipmentApiClient:
    return ShipmentApiClient(http_client)


@pytest.fixture
def auth_service(http_client: httpx.AsyncClient, token_store: TokenStore) -> AuthService:
    return AuthService(http_client, token_store)


# ============================================================================
# FAKE RECOGNIZER
# ============================================================================

@dataclass
class FakeSymbol:
    """Mimics a pyzbar Decoded result."""
    data: bytes
    type: str


class FakeRecognizer:
    """
    Recognizer returning the same symbols for every frame.

    Attributes:
        symbols: Symbols returned per call
        calls: Number of frames recognized
        closed: Number of close() calls
        error: Exception raised instead of returning symbols
    """

    def __init__(self, symbols: Optional[List[FakeSymbol]] = None, error: Optional[Exception] = None):
        self.symbols = symbols or []
        self.error = error
        self.calls = 0
        self.closed = 0

    def __call__(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.symbols)

    def close(self):
        self.closed += 1


class FakeFrame:
    """Frame object tracking whether it was closed."""

    size = 1

    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def linear_symbol() -> FakeSymbol:
    return FakeSymbol(SHIPMENT_CODE.encode(), "CODE128")


# ============================================================================
# FAKE WORKFLOW COLLABORATORS
# ============================================================================

class FakeShipmentBackend:
    """
    In-memory ShipmentBackend.

    Attributes:
        get_calls / update_calls: Recorded calls
        get_error / update_error: AppException raised by the call
        update_returns_none: Simulate an empty PUT answer
        gate: Event awaited by get_shipment before answering
    """

    def __init__(self, records: Optional[List[ShipmentRecord]] = None):
        self.records = {r.id: r for r in records or []}
        self.get_calls: List[int] = []
        self.update_calls: List[ShipmentRecord] = []
        self.get_error: Optional[Exception] = None
        self.update_error: Optional[AppException] = None
        self.update_returns_none = False
        self.gate: Optional[asyncio.Event] = None

    async def get_shipment(self, shipment_id: int) -> Optional[ShipmentRecord]:
        self.get_calls.append(shipment_id)
        if self.gate is not None:
            await self.gate.wait()
        if self.get_error is not None:
            raise self.get_error
        return self.records.get(shipment_id)

    async def update_shipment(self, record: ShipmentRecord) -> Optional[ShipmentRecord]:
        self.update_calls.append(record)
        if self.update_error is not None:
            raise self.update_error
        if self.update_returns_none:
            return None
        saved = record.model_copy(update={"updated_at": "2025-01-16T09:00:00.000Z"})
        self.records[saved.id] = saved
        return saved

    async def list_for_packing(self) -> List[ShipmentRecord]:
        return list(self.records.values())


class FakePhotoStorage:
    """PhotoStorage returning a fixed photo or raising."""

    def __init__(self, photo: PackedPhoto, error: Optional[AppException] = None):
        self.photo = photo
        self.error = error
        self.uploads: List[str] = []

    async def upload(self, local_photo) -> PackedPhoto:
        self.uploads.append(str(local_photo))
        if self.error is not None:
            raise self.error
        return self.photo


@pytest.fixture
def fake_backend(make_record) -> FakeShipmentBackend:
    return FakeShipmentBackend([make_record()])


@pytest.fixture
def fake_storage(packed_photo: PackedPhoto) -> FakePhotoStorage:
    return FakePhotoStorage(packed_photo)
