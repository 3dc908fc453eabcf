"""
==============================================================================
FastPack Scanner - Command Line Entry Point
==============================================================================

Drives the packing controllers from a terminal.

Commands:
---------
    fastpack login [--email EMAIL] [--password PASSWORD]
    fastpack register [--name NAME] [--email EMAIL] [--password PASSWORD]
    fastpack logout
    fastpack summary
    fastpack pack [--camera INDEX | --image PATH] [--photo PATH] [--timeout SECONDS]

Exit Codes:
-----------
    0  success
    1  operation failed (message printed)
    2  usage error (argparse)

==============================================================================
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from fastpack import __version__
from fastpack.analysis import AnalysisCounters
from fastpack.config import Settings, get_settings
from fastpack.core.exceptions import AppException
from fastpack.core.http import create_http_client
from fastpack.core.security import FileTokenStore, TokenStore
from fastpack.scanner.core import BarcodeDecoder
from fastpack.services import (
    AuthService,
    CloudinaryPhotoStorage,
    ShipmentApiClient,
    ShipmentService,
)
from fastpack.workflow import (
    AuthFlow,
    Error,
    HomeController,
    NoResult,
    PhotoUploadCoordinator,
    ScanWorkflowController,
    ShowResult,
    UploadOutcome,
)


logger = logging.getLogger(__name__)


# ============================================================================
# LOGGING SETUP
# ============================================================================

def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    # httpx logs every request at INFO
    if settings.is_production:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.debug(f"{settings.app_name} {__version__} ({settings.app_env})")


# ============================================================================
# APPLICATION WIRING
# ============================================================================

class FastPackApp:
    """
    Wires settings, token storage and clients for one command.

    Attributes:
        settings: Application settings
        token_store: Persisted bearer token
        http: Backend httpx client (bearer auth)
        auth: AuthService
        shipments: ShipmentApiClient
        storage: CloudinaryPhotoStorage
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        storage_transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self.settings = settings or get_settings()
        self.token_store = token_store or FileTokenStore(self.settings.token_path)
        self.http = create_http_client(self.token_store, self.settings, transport)
        self.auth = AuthService(self.http, self.token_store)
        self.shipments = ShipmentApiClient(self.http)
        self.storage = CloudinaryPhotoStorage(self.settings, transport=storage_transport)

    async def aclose(self) -> None:
        await self.storage.aclose()
        await self.http.aclose()


# ============================================================================
# COMMANDS
# ============================================================================

async def cmd_login(app: FastPackApp, args: argparse.Namespace) -> int:
    email = args.email if args.email is not None else input("Email: ")
    password = args.password if args.password is not None else getpass.getpass("Password: ")

    outcome = await AuthFlow(app.auth).login(email, password)
    if not outcome.success:
        print(f"Login failed: {outcome.message}")
        return 1

    user = outcome.response.user if outcome.response else None
    print(f"Logged in as {user.display_name if user else email}")
    return 0


async def cmd_register(app: FastPackApp, args: argparse.Namespace) -> int:
    name = args.name if args.name is not None else input("Name: ")
    email = args.email if args.email is not None else input("Email: ")
    password = args.password if args.password is not None else getpass.getpass("Password: ")

    outcome = await AuthFlow(app.auth).register(name, email, password)
    if not outcome.success:
        print(f"Registration failed: {outcome.message}")
        return 1

    print(f"Registered and logged in as {name}")
    return 0


async def cmd_logout(app: FastPackApp, args: argparse.Namespace) -> int:
    app.auth.logout()
    print("Logged out")
    return 0


async def cmd_summary(app: FastPackApp, args: argparse.Namespace) -> int:
    if not _require_login(app):
        return 1

    home = HomeController(ShipmentService(app.shipments))
    state = await home.refresh()

    if state.error_message:
        print(f"Could not load summary: {state.error_message}")
        home.error_message_shown()
        return 1

    print(format_counters(state.counters or AnalysisCounters.empty()))
    return 0


async def cmd_pack(app: FastPackApp, args: argparse.Namespace) -> int:
    if not _require_login(app):
        return 1

    # Imported here so the other commands work without OpenCV installed
    from fastpack.scanner.camera import CameraFeed, scan_image

    decoder = BarcodeDecoder(symbols=app.settings.scanner_symbols_list)
    coordinator = PhotoUploadCoordinator(app.storage, app.shipments)
    controller = ScanWorkflowController(app.shipments, coordinator, decoder)

    settled = asyncio.Event()
    controller.subscribe(
        lambda state: settled.set() if isinstance(state, (ShowResult, NoResult, Error)) else None
    )

    feed = None
    try:
        if args.image is not None:
            controller.on_permission_result(True)
            try:
                code = await asyncio.to_thread(scan_image, decoder, args.image)
            except AppException as e:
                print(e.message)
                return 1
            if code is None:
                print(f"No valid shipment code found in {args.image}")
                return 1
        else:
            camera_index = app.settings.camera_index if args.camera is None else args.camera
            feed = CameraFeed(decoder, camera_index)
            granted = feed.start()
            controller.on_permission_result(granted)
            if not granted:
                print(f"Camera {camera_index} is not available")
                return 1
            print("Show the shipment label to the camera...")

        try:
            await asyncio.wait_for(settled.wait(), timeout=args.timeout)
        except asyncio.TimeoutError:
            print(f"No shipment scanned within {args.timeout:g}s")
            return 1

        if feed is not None:
            await asyncio.to_thread(feed.stop)

        return await _handle_result(controller, args.photo)
    finally:
        if feed is not None:
            feed.stop()
        controller.close()


async def _handle_result(controller: ScanWorkflowController, photo: Optional[Path]) -> int:
    state = controller.state

    if isinstance(state, NoResult):
        print(f"Shipment {state.scanned_code} not found")
        return 1

    if isinstance(state, Error):
        print(f"Error: {state.message}")
        return 1

    print(format_record(state.record))

    if photo is None:
        return 0

    controller.capture_photo(photo)
    task = controller.confirm_photo()
    if task is not None:
        await task

    state = controller.state
    if isinstance(state, ShowResult) and state.upload_outcome is UploadOutcome.SUCCESS:
        print(f"Photo saved: {state.record.shipped_items_photo.url}")
        return 0

    print("Photo upload failed, the shipment was not updated")
    return 1


def _require_login(app: FastPackApp) -> bool:
    if app.auth.is_logged_in():
        return True
    print("Not logged in. Run 'fastpack login' first.")
    return False


# ============================================================================
# OUTPUT FORMATTING
# ============================================================================

def format_counters(counters: AnalysisCounters) -> str:
    """Summary table for the terminal."""
    rows = [
        f"Total shipments: {counters.total}",
        "",
        f"{'':<16}{'To print':>10}{'To prepare':>12}{'Pending':>10}",
    ]
    for label, bucket in (("Self-managed", counters.self_managed), ("Dispatch", counters.dispatch)):
        rows.append(
            f"{label:<16}{bucket.ready_to_print:>10}{bucket.ready_to_prepare:>12}{bucket.pending:>10}"
        )
    return "\n".join(rows)


def format_record(record) -> str:
    """Short shipment description for the terminal."""
    lines = [
        f"Shipment {record.id} ({record.total_quantity} units)",
        f"  Status: {record.status or '-'} / {record.substatus or '-'}",
        f"  Logistics: {record.logistic_type or '-'} ({record.logistics_class.value})",
        f"  Buyer: {record.buyer_nickname or '-'}",
    ]
    for item in record.items:
        variation = f" [{item.variation_name}]" if item.variation_name else ""
        lines.append(f"  - {item.quantity or 0} x {item.description or item.id}{variation}")
    if record.has_packed_photo:
        lines.append(f"  Photo: {record.shipped_items_photo.url}")
    return "\n".join(lines)


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fastpack",
        description="Scan, review and photograph shipments for packing",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Log in and store the token")
    login.add_argument("--email")
    login.add_argument("--password")
    login.set_defaults(handler=cmd_login)

    register = subparsers.add_parser("register", help="Create an account")
    register.add_argument("--name")
    register.add_argument("--email")
    register.add_argument("--password")
    register.set_defaults(handler=cmd_register)

    logout = subparsers.add_parser("logout", help="Forget the stored token")
    logout.set_defaults(handler=cmd_logout)

    summary = subparsers.add_parser("summary", help="Show shipments pending packing")
    summary.set_defaults(handler=cmd_summary)

    pack = subparsers.add_parser("pack", help="Scan a shipment and attach a packing photo")
    source = pack.add_mutually_exclusive_group()
    source.add_argument("--camera", type=int, help="Camera index (default from settings)")
    source.add_argument("--image", type=Path, help="Scan a still image instead of the camera")
    pack.add_argument("--photo", type=Path, help="Packed-item photo to upload")
    pack.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for a scan")
    pack.set_defaults(handler=cmd_pack)

    return parser


async def run(args: argparse.Namespace, settings: Optional[Settings] = None) -> int:
    """Run one parsed command."""
    app = FastPackApp(settings)
    try:
        return await args.handler(app, args)
    except AppException as e:
        logger.error(f"{e.code}: {e.message}")
        print(e.message)
        return 1
    finally:
        await app.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    configure_logging(settings)

    args = build_parser().parse_args(argv)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
